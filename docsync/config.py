"""Configuration loading for docsync (.docsync.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .errors import ConfigError
from .models import MatchRules, RepoRef
from .patterns import resolve_match_rules

CONFIG_FILENAME = ".docsync.yml"

DEFAULT_TITLE_TEMPLATE = "📚 Update documentation for {prTitle}"
DEFAULT_BODY_TEMPLATE = """This PR updates documentation to reflect changes in #{prNumber}

## Changes
{changes}

This PR was automatically generated by docsync."""

DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    "vendor",
    "dist",
    "build",
    "docs",
    "tests",
    "package.json",
    "package-lock.json",
    "yarn.lock",
)
DEFAULT_IMPORTANT_PATTERNS: tuple[str, ...] = ("src/**", "app/**", "lib/**")


@dataclass
class DocsConfig:
    """Where the documentation tree lives and which files count as docs."""

    path: str = "docs"
    monorepo: bool = True
    manifest: str = "mint.json"
    extensions: List[str] = field(default_factory=lambda: [".mdx", ".md"])


@dataclass
class DocsRepoConfig:
    """Optional separate repository for documentation."""

    owner: Optional[str] = None
    name: Optional[str] = None
    branch: str = "main"


@dataclass
class PatternConfig:
    important: List[str] = field(default_factory=lambda: list(DEFAULT_IMPORTANT_PATTERNS))
    ignore: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    path_mappings: Dict[str, str] = field(default_factory=dict)


@dataclass
class PublishConfig:
    """Publish strategy for documentation pull requests."""

    create_new_pr: bool = True
    branch_prefix: str = "docs/update"
    title_template: str = DEFAULT_TITLE_TEMPLATE
    body_template: str = DEFAULT_BODY_TEMPLATE
    labels: List[str] = field(default_factory=lambda: ["documentation"])


@dataclass
class LLMConfig:
    """Text-generation runtime settings."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.3
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = None
    style_guide: Optional[str] = None


@dataclass
class InitialConfig:
    """Settings for the bulk initial-documentation flow."""

    max_files: int = 30
    cache_path: str = ".docsync/generation-cache.json"
    extension: str = ".md"


@dataclass
class DocSyncConfig:
    """Represents the high-level settings defined in .docsync.yml."""

    docs: DocsConfig = field(default_factory=DocsConfig)
    docs_repo: DocsRepoConfig = field(default_factory=DocsRepoConfig)
    patterns: PatternConfig = field(default_factory=PatternConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    initial: InitialConfig = field(default_factory=InitialConfig)

    def match_rules(self) -> MatchRules:
        return resolve_match_rules(
            self.docs.extensions,
            self.patterns.ignore,
            self.patterns.important,
            self.patterns.path_mappings,
        )

    def docs_repo_for(self, owner: str, repo: str) -> RepoRef:
        """Return the docs repository, defaulting to the triggering repository."""
        if self.docs_repo.owner:
            return RepoRef(
                owner=self.docs_repo.owner,
                repo=self.docs_repo.name or repo,
                branch=self.docs_repo.branch,
            )
        return RepoRef(owner=owner, repo=repo, branch=self.docs_repo.branch)


@dataclass(frozen=True)
class Credentials:
    """External credentials, resolved once at startup."""

    github_token: Optional[str]
    llm_api_key: Optional[str]

    GITHUB_TOKEN_KEYS = ("DOCSYNC_GITHUB_TOKEN", "GITHUB_TOKEN")
    LLM_API_KEY_KEYS = ("DOCSYNC_LLM_API_KEY", "OPENAI_API_KEY")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Credentials":
        env = os.environ if environ is None else environ
        return cls(
            github_token=_first_value(env, cls.GITHUB_TOKEN_KEYS),
            llm_api_key=_first_value(env, cls.LLM_API_KEY_KEYS),
        )

    def validate(self) -> "Credentials":
        if not self.github_token:
            raise ConfigError("GITHUB_TOKEN environment variable is required")
        if not self.llm_api_key:
            raise ConfigError("OPENAI_API_KEY environment variable is required")
        return self


def load_config(config_path: Path) -> DocSyncConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(config_path)
    if not config_file.exists():
        return DocSyncConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return config_from_mapping(data)


def config_from_mapping(data: Mapping[str, Any]) -> DocSyncConfig:
    config = DocSyncConfig()

    docs_data = _as_dict(data.get("docs"))
    if docs_data:
        config.docs = DocsConfig(
            path=(_as_str(docs_data.get("path")) or config.docs.path).strip("/"),
            monorepo=_bool_or(docs_data.get("monorepo"), config.docs.monorepo),
            manifest=_as_str(docs_data.get("manifest")) or config.docs.manifest,
            extensions=_as_str_list(docs_data.get("extensions")) or config.docs.extensions,
        )

    repo_data = _as_dict(data.get("docs_repo"))
    if repo_data:
        config.docs_repo = DocsRepoConfig(
            owner=_as_str(repo_data.get("owner")),
            name=_as_str(repo_data.get("name")),
            branch=_as_str(repo_data.get("branch")) or "main",
        )

    pattern_data = _as_dict(data.get("patterns"))
    if pattern_data:
        if "important" in pattern_data:
            config.patterns.important = _as_str_list(pattern_data.get("important"))
        if "ignore" in pattern_data:
            config.patterns.ignore = _as_str_list(pattern_data.get("ignore"))
        config.patterns.path_mappings = _as_str_dict(pattern_data.get("path_mappings"))

    publish_data = _as_dict(data.get("publish"))
    if publish_data:
        defaults = PublishConfig()
        config.publish = PublishConfig(
            create_new_pr=_bool_or(publish_data.get("create_new_pr"), defaults.create_new_pr),
            branch_prefix=_as_str(publish_data.get("branch_prefix")) or defaults.branch_prefix,
            title_template=_as_str(publish_data.get("title_template")) or defaults.title_template,
            body_template=_as_str(publish_data.get("body_template")) or defaults.body_template,
            labels=(
                _as_str_list(publish_data.get("labels"))
                if "labels" in publish_data
                else defaults.labels
            ),
        )

    llm_data = _as_dict(data.get("llm"))
    if llm_data:
        temperature = _as_float(llm_data.get("temperature"))
        config.llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            base_url=_as_str(llm_data.get("base_url")),
            temperature=temperature if temperature is not None else 0.3,
            max_tokens=_as_int(llm_data.get("max_tokens")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
            style_guide=_as_str(llm_data.get("style_guide")),
        )

    initial_data = _as_dict(data.get("initial"))
    if initial_data:
        defaults_initial = InitialConfig()
        max_files = _as_int(initial_data.get("max_files"))
        if max_files is not None and max_files <= 0:
            raise ConfigError("initial.max_files must be a positive integer")
        config.initial = InitialConfig(
            max_files=max_files or defaults_initial.max_files,
            cache_path=_as_str(initial_data.get("cache_path")) or defaults_initial.cache_path,
            extension=_as_str(initial_data.get("extension")) or defaults_initial.extension,
        )

    return config


# Request-level overrides use the camelCase keys webhook senders already emit.
_OVERRIDE_KEYS = {
    "docsPath",
    "isMonorepo",
    "docsRepoOwner",
    "docsRepoName",
    "docsBranch",
    "fileTypes",
    "ignorePatterns",
    "importantPatterns",
    "createNewPr",
    "labels",
    "styleGuide",
}


def merge_overrides(config: DocSyncConfig, overrides: Mapping[str, Any] | None) -> DocSyncConfig:
    """Return a copy of ``config`` with per-request overrides applied."""
    if not overrides:
        return config
    unknown = set(overrides) - _OVERRIDE_KEYS
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    docs = replace(config.docs)
    if "docsPath" in overrides:
        docs.path = (_as_str(overrides["docsPath"]) or docs.path).strip("/")
    if "isMonorepo" in overrides:
        docs.monorepo = _bool_or(overrides["isMonorepo"], docs.monorepo)
    if "fileTypes" in overrides:
        docs.extensions = _as_str_list(overrides["fileTypes"]) or docs.extensions

    docs_repo = replace(config.docs_repo)
    if "docsRepoOwner" in overrides:
        docs_repo.owner = _as_str(overrides["docsRepoOwner"])
    if "docsRepoName" in overrides:
        docs_repo.name = _as_str(overrides["docsRepoName"])
    if "docsBranch" in overrides:
        docs_repo.branch = _as_str(overrides["docsBranch"]) or docs_repo.branch

    patterns = replace(config.patterns)
    if "importantPatterns" in overrides:
        patterns.important = _as_str_list(overrides["importantPatterns"])
    if "ignorePatterns" in overrides:
        patterns.ignore = _as_str_list(overrides["ignorePatterns"])

    publish = replace(config.publish)
    if "createNewPr" in overrides:
        publish.create_new_pr = _bool_or(overrides["createNewPr"], publish.create_new_pr)
    if "labels" in overrides:
        publish.labels = _as_str_list(overrides["labels"])

    llm = replace(config.llm)
    if "styleGuide" in overrides:
        llm.style_guide = _as_str(overrides["styleGuide"]) or None

    return replace(
        config,
        docs=docs,
        docs_repo=docs_repo,
        patterns=patterns,
        publish=publish,
        llm=llm,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _first_value(env: Mapping[str, str], keys: Sequence[str]) -> Optional[str]:
    for key in keys:
        value = env.get(key)
        if value:
            return value
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _bool_or(value: Any, default: bool) -> bool:
    parsed = _as_bool(value)
    return default if parsed is None else parsed


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


def _as_str_dict(value: Any) -> Dict[str, str]:
    if not isinstance(value, dict):
        return {}
    return {str(key): str(item) for key, item in value.items() if item is not None}


__all__ = [
    "CONFIG_FILENAME",
    "Credentials",
    "DocSyncConfig",
    "DocsConfig",
    "DocsRepoConfig",
    "InitialConfig",
    "LLMConfig",
    "PatternConfig",
    "PublishConfig",
    "config_from_mapping",
    "load_config",
    "merge_overrides",
]
