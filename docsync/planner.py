"""Plan documentation creations, updates, and navigation edits."""

from __future__ import annotations

import posixpath
import re
from typing import Any, List, Mapping, Optional

from .errors import CollaboratorError, PreconditionError
from .git.store import GitHubStore, RemoteEntry
from .llm.structured import TextGenerator, request_json
from .logging import get_logger
from .models import (
    NAVIGATION_OPERATIONS,
    PRIORITIES,
    UPDATE_TYPES,
    MatchRules,
    NavigationChange,
    PlannedUpdate,
    RepoRef,
    RunContext,
    UpdatePlan,
)
from .patterns import should_include
from .prompting.builder import PromptBuilder
from .prompting.constants import DEFAULT_SUMMARY, DEFAULT_UPDATE_REASON, UPDATE_PLAN_SYSTEM

_EXTENSION = re.compile(r"\.[^/.]+$")


class UpdatePlanner:
    """Delegates the update decision to the text generator and enforces the plan schema."""

    def __init__(
        self,
        generator: TextGenerator,
        *,
        prompt_builder: PromptBuilder | None = None,
        temperature: Optional[float] = 0.1,
    ) -> None:
        self.generator = generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.temperature = temperature
        self.logger = get_logger("planner")

    def plan(self, context: RunContext) -> UpdatePlan:
        analysis = context.require("code_analysis")
        structure = context.require("doc_structure")

        response = request_json(
            self.generator,
            self.prompt_builder.update_plan(analysis, structure, context.match_rules),
            system=UPDATE_PLAN_SYSTEM,
            temperature=self.temperature,
        )
        plan = self.normalise(response)
        self.logger.info(
            "Planned %d update(s) and %d navigation change(s)",
            len(plan.updates),
            len(plan.navigation_changes),
        )
        for update in plan.updates:
            self.logger.debug("%s %s (%s): %s", update.type, update.path, update.priority, update.reason)
        return plan

    def normalise(self, response: Mapping[str, Any]) -> UpdatePlan:
        summary = response.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = DEFAULT_SUMMARY

        raw_updates = response.get("updates") or []
        if not isinstance(raw_updates, list):
            raise CollaboratorError("Update plan field updates must be a list")
        updates: List[PlannedUpdate] = []
        for raw in raw_updates:
            update = self._normalise_update(raw)
            if update is not None:
                updates.append(update)

        raw_navigation = response.get("navigationChanges") or []
        if not isinstance(raw_navigation, list):
            raise CollaboratorError("Update plan field navigationChanges must be a list")
        return UpdatePlan(
            summary=summary,
            updates=updates,
            navigation_changes=self._flatten_navigation(raw_navigation),
        )

    def _normalise_update(self, raw: Any) -> Optional[PlannedUpdate]:
        if not isinstance(raw, dict):
            self.logger.warning("Dropping planned update that is not an object: %r", raw)
            return None
        path = raw.get("path")
        if not isinstance(path, str) or not path.strip():
            self.logger.warning("Dropping planned update without a path")
            return None
        reason = raw.get("reason")
        suggested = raw.get("suggestedContent")
        return PlannedUpdate(
            path=path.strip(),
            type=_choice(raw.get("type"), UPDATE_TYPES, "update"),
            reason=reason if isinstance(reason, str) and reason.strip() else DEFAULT_UPDATE_REASON,
            priority=_choice(raw.get("priority"), PRIORITIES, "medium"),
            source_files=tuple(_strings(raw.get("sourceFiles"))),
            related_docs=tuple(_strings(raw.get("relatedDocs"))),
            suggested_content=suggested if isinstance(suggested, dict) and suggested else None,
        )

    def _flatten_navigation(self, groups: List[Any]) -> List[NavigationChange]:
        changes: List[NavigationChange] = []
        for entry in groups:
            if not isinstance(entry, dict) or not isinstance(entry.get("group"), str):
                self.logger.warning("Dropping navigation entry without a group: %r", entry)
                continue
            for change in entry.get("changes") or []:
                if not isinstance(change, dict):
                    continue
                operation = change.get("type")
                page = change.get("page")
                if operation not in NAVIGATION_OPERATIONS or not isinstance(page, str):
                    self.logger.warning("Dropping navigation change %r", change)
                    continue
                changes.append(NavigationChange(operation=operation, page=page, group=entry["group"]))
        return changes


class ImportantFileFinder:
    """Recursively lists repository files that match the important patterns."""

    def __init__(self, store: GitHubStore, *, max_files: int = 30) -> None:
        self.store = store
        self.max_files = max_files
        self.logger = get_logger("planner.important")

    def find(self, repo: RepoRef, rules: MatchRules, root: str = "") -> List[str]:
        """List important files under ``root``.

        A failure to list ``root`` itself propagates; unreadable subdirectories
        are logged and skipped.
        """
        directory = root.strip("/")
        found: List[str] = []
        self._visit(repo, rules, directory, self.store.list_directory(repo, directory), found)
        self.logger.info("Found %d important file(s) in %s", len(found), repo.full_name)
        return found

    def _walk(self, repo: RepoRef, rules: MatchRules, directory: str, found: List[str]) -> None:
        if len(found) >= self.max_files:
            return
        try:
            entries = self.store.list_directory(repo, directory)
        except CollaboratorError as exc:
            self.logger.warning("Error accessing %s: %s", directory, exc)
            return
        self._visit(repo, rules, directory, entries, found)

    def _visit(
        self,
        repo: RepoRef,
        rules: MatchRules,
        directory: str,
        entries: List[RemoteEntry],
        found: List[str],
    ) -> None:
        for entry in entries:
            if len(found) >= self.max_files:
                return
            path = f"{directory}/{entry.name}" if directory else entry.name
            if not should_include(path, rules):
                continue
            if entry.type == "dir":
                self._walk(repo, rules, path, found)
            elif entry.type == "file":
                found.append(path)


def candidate_doc_path(
    source: str,
    docs_root: str,
    path_mappings: Mapping[str, str] | None = None,
    extension: str = ".md",
) -> str:
    """Deterministic docs location for a source file.

    ``app/Services/Billing.php`` becomes ``docs/app/Services/Billing.md``; a
    path mapping of ``{"app/": ""}`` turns it into ``docs/Services/Billing.md``.
    """
    mapped = source
    for prefix, replacement in (path_mappings or {}).items():
        if prefix and source.startswith(prefix):
            mapped = replacement + source[len(prefix) :]
            break
    stem = _EXTENSION.sub("", mapped).strip("/")
    if not extension.startswith("."):
        extension = f".{extension}"
    root = docs_root.strip("/")
    return posixpath.join(root, f"{stem}{extension}") if root else f"{stem}{extension}"


class InitialDocsPlanner:
    """Plans one new document per important file that has none yet."""

    def __init__(self, store: GitHubStore) -> None:
        self.store = store
        self.logger = get_logger("planner.initial")

    def plan(self, context: RunContext) -> UpdatePlan:
        files = context.require("important_files")
        if not files:
            raise PreconditionError("No important files found to document")

        config = context.config
        updates: List[PlannedUpdate] = []
        for source in files:
            target = candidate_doc_path(
                source,
                config.docs.path,
                context.match_rules.path_mappings,
                config.initial.extension,
            )
            if self.store.exists(context.docs_repo, target):
                self.logger.debug("Documentation already exists for %s at %s", source, target)
                continue
            self.logger.debug("Planning documentation for %s -> %s", source, target)
            updates.append(
                PlannedUpdate(
                    path=target,
                    type="create",
                    reason=f"Initial documentation for {source}",
                    priority="medium",
                    source_files=(source,),
                )
            )
        if not updates:
            self.logger.info("All important files already have documentation")
        return UpdatePlan(summary=f"Initial documentation for {len(updates)} file(s)", updates=updates)


def _choice(value: Any, allowed: tuple, default: str) -> str:
    return value if isinstance(value, str) and value in allowed else default


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


__all__ = [
    "ImportantFileFinder",
    "InitialDocsPlanner",
    "UpdatePlanner",
    "candidate_doc_path",
]
