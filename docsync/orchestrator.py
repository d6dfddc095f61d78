"""Pipeline orchestration for pull request updates and initial documentation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from .analyzers.changes import ChangeClassifier
from .analyzers.structure import StructureIndexer
from .config import Credentials, DocSyncConfig, load_config
from .errors import DocSyncError, PipelineError, PreconditionError
from .generation import ContentGenerator, InitialDocsGenerator
from .git.publisher import Publisher
from .git.store import GitHubStore
from .llm.runner import LLMRunner
from .llm.structured import TextGenerator
from .logging import get_logger
from .models import RepoRef, RunContext
from .navigation import NavigationReconciler
from .planner import ImportantFileFinder, InitialDocsPlanner, UpdatePlanner
from .stores.generation_cache import GenerationCache


class Orchestrator:
    """Coordinates the docsync pipelines.

    Each stage is a method named ``_stage_<name>`` that reads and populates
    the run context. Stages run strictly in the order listed below; a stage
    may return ``False`` to end the run early without an error.
    """

    UPDATE_STAGES: Tuple[str, ...] = (
        "fetch_pull_request",
        "classify_changes",
        "index_structure",
        "plan_updates",
        "generate_content",
        "reconcile_navigation",
        "publish_update",
    )
    INITIAL_STAGES: Tuple[str, ...] = (
        "search_important_files",
        "plan_initial_docs",
        "generate_initial_docs",
        "publish_initial",
    )

    def __init__(
        self,
        store: GitHubStore,
        generator: TextGenerator,
        *,
        config: DocSyncConfig | None = None,
        publisher: Publisher | None = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.config = config or DocSyncConfig()
        self.publisher = publisher or Publisher(store)
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_credentials(
        cls,
        credentials: Credentials,
        config: DocSyncConfig | None = None,
    ) -> "Orchestrator":
        """Build an orchestrator backed by the GitHub API and a chat completion endpoint."""
        credentials.validate()
        config = config or DocSyncConfig()
        store = GitHubStore(credentials.github_token)
        runner = LLMRunner(
            config.llm.model,
            api_key=credentials.llm_api_key,
            base_url=config.llm.base_url,
            temperature=config.llm.temperature,
            max_tokens=config.llm.max_tokens,
            request_timeout=config.llm.request_timeout or 60.0,
        )
        return cls(store, runner, config=config)

    @classmethod
    def from_environment(cls, config_path: Path | None = None) -> "Orchestrator":
        config = load_config(config_path or Path.cwd())
        return cls.from_credentials(Credentials.from_env(), config)

    # ------------------------------------------------------------------
    # Entry points

    def run_update(
        self,
        owner: str,
        repo: str,
        pull_number: int,
        config: DocSyncConfig | None = None,
    ) -> RunContext:
        """Run the pull request update pipeline and return the final context."""
        context = self.new_context(owner, repo, config=config, pull_number=pull_number)
        self.logger.info("Starting update run for %s", context.describe())
        self._run(context, self.UPDATE_STAGES)
        return context

    def run_initial(self, owner: str, repo: str, config: DocSyncConfig | None = None) -> RunContext:
        """Run the bulk initial-documentation pipeline and return the final context."""
        context = self.new_context(owner, repo, config=config)
        self.logger.info("Starting initial documentation run for %s", context.describe())
        self._run(context, self.INITIAL_STAGES)
        return context

    def new_context(
        self,
        owner: str,
        repo: str,
        *,
        config: DocSyncConfig | None = None,
        pull_number: int | None = None,
    ) -> RunContext:
        config = config or self.config
        return RunContext(
            owner=owner,
            repo=repo,
            config=config,
            docs_repo=config.docs_repo_for(owner, repo),
            match_rules=config.match_rules(),
            pull_number=pull_number,
        )

    def _run(self, context: RunContext, stages: Tuple[str, ...]) -> None:
        handlers: Dict[str, Callable[[RunContext], Optional[bool]]] = {
            name: getattr(self, f"_stage_{name}") for name in stages
        }
        for name in stages:
            self.logger.info("=== %s ===", name.replace("_", " ").title())
            try:
                proceed = handlers[name](context)
            except Exception as exc:
                self._log_exception(f"Stage {name} failed for {context.describe()}", exc)
                raise PipelineError(str(exc), stage=name, run=context.describe()) from exc
            if proceed is False:
                self.logger.info("Stopping %s after %s", context.describe(), name)
                return
        self.logger.info("Run for %s completed", context.describe())

    def _log_exception(self, message: str, exc: Exception) -> None:
        if self.logger.isEnabledFor(logging.DEBUG) or not isinstance(exc, DocSyncError):
            self.logger.exception("%s: %s", message, exc)
        else:
            self.logger.error("%s: %s", message, exc)

    # ------------------------------------------------------------------
    # Update stages

    def _stage_fetch_pull_request(self, context: RunContext) -> None:
        source = RepoRef(owner=context.owner, repo=context.repo)
        number = context.pull_number
        if number is None:
            raise PreconditionError("Update runs require a pull request number")
        pull = self.store.get_pull(source, number)
        context.source_pull = pull
        context.pull_title = pull.title
        context.changed_files = self.store.list_pull_files(source, number)
        self.logger.info("Fetched %d changed file(s) from '%s'", len(context.changed_files), pull.title)

    def _stage_classify_changes(self, context: RunContext) -> None:
        files = context.require("changed_files")
        classifier = ChangeClassifier(self.generator)
        analysis = classifier.classify(files, context.match_rules)
        context.code_analysis = analysis
        self.logger.info("Impacted areas: %s", ", ".join(analysis.impacted_areas) or "none")
        self.logger.debug("Change summary: %s", analysis.summary)

    def _stage_index_structure(self, context: RunContext) -> None:
        indexer = self._indexer(context)
        structure = indexer.build(context.docs_repo, context.config.docs.path, context.match_rules)
        context.doc_structure = indexer.enrich_references(structure, context.docs_repo)
        self.logger.debug("Documentation tree:\n%s", structure.file_tree)

    def _stage_plan_updates(self, context: RunContext) -> None:
        context.update_plan = UpdatePlanner(self.generator).plan(context)
        self.logger.info("Update plan: %s", context.update_plan.summary)

    def _stage_generate_content(self, context: RunContext) -> None:
        llm = context.config.llm
        generator = ContentGenerator(
            self.generator,
            self.store,
            style_guide=llm.style_guide,
            temperature=llm.temperature,
        )
        context.generated_content = generator.generate(context)

    def _stage_reconcile_navigation(self, context: RunContext) -> None:
        NavigationReconciler(self._indexer(context)).reconcile(context)

    def _stage_publish_update(self, context: RunContext) -> None:
        result = self.publisher.publish_update(context, context.require("source_pull"))
        if result is None:
            self.logger.info("Nothing to publish for %s", context.describe())

    # ------------------------------------------------------------------
    # Initial documentation stages

    def _stage_search_important_files(self, context: RunContext) -> bool:
        finder = ImportantFileFinder(self.store, max_files=context.config.initial.max_files)
        repo = RepoRef(owner=context.owner, repo=context.repo)
        source = RepoRef(owner=repo.owner, repo=repo.repo, branch=self.store.get_default_branch(repo))
        self.logger.debug("Searching %s at %s", source.full_name, source.branch)
        context.important_files = finder.find(source, context.match_rules)
        if not context.important_files:
            self.logger.warning("No important files found in %s", source.full_name)
        return bool(context.important_files)

    def _stage_plan_initial_docs(self, context: RunContext) -> bool:
        plan = InitialDocsPlanner(self.store).plan(context)
        context.update_plan = plan
        return bool(plan.updates)

    def _stage_generate_initial_docs(self, context: RunContext) -> None:
        cache = GenerationCache(
            self.store,
            context.docs_repo,
            context.config.initial.cache_path,
        ).load()
        generator = InitialDocsGenerator(
            self.generator,
            cache,
            temperature=context.config.llm.temperature,
        )
        context.generated_content = generator.generate(context)

    def _stage_publish_initial(self, context: RunContext) -> None:
        self.publisher.publish_initial(context)

    def _indexer(self, context: RunContext) -> StructureIndexer:
        return StructureIndexer(
            self.store,
            self.generator,
            manifest_name=context.config.docs.manifest,
        )


__all__ = ["Orchestrator"]
