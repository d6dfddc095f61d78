"""Generate documentation bodies for planned updates."""

from __future__ import annotations

import posixpath
from typing import Optional

from .errors import CollaboratorError, NotFoundError, PreconditionError
from .git.store import GitHubStore
from .llm.structured import TextGenerator, strip_fences
from .logging import get_logger
from .models import (
    DocStructure,
    GeneratedContent,
    GeneratedFile,
    PlannedUpdate,
    RepoRef,
    RunContext,
)
from .prompting.builder import PromptBuilder, PromptRequest
from .stores.generation_cache import GenerationCache


class ContentGenerator:
    """Produces MDX for each planned update of a pull request run."""

    def __init__(
        self,
        generator: TextGenerator,
        store: GitHubStore,
        *,
        style_guide: str | None = None,
        temperature: Optional[float] = 0.3,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.generator = generator
        self.store = store
        self.temperature = temperature
        self.prompt_builder = prompt_builder or PromptBuilder(style_guide=style_guide)
        self.logger = get_logger("generation")

    def generate(self, context: RunContext) -> GeneratedContent:
        plan = context.require("update_plan")
        structure = context.require("doc_structure")
        analysis = context.require("code_analysis")

        content = GeneratedContent()
        for update in plan.updates:
            self.logger.info("Generating %s (%s, %s priority)", update.path, update.type, update.priority)
            existing: Optional[str] = None
            template: Optional[str] = None
            if update.type == "update":
                existing = self._read_optional(context.docs_repo, update.path)
                if existing is None:
                    self.logger.debug("No existing content found for %s", update.path)
            else:
                template_path = find_template(structure, update)
                if template_path is not None:
                    self.logger.debug("Using %s as template for %s", template_path, update.path)
                    template = self._read_optional(context.docs_repo, template_path)

            request = self.prompt_builder.content(
                update,
                structure,
                analysis,
                existing=existing,
                template=template,
            )
            body = _complete(self.generator, request, self.temperature, update.path)
            content.files.append(
                GeneratedFile(path=update.path, content=body, type=update.type, reason=update.reason)
            )
        return content

    def _read_optional(self, repo: RepoRef, path: str) -> Optional[str]:
        try:
            return self.store.get_file(repo, path).content
        except NotFoundError:
            return None


class InitialDocsGenerator:
    """Generates first-time docs, reusing cached bodies from earlier runs."""

    def __init__(
        self,
        generator: TextGenerator,
        cache: GenerationCache,
        *,
        temperature: Optional[float] = 0.3,
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.generator = generator
        self.cache = cache
        self.temperature = temperature
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("generation.initial")

    def generate(self, context: RunContext) -> GeneratedContent:
        plan = context.require("update_plan")
        if not plan.updates:
            raise PreconditionError("No planned documentation updates found")

        content = GeneratedContent()
        reused = 0
        for update in plan.updates:
            source = update.source_files[0] if update.source_files else update.path
            body = self.cache.get(update.path)
            if body is not None:
                reused += 1
                self.logger.debug("Reusing cached documentation for %s", update.path)
            else:
                self.logger.info("Generating documentation for %s", source)
                request = self.prompt_builder.initial_doc(update, owner=context.owner, repo=context.repo)
                body = _complete(self.generator, request, self.temperature, source)
                self.cache.store(update.path, body)
            content.files.append(
                GeneratedFile(
                    path=update.path,
                    content=body,
                    type="create",
                    reason=f"Generated structured documentation for {source}",
                )
            )

        self.logger.info("Generated %d file(s), %d from cache", len(content.files), reused)
        self.cache.persist()
        return content


def find_template(structure: DocStructure, update: PlannedUpdate) -> Optional[str]:
    """First existing doc in the target's category, excluding the target itself."""
    category = posixpath.basename(posixpath.dirname(update.path))
    for doc in structure.files:
        if doc.category == category and doc.path != update.path:
            return doc.path
    return None


def _complete(
    generator: TextGenerator,
    request: PromptRequest,
    temperature: Optional[float],
    label: str,
) -> str:
    try:
        raw = generator.run(request.prompt, system=request.system, temperature=temperature)
    except CollaboratorError:
        raise
    except Exception as exc:
        raise CollaboratorError(f"Failed to generate documentation for {label}: {exc}") from exc
    body = strip_fences(raw or "")
    if not body:
        raise CollaboratorError(f"Failed to generate documentation for {label}")
    return body


__all__ = ["ContentGenerator", "InitialDocsGenerator", "find_template"]
