"""Publish generated documentation as branches, commits, and pull requests."""

from __future__ import annotations

import posixpath
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..errors import NotFoundError
from ..logging import get_logger
from ..models import PlannedUpdate, PullRequest, RepoRef, RunContext
from .store import GitHubStore

INITIAL_PR_TITLE = "📚 Initial Project Documentation"


@dataclass
class PublishResult:
    """Where generated documentation ended up."""

    branch: str
    files: List[str] = field(default_factory=list)
    pull_number: Optional[int] = None
    url: Optional[str] = None


class Publisher:
    """Handles branch management and PR creation for documentation updates."""

    def __init__(self, store: GitHubStore) -> None:
        self.store = store
        self.logger = get_logger("publisher")

    @staticmethod
    def branch_name(prefix: str, head_ref: str, token: str | None = None) -> str:
        if token is None:
            token = str(int(time.time() * 1000))
        return f"{prefix}-{head_ref}-{token}"

    def publish_update(self, context: RunContext, source_pull: PullRequest) -> Optional[PublishResult]:
        """Open a documentation PR for ``source_pull``, or commit onto it.

        Returns None when there is nothing to publish.
        """
        generated = context.require("generated_content")
        plan = context.require("update_plan")
        if generated.is_empty:
            self.logger.info("No updates to process, skipping PR creation")
            return None

        publish = context.config.publish
        source_repo = RepoRef(owner=context.owner, repo=context.repo)
        docs_repo = context.docs_repo
        writes = self._pending_writes(context)

        if not publish.create_new_pr:
            if docs_repo.full_name == source_repo.full_name:
                return self._commit_to_source(context, source_pull, writes)
            self.logger.warning(
                "Docs live in %s; opening a new PR instead of committing to %s",
                docs_repo.full_name,
                source_repo.full_name,
            )

        base = self.store.get_default_branch(docs_repo)
        branch = self.branch_name(publish.branch_prefix, source_pull.head_ref)
        self._ensure_branch(docs_repo, branch, base)
        written = [self._upsert(docs_repo, path, content, message, branch) for path, content, message in writes]

        title = _render(publish.title_template, prTitle=source_pull.title, prNumber=str(source_pull.number))
        body = _render(
            publish.body_template,
            prTitle=source_pull.title,
            prNumber=str(source_pull.number),
            changes=render_changes(plan.updates),
        )
        pull = self.store.create_pull(docs_repo, title=title, body=body, head=branch, base=base)
        self.logger.info("Pull request created: %s", pull.html_url or f"#{pull.number}")

        if publish.labels:
            self.store.add_labels(docs_repo, pull.number, publish.labels)

        reference = f"#{pull.number}"
        if docs_repo.full_name != source_repo.full_name:
            reference = f"{docs_repo.full_name}#{pull.number}"
        self.store.create_comment(
            source_repo,
            source_pull.number,
            f"I've created a documentation update PR: {reference}",
        )
        context.pull_request_url = pull.html_url or None
        return PublishResult(branch=branch, files=written, pull_number=pull.number, url=pull.html_url or None)

    def publish_initial(self, context: RunContext) -> PublishResult:
        generated = context.require("generated_content")
        docs_repo = context.docs_repo
        base = docs_repo.branch
        branch = f"docs/init_{uuid.uuid4().hex[:8]}"
        self._ensure_branch(docs_repo, branch, base)

        written: List[str] = []
        for item in generated.files:
            path = posixpath.normpath(item.path.replace("\\", "/"))
            message = f"Add initial documentation for {posixpath.basename(path)}"
            written.append(self._upsert(docs_repo, path, item.content, message, branch))
        self.logger.info("Committed %d file(s) to %s", len(written), branch)

        listing = "\n- ".join(written)
        body = (
            "This PR adds the initial documentation for the project.\n\n"
            f"### 📂 New Files:\n- {listing}\n\n"
            "These documents provide an overview of key project files."
        )
        pull = self.store.create_pull(docs_repo, title=INITIAL_PR_TITLE, body=body, head=branch, base=base)
        self.logger.info("Pull request created: %s", pull.html_url or f"#{pull.number}")
        context.pull_request_url = pull.html_url or None
        return PublishResult(branch=branch, files=written, pull_number=pull.number, url=pull.html_url or None)

    # ------------------------------------------------------------------
    # Helpers

    def _commit_to_source(
        self,
        context: RunContext,
        source_pull: PullRequest,
        writes: Sequence[Tuple[str, str, str]],
    ) -> PublishResult:
        repo = context.docs_repo
        branch = source_pull.head_ref
        self.logger.info("Committing documentation onto %s", branch)
        written = [self._upsert(repo, path, content, message, branch) for path, content, message in writes]
        self.store.create_comment(
            RepoRef(owner=context.owner, repo=context.repo),
            source_pull.number,
            f"I've updated the documentation on this branch ({len(written)} file(s)).",
        )
        context.pull_request_url = source_pull.html_url or None
        return PublishResult(
            branch=branch,
            files=written,
            pull_number=source_pull.number,
            url=source_pull.html_url or None,
        )

    def _pending_writes(self, context: RunContext) -> List[Tuple[str, str, str]]:
        generated = context.require("generated_content")
        writes = [(item.path, item.content, item.reason) for item in generated.files]
        navigation = generated.navigation_update
        if navigation is not None:
            writes.append(
                (
                    navigation.path,
                    navigation.content,
                    f"Update navigation structure ({len(navigation.changes)} changes)",
                )
            )
        return writes

    def _ensure_branch(self, repo: RepoRef, branch: str, base: str) -> None:
        if self.store.branch_exists(repo, branch):
            self.logger.info("Branch %s already exists, reusing it", branch)
            return
        sha = self.store.get_branch_sha(repo, base)
        self.store.create_branch(repo, branch, sha)
        self.logger.info("Created branch %s from %s", branch, base)

    def _upsert(self, repo: RepoRef, path: str, content: str, message: str, branch: str) -> str:
        sha: Optional[str] = None
        try:
            sha = self.store.get_file(repo, path, ref=branch).sha
        except NotFoundError:
            self.logger.debug("%s does not exist on %s; creating it", path, branch)
        self.store.put_file(repo, path, content, message=message, branch=branch, sha=sha)
        return path


def render_changes(updates: Sequence[PlannedUpdate]) -> str:
    return "\n".join(f"- {update.reason} ({update.priority} priority)" for update in updates)


def _render(template: str, **values: str) -> str:
    rendered = template
    for key, value in values.items():
        rendered = rendered.replace(f"{{{key}}}", value)
    return rendered


__all__ = ["INITIAL_PR_TITLE", "PublishResult", "Publisher", "render_changes"]
