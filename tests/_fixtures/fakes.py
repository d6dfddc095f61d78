"""In-memory collaborators for pipeline tests."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

from docsync.errors import NotFoundError
from docsync.git.store import RemoteEntry, RemoteFile
from docsync.models import ChangedFile, PullRequest, RepoRef

# Substrings of the fixed system prompts, used to route stub replies.
CHANGE_ANALYSIS = "code analysis expert"
DOC_REFERENCES = "documentation analyzer"
UPDATE_PLAN = "documentation planning expert"
CONTENT = "Mintlify MDX"
INITIAL_DOC = "Generate structured MDX"


def content_sha(content: str) -> str:
    return hashlib.sha1(content.encode("utf-8")).hexdigest()


class FakeStore:
    """Dictionary-backed stand-in for ``GitHubStore``.

    Trees are keyed by ``(owner/repo, branch)``. ``failures`` maps a path to
    the exception raised when it is read or listed.
    """

    def __init__(
        self,
        files: Optional[Dict[str, str]] = None,
        *,
        repo: str = "acme/app",
        branch: str = "main",
    ) -> None:
        self.trees: Dict[Tuple[str, str], Dict[str, str]] = {(repo, branch): dict(files or {})}
        self.default_branches: Dict[str, str] = {repo: branch}
        self.failures: Dict[str, Exception] = {}
        self.write_failures: Dict[str, Exception] = {}
        self.pulls: Dict[Tuple[str, int], PullRequest] = {}
        self.pull_files: Dict[Tuple[str, int], List[ChangedFile]] = {}
        self.writes: List[Dict[str, Any]] = []
        self.created_branches: List[Tuple[str, str]] = []
        self.created_pulls: List[Dict[str, Any]] = []
        self.labels: List[Tuple[str, int, List[str]]] = []
        self.comments: List[Tuple[str, int, str]] = []

    # ------------------------------------------------------------------
    # Test helpers

    def add_file(self, path: str, content: str, *, repo: str = "acme/app", branch: str = "main") -> None:
        self.trees.setdefault((repo, branch), {})[path] = content

    def add_pull(
        self,
        pull: PullRequest,
        files: Sequence[ChangedFile],
        *,
        repo: str = "acme/app",
    ) -> None:
        self.pulls[(repo, pull.number)] = pull
        self.pull_files[(repo, pull.number)] = list(files)

    def tree(self, repo: str = "acme/app", branch: str = "main") -> Dict[str, str]:
        return self.trees.get((repo, branch), {})

    # ------------------------------------------------------------------
    # Store protocol

    def get_file(self, repo: RepoRef, path: str, ref: str | None = None) -> RemoteFile:
        self._maybe_fail(path)
        tree = self.trees.get((repo.full_name, ref or repo.branch), {})
        if path not in tree:
            raise NotFoundError(f"{path} not found")
        content = tree[path]
        return RemoteFile(path=path, content=content, sha=content_sha(content))

    def exists(self, repo: RepoRef, path: str, ref: str | None = None) -> bool:
        try:
            self.get_file(repo, path, ref)
        except NotFoundError:
            return False
        return True

    def list_directory(self, repo: RepoRef, path: str, ref: str | None = None) -> List[RemoteEntry]:
        prefix = path.strip("/")
        self._maybe_fail(prefix)
        tree = self.trees.get((repo.full_name, ref or repo.branch), {})
        entries: Dict[str, RemoteEntry] = {}
        for key in tree:
            if prefix:
                if not key.startswith(f"{prefix}/"):
                    continue
                rest = key[len(prefix) + 1 :]
            else:
                rest = key
            name = rest.split("/")[0]
            entry_path = f"{prefix}/{name}" if prefix else name
            kind = "dir" if "/" in rest else "file"
            entries.setdefault(name, RemoteEntry(name=name, path=entry_path, type=kind))
        if not entries:
            raise NotFoundError(f"{path} not found")
        return list(entries.values())

    def put_file(
        self,
        repo: RepoRef,
        path: str,
        content: str,
        *,
        message: str,
        branch: str,
        sha: str | None = None,
    ) -> str:
        if path in self.write_failures:
            raise self.write_failures[path]
        self.writes.append(
            {
                "repo": repo.full_name,
                "path": path,
                "content": content,
                "message": message,
                "branch": branch,
                "sha": sha,
            }
        )
        self.trees.setdefault((repo.full_name, branch), {})[path] = content
        return content_sha(content)

    def get_default_branch(self, repo: RepoRef) -> str:
        return self.default_branches.get(repo.full_name, "main")

    def get_branch_sha(self, repo: RepoRef, branch: str) -> str:
        if (repo.full_name, branch) not in self.trees:
            raise NotFoundError(f"branch {branch} not found")
        return f"sha-{branch}"

    def branch_exists(self, repo: RepoRef, branch: str) -> bool:
        return (repo.full_name, branch) in self.trees

    def create_branch(self, repo: RepoRef, branch: str, sha: str) -> None:
        base = sha[len("sha-") :]
        self.trees[(repo.full_name, branch)] = dict(self.trees.get((repo.full_name, base), {}))
        self.created_branches.append((repo.full_name, branch))

    def get_pull(self, repo: RepoRef, number: int) -> PullRequest:
        try:
            return self.pulls[(repo.full_name, number)]
        except KeyError:
            raise NotFoundError(f"pull {number} not found") from None

    def list_pull_files(self, repo: RepoRef, number: int) -> List[ChangedFile]:
        return list(self.pull_files.get((repo.full_name, number), []))

    def create_pull(self, repo: RepoRef, *, title: str, body: str, head: str, base: str) -> PullRequest:
        number = 100 + len(self.created_pulls)
        self.created_pulls.append(
            {"repo": repo.full_name, "title": title, "body": body, "head": head, "base": base}
        )
        return PullRequest(
            number=number,
            title=title,
            head_ref=head,
            base_ref=base,
            html_url=f"https://github.com/{repo.full_name}/pull/{number}",
        )

    def add_labels(self, repo: RepoRef, number: int, labels: Sequence[str]) -> None:
        self.labels.append((repo.full_name, number, list(labels)))

    def create_comment(self, repo: RepoRef, number: int, body: str) -> None:
        self.comments.append((repo.full_name, number, body))

    def _maybe_fail(self, path: str) -> None:
        if path in self.failures:
            raise self.failures[path]


Reply = Any


class StubGenerator:
    """Scripted text generator.

    ``routes`` maps a substring of the system prompt to a reply: a string, a
    dict (returned as JSON), an exception instance (raised), or a callable
    taking the user prompt.
    """

    def __init__(self, routes: Optional[Dict[str, Reply]] = None, default: Reply = "{}") -> None:
        self.routes = dict(routes or {})
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> str:
        self.calls.append(
            {"prompt": prompt, "system": system, "temperature": temperature, "json_mode": json_mode}
        )
        reply = self.default
        for key, value in self.routes.items():
            if key in (system or ""):
                reply = value
                break
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        if isinstance(reply, (dict, list)):
            return json.dumps(reply)
        return str(reply)

    def calls_for(self, key: str) -> List[Dict[str, Any]]:
        return [call for call in self.calls if key in (call["system"] or "")]
