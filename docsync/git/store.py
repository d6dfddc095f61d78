"""GitHub REST access for file, branch, and pull request operations."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from ..errors import NotFoundError, RepositoryError
from ..logging import get_logger
from ..models import ChangedFile, PullRequest, RepoRef

_PAGE_SIZE = 100


@dataclass
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str]
    payload: Optional[Dict[str, Any]] = None


@dataclass
class HttpResponse:
    status: int
    body: Any = None


@dataclass(frozen=True)
class RemoteFile:
    """File content together with its revision marker."""

    path: str
    content: str
    sha: str


@dataclass(frozen=True)
class RemoteEntry:
    """A directory listing entry; ``type`` is ``file`` or ``dir``."""

    name: str
    path: str
    type: str


class GitHubStore:
    """Thin client over the GitHub contents, refs, pulls, and issues APIs."""

    DEFAULT_API_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str | None = None,
        request_timeout: float = 30.0,
        runner: Callable[[HttpRequest], HttpResponse] | None = None,
    ) -> None:
        self.token = token
        self.api_url = (api_url or self.DEFAULT_API_URL).rstrip("/")
        self.request_timeout = request_timeout
        self._runner = runner or self._http_runner
        self.logger = get_logger("store")

    # ------------------------------------------------------------------
    # Contents

    def get_file(self, repo: RepoRef, path: str, ref: str | None = None) -> RemoteFile:
        body = self._request(
            "GET",
            self._contents_url(repo, path),
            query={"ref": ref or repo.branch},
        )
        if not isinstance(body, dict) or "content" not in body:
            raise RepositoryError(f"{path} is a directory or has no content")
        raw = str(body.get("content") or "")
        content = base64.b64decode(raw.encode("ascii")).decode("utf-8") if raw else ""
        return RemoteFile(path=str(body.get("path") or path), content=content, sha=str(body.get("sha") or ""))

    def exists(self, repo: RepoRef, path: str, ref: str | None = None) -> bool:
        """Return False on not-found; every other error propagates."""
        try:
            self._request("GET", self._contents_url(repo, path), query={"ref": ref or repo.branch})
        except NotFoundError:
            return False
        return True

    def list_directory(self, repo: RepoRef, path: str, ref: str | None = None) -> List[RemoteEntry]:
        body = self._request(
            "GET",
            self._contents_url(repo, path),
            query={"ref": ref or repo.branch},
        )
        items = body if isinstance(body, list) else [body]
        entries: List[RemoteEntry] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            item_path = item.get("path")
            if not isinstance(name, str) or not isinstance(item_path, str):
                continue
            entries.append(RemoteEntry(name=name, path=item_path, type=str(item.get("type") or "file")))
        return entries

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
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if sha:
            payload["sha"] = sha
        body = self._request("PUT", self._contents_url(repo, path), payload=payload)
        content_meta = body.get("content") if isinstance(body, dict) else None
        if isinstance(content_meta, dict):
            return str(content_meta.get("sha") or "")
        return ""

    # ------------------------------------------------------------------
    # Branches

    def get_default_branch(self, repo: RepoRef) -> str:
        body = self._request("GET", self._repo_url(repo))
        if isinstance(body, dict) and isinstance(body.get("default_branch"), str):
            return body["default_branch"]
        return repo.branch

    def get_branch_sha(self, repo: RepoRef, branch: str) -> str:
        body = self._request("GET", f"{self._repo_url(repo)}/git/ref/heads/{quote(branch, safe='/')}")
        obj = body.get("object") if isinstance(body, dict) else None
        if not isinstance(obj, dict) or not obj.get("sha"):
            raise RepositoryError(f"Branch {branch} has no commit sha")
        return str(obj["sha"])

    def branch_exists(self, repo: RepoRef, branch: str) -> bool:
        try:
            self.get_branch_sha(repo, branch)
        except NotFoundError:
            return False
        return True

    def create_branch(self, repo: RepoRef, branch: str, sha: str) -> None:
        self._request(
            "POST",
            f"{self._repo_url(repo)}/git/refs",
            payload={"ref": f"refs/heads/{branch}", "sha": sha},
        )

    # ------------------------------------------------------------------
    # Pull requests and issues

    def get_pull(self, repo: RepoRef, number: int) -> PullRequest:
        body = self._request("GET", f"{self._repo_url(repo)}/pulls/{number}")
        return _pull_from_payload(body)

    def list_pull_files(self, repo: RepoRef, number: int) -> List[ChangedFile]:
        files: List[ChangedFile] = []
        page = 1
        while True:
            body = self._request(
                "GET",
                f"{self._repo_url(repo)}/pulls/{number}/files",
                query={"per_page": str(_PAGE_SIZE), "page": str(page)},
            )
            items = body if isinstance(body, list) else []
            for item in items:
                if not isinstance(item, dict) or not isinstance(item.get("filename"), str):
                    continue
                patch = item.get("patch")
                files.append(
                    ChangedFile(
                        filename=item["filename"],
                        status=str(item.get("status") or "modified"),
                        patch=patch if isinstance(patch, str) else None,
                    )
                )
            if len(items) < _PAGE_SIZE:
                return files
            page += 1

    def create_pull(self, repo: RepoRef, *, title: str, body: str, head: str, base: str) -> PullRequest:
        payload = {"title": title, "body": body, "head": head, "base": base}
        response = self._request("POST", f"{self._repo_url(repo)}/pulls", payload=payload)
        return _pull_from_payload(response)

    def add_labels(self, repo: RepoRef, number: int, labels: Sequence[str]) -> None:
        self._request(
            "POST",
            f"{self._repo_url(repo)}/issues/{number}/labels",
            payload={"labels": list(labels)},
        )

    def create_comment(self, repo: RepoRef, number: int, body: str) -> None:
        self._request(
            "POST",
            f"{self._repo_url(repo)}/issues/{number}/comments",
            payload={"body": body},
        )

    # ------------------------------------------------------------------
    # Helpers

    def _repo_url(self, repo: RepoRef) -> str:
        return f"{self.api_url}/repos/{quote(repo.owner)}/{quote(repo.repo)}"

    def _contents_url(self, repo: RepoRef, path: str) -> str:
        return f"{self._repo_url(repo)}/contents/{quote(path.strip('/'), safe='/')}"

    def _request(
        self,
        method: str,
        url: str,
        *,
        query: Dict[str, str] | None = None,
        payload: Dict[str, Any] | None = None,
    ) -> Any:
        if query:
            url = f"{url}?{urlencode(query)}"
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        self.logger.debug("%s %s", method, url)
        response = self._runner(HttpRequest(method=method, url=url, headers=headers, payload=payload))
        if response.status == 404:
            raise NotFoundError(f"{method} {url} returned 404")
        if response.status >= 400:
            message = f"{method} {url} failed with status {response.status}"
            if isinstance(response.body, dict) and response.body.get("message"):
                message = f"{message}: {response.body['message']}"
            raise RepositoryError(message, status=response.status)
        return response.body

    def _http_runner(self, request: HttpRequest) -> HttpResponse:
        data = None
        headers = dict(request.headers)
        if request.payload is not None:
            data = json.dumps(request.payload).encode("utf-8")
            headers["Content-Type"] = "application/json"
        http_request = Request(request.url, data=data, headers=headers, method=request.method)
        try:
            with urlopen(http_request, timeout=self.request_timeout) as response:  # type: ignore[arg-type]
                status = response.status
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read() if hasattr(exc, "read") else b""
            return HttpResponse(status=exc.code, body=_decode_body(detail))
        except URLError as exc:  # pragma: no cover - depends on network
            raise RepositoryError(f"{request.method} {request.url} failed: {exc.reason}") from exc
        return HttpResponse(status=status, body=_decode_body(raw))


def _decode_body(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None


def _pull_from_payload(body: Any) -> PullRequest:
    if not isinstance(body, dict):
        raise RepositoryError("Pull request payload is not an object")
    head = body.get("head") if isinstance(body.get("head"), dict) else {}
    base = body.get("base") if isinstance(body.get("base"), dict) else {}
    labels = [
        str(label.get("name"))
        for label in body.get("labels") or []
        if isinstance(label, dict) and label.get("name")
    ]
    return PullRequest(
        number=int(body.get("number") or 0),
        title=str(body.get("title") or ""),
        head_ref=str(head.get("ref") or ""),
        base_ref=str(base.get("ref") or ""),
        html_url=str(body.get("html_url") or ""),
        labels=labels,
    )


__all__ = [
    "GitHubStore",
    "HttpRequest",
    "HttpResponse",
    "RemoteEntry",
    "RemoteFile",
]
