"""Persistent cache for generated documentation bodies."""

from __future__ import annotations

import json
from typing import Dict, Optional

from ..errors import CacheError, CollaboratorError, NotFoundError
from ..git.store import GitHubStore
from ..logging import get_logger
from ..models import RepoRef

_CACHE_VERSION = 1

DEFAULT_CACHE_PATH = ".docsync/generation-cache.json"


class GenerationCache:
    """Stores generated bodies keyed by target documentation path.

    The cache is a single JSON object in the docs repository. Writes pass the
    revision marker read by ``load`` so concurrent runs resolve as last
    writer wins on the hosting side.
    """

    def __init__(
        self,
        store: GitHubStore,
        docs_repo: RepoRef,
        path: str = DEFAULT_CACHE_PATH,
    ) -> None:
        self._store = store
        self.docs_repo = docs_repo
        self.path = path
        self._entries: Dict[str, str] = {}
        self._sha: Optional[str] = None
        self._dirty = False
        self.logger = get_logger("stores.generation_cache")

    def load(self) -> "GenerationCache":
        try:
            remote = self._store.get_file(self.docs_repo, self.path)
        except NotFoundError:
            self.logger.debug("No generation cache at %s; starting empty", self.path)
            self._entries = {}
            self._sha = None
            return self
        except CollaboratorError as exc:
            raise CacheError(f"Failed to read generation cache {self.path}: {exc}") from exc

        try:
            data = json.loads(remote.content)
        except json.JSONDecodeError as exc:
            raise CacheError(f"Generation cache {self.path} is not valid JSON: {exc}") from exc
        self._entries = _entries_from_payload(data, self.path)
        self._sha = remote.sha or None
        self._dirty = False
        self.logger.debug("Loaded %d cached document(s)", len(self._entries))
        return self

    def get(self, path: str) -> Optional[str]:
        return self._entries.get(path)

    def store(self, path: str, body: str) -> None:
        if self._entries.get(path) == body:
            return
        self._entries[path] = body
        self._dirty = True

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def persist(self) -> bool:
        """Write the cache back; failures are logged and reported as False."""
        if not self._dirty:
            return True
        payload = {"version": _CACHE_VERSION, "entries": self._entries}
        try:
            self._sha = self._store.put_file(
                self.docs_repo,
                self.path,
                json.dumps(payload, indent=2, sort_keys=True),
                message="Update docsync generation cache",
                branch=self.docs_repo.branch,
                sha=self._sha,
            ) or self._sha
        except CollaboratorError as exc:
            self.logger.warning("Failed to persist generation cache %s: %s", self.path, exc)
            return False
        self._dirty = False
        return True


def _entries_from_payload(data: object, path: str) -> Dict[str, str]:
    if not isinstance(data, dict):
        raise CacheError(f"Generation cache {path} must contain a JSON object")
    if "entries" in data and "version" in data:
        if data.get("version") != _CACHE_VERSION:
            raise CacheError(f"Unsupported generation cache version {data.get('version')!r}")
        data = data.get("entries")
        if not isinstance(data, dict):
            raise CacheError(f"Generation cache {path} entries must be an object")
    return {key: value for key, value in data.items() if isinstance(key, str) and isinstance(value, str)}


__all__ = ["DEFAULT_CACHE_PATH", "GenerationCache"]
