from __future__ import annotations

import json

import pytest

from docsync.errors import CacheError, RepositoryError
from docsync.models import RepoRef
from docsync.stores.generation_cache import DEFAULT_CACHE_PATH, GenerationCache
from tests._fixtures.fakes import FakeStore, content_sha

DOCS = RepoRef(owner="acme", repo="docs", branch="main")


def _store_with_cache(payload: object) -> FakeStore:
    store = FakeStore(repo="acme/docs")
    store.add_file(DEFAULT_CACHE_PATH, json.dumps(payload), repo="acme/docs")
    return store


def test_missing_cache_loads_empty() -> None:
    cache = GenerationCache(FakeStore(repo="acme/docs"), DOCS).load()

    assert len(cache) == 0
    assert cache.get("docs/a.md") is None


def test_load_reads_versioned_and_bare_payloads() -> None:
    versioned = GenerationCache(
        _store_with_cache({"version": 1, "entries": {"docs/a.md": "# A"}}), DOCS
    ).load()
    bare = GenerationCache(_store_with_cache({"docs/b.md": "# B", "bad": 3}), DOCS).load()

    assert versioned.get("docs/a.md") == "# A"
    assert "docs/b.md" in bare
    assert "bad" not in bare


@pytest.mark.parametrize(
    "content",
    ["{broken", json.dumps(["docs/a.md"]), json.dumps({"version": 2, "entries": {}})],
)
def test_load_rejects_unreadable_payloads(content: str) -> None:
    store = FakeStore(repo="acme/docs")
    store.add_file(DEFAULT_CACHE_PATH, content, repo="acme/docs")

    with pytest.raises(CacheError):
        GenerationCache(store, DOCS).load()


def test_load_wraps_store_failures() -> None:
    store = FakeStore(repo="acme/docs")
    store.failures[DEFAULT_CACHE_PATH] = RepositoryError("rate limited", status=403)

    with pytest.raises(CacheError, match="rate limited"):
        GenerationCache(store, DOCS).load()


def test_persist_writes_only_when_dirty() -> None:
    initial = {"version": 1, "entries": {"docs/a.md": "# A"}}
    store = _store_with_cache(initial)
    cache = GenerationCache(store, DOCS).load()

    cache.store("docs/a.md", "# A")
    assert cache.persist() is True
    assert store.writes == []

    cache.store("docs/b.md", "# B")
    assert cache.persist() is True

    write = store.writes[0]
    assert write["path"] == DEFAULT_CACHE_PATH
    assert write["branch"] == "main"
    assert write["sha"] == content_sha(json.dumps(initial))
    assert json.loads(write["content"]) == {
        "version": 1,
        "entries": {"docs/a.md": "# A", "docs/b.md": "# B"},
    }


def test_persisted_cache_round_trips() -> None:
    store = FakeStore(repo="acme/docs")
    cache = GenerationCache(store, DOCS).load()
    cache.store("docs/a.md", "# A")
    cache.persist()

    reloaded = GenerationCache(store, DOCS).load()

    assert reloaded.get("docs/a.md") == "# A"


def test_persist_failure_is_reported() -> None:
    store = FakeStore(repo="acme/docs")
    store.write_failures[DEFAULT_CACHE_PATH] = RepositoryError("conflict", status=409)
    cache = GenerationCache(store, DOCS).load()
    cache.store("docs/a.md", "# A")

    assert cache.persist() is False
