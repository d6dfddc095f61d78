"""Tests for the documentation structure indexer."""

from __future__ import annotations

import json

import pytest

from docsync.analyzers.structure import StructureIndexer
from docsync.config import DocSyncConfig
from docsync.errors import CollaboratorError, NotFoundError, RepositoryError
from docsync.models import RepoRef
from tests._fixtures.fakes import DOC_REFERENCES, FakeStore, StubGenerator

DOCS_REPO = RepoRef(owner="acme", repo="app", branch="main")
MANIFEST = {
    "name": "Acme",
    "navigation": [
        {"group": "Get Started", "pages": ["introduction"]},
        {"group": "Guides", "pages": ["guides/billing", "guides/billing"]},
        {"pages": ["orphan"]},
    ],
}


@pytest.fixture
def docs_store() -> FakeStore:
    return FakeStore(
        {
            "docs/mint.json": json.dumps(MANIFEST),
            "docs/introduction.mdx": "---\ntitle: Intro\n---",
            "docs/guides/billing.mdx": "---\ntitle: Billing\n---",
            "docs/api/users.md": "# Users",
            "docs/images/logo.png": "png",
            "src/index.ts": "export {}",
        }
    )


def test_build_indexes_files_categories_and_navigation(docs_store: FakeStore) -> None:
    rules = DocSyncConfig().match_rules()

    structure = StructureIndexer(docs_store).build(DOCS_REPO, "docs", rules)

    assert [doc.path for doc in structure.files] == [
        "docs/introduction.mdx",
        "docs/guides/billing.mdx",
        "docs/api/users.md",
    ]
    assert [doc.category for doc in structure.files] == ["docs", "guides", "api"]
    assert structure.categories == ["guides", "api", "images"]
    assert [group.to_dict() for group in structure.navigation] == [
        {"group": "Get Started", "pages": ["introduction"]},
        {"group": "Guides", "pages": ["guides/billing"]},
    ]
    assert structure.file_tree == (
        "📄 docs/mint.json\n"
        "📄 docs/introduction.mdx\n"
        "📁 docs/guides\n"
        "  📄 docs/guides/billing.mdx\n"
        "📁 docs/api\n"
        "  📄 docs/api/users.md\n"
        "📁 docs/images\n"
        "  📄 docs/images/logo.png\n"
    )


def test_build_skips_unreadable_directories(docs_store: FakeStore) -> None:
    docs_store.failures["docs/api"] = RepositoryError("boom", status=500)

    structure = StructureIndexer(docs_store).build(DOCS_REPO, "docs", DocSyncConfig().match_rules())

    assert "docs/api/users.md" not in [doc.path for doc in structure.files]
    assert "api" in structure.categories


def test_build_returns_empty_structure_when_root_is_missing() -> None:
    structure = StructureIndexer(FakeStore()).build(DOCS_REPO, "docs", DocSyncConfig().match_rules())

    assert structure.files == []
    assert structure.categories == []
    assert structure.file_tree == ""


def test_build_tolerates_invalid_manifest(docs_store: FakeStore) -> None:
    docs_store.add_file("docs/mint.json", "{not json")

    structure = StructureIndexer(docs_store).build(DOCS_REPO, "docs", DocSyncConfig().match_rules())

    assert structure.navigation == []
    assert len(structure.files) == 3


def test_load_manifest_prefers_docs_root(docs_store: FakeStore) -> None:
    docs_store.add_file("mint.json", json.dumps({"navigation": []}))

    manifest = StructureIndexer(docs_store).load_manifest(DOCS_REPO, "docs")

    assert manifest.path == "docs/mint.json"
    assert manifest.data["name"] == "Acme"
    assert manifest.sha


def test_load_manifest_falls_back_to_repository_root() -> None:
    store = FakeStore({"mint.json": json.dumps({"navigation": [{"group": "A", "pages": ["a"]}]})})

    manifest = StructureIndexer(store).load_manifest(DOCS_REPO, "docs")

    assert manifest.path == "mint.json"
    assert [group.group for group in manifest.navigation] == ["A"]


def test_load_manifest_raises_when_missing_everywhere() -> None:
    with pytest.raises(NotFoundError):
        StructureIndexer(FakeStore()).load_manifest(DOCS_REPO, "docs")


def test_load_manifest_rejects_invalid_json() -> None:
    store = FakeStore({"docs/mint.json": "[1, 2"})

    with pytest.raises(CollaboratorError):
        StructureIndexer(store).load_manifest(DOCS_REPO, "docs")


def test_enrich_references_collects_paths_and_skips_failures(docs_store: FakeStore) -> None:
    def reply(prompt: str) -> dict:
        if "guides/billing" in prompt:
            raise RuntimeError("model offline")
        return {"codeFiles": ["src/index.ts"], "relatedDocs": ["docs/api/users.md", "src/index.ts"]}

    generator = StubGenerator({DOC_REFERENCES: reply})
    indexer = StructureIndexer(docs_store, generator)
    structure = indexer.build(DOCS_REPO, "docs", DocSyncConfig().match_rules())

    indexer.enrich_references(structure, DOCS_REPO)

    assert structure.find("docs/introduction.mdx").references == ["src/index.ts", "docs/api/users.md"]
    assert structure.find("docs/guides/billing.mdx").references == []
