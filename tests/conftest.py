from __future__ import annotations

import pytest

from docsync.config import DocSyncConfig
from docsync.models import RunContext
from tests._fixtures.fakes import FakeStore, StubGenerator


@pytest.fixture
def store() -> FakeStore:
    """Provide an empty in-memory repository store for acme/app."""
    return FakeStore()


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()


@pytest.fixture
def make_context():
    """Build a run context for acme/app from an optional config."""

    def _make(config: DocSyncConfig | None = None, pull_number: int | None = None) -> RunContext:
        config = config or DocSyncConfig()
        return RunContext(
            owner="acme",
            repo="app",
            config=config,
            docs_repo=config.docs_repo_for("acme", "app"),
            match_rules=config.match_rules(),
            pull_number=pull_number,
        )

    return _make
