from __future__ import annotations

import json

import pytest

from docsync.analyzers.structure import StructureIndexer
from docsync.errors import PreconditionError
from docsync.models import (
    DocStructure,
    GeneratedContent,
    NavigationChange,
    NavigationGroup,
    UpdatePlan,
)
from docsync.navigation import NavigationReconciler, apply_navigation_changes


def _groups(**groups: list[str]) -> list[NavigationGroup]:
    return [NavigationGroup(group=name, pages=list(pages)) for name, pages in groups.items()]


def _as_dict(groups: list[NavigationGroup]) -> dict[str, list[str]]:
    return {group.group: group.pages for group in groups}


def test_add_creates_missing_group_and_is_idempotent() -> None:
    change = NavigationChange(operation="add", page="guides/billing", group="Guides")

    once = apply_navigation_changes([], [change])
    twice = apply_navigation_changes([], [change, change])

    assert _as_dict(once) == {"Guides": ["guides/billing"]}
    assert _as_dict(twice) == _as_dict(once)


def test_add_matches_group_names_case_insensitively() -> None:
    navigation = _groups(Guides=["guides/intro"])

    result = apply_navigation_changes(
        navigation, [NavigationChange(operation="add", page="guides/billing", group="guides")]
    )

    assert _as_dict(result) == {"Guides": ["guides/intro", "guides/billing"]}


def test_remove_deletes_group_when_it_becomes_empty() -> None:
    navigation = _groups(Guides=["guides/intro"], API=["api/users"])

    result = apply_navigation_changes(
        navigation, [NavigationChange(operation="remove", page="guides/intro", group="Guides")]
    )

    assert _as_dict(result) == {"API": ["api/users"]}


def test_remove_applied_twice_matches_single_application() -> None:
    navigation = _groups(Guides=["guides/intro", "guides/billing"], API=["api/users"])
    change = NavigationChange(operation="remove", page="guides/intro", group="Guides")

    once = apply_navigation_changes(navigation, [change])
    twice = apply_navigation_changes(navigation, [change, change])

    assert _as_dict(once) == {"Guides": ["guides/billing"], "API": ["api/users"]}
    assert _as_dict(twice) == _as_dict(once)


def test_remove_of_last_page_applied_twice_matches_single_application() -> None:
    navigation = _groups(Guides=["guides/intro"], API=["api/users"])
    change = NavigationChange(operation="remove", page="guides/intro", group="Guides")

    once = apply_navigation_changes(navigation, [change])
    twice = apply_navigation_changes(navigation, [change, change])

    assert _as_dict(once) == {"API": ["api/users"]}
    assert _as_dict(twice) == _as_dict(once)


def test_remove_from_missing_group_is_skipped() -> None:
    navigation = _groups(Guides=["guides/intro"])

    result = apply_navigation_changes(
        navigation, [NavigationChange(operation="remove", page="guides/intro", group="Missing")]
    )

    assert _as_dict(result) == {"Guides": ["guides/intro"]}


def test_move_relocates_page_and_drops_emptied_source() -> None:
    navigation = _groups(A=["p"], B=[])

    result = apply_navigation_changes(
        navigation, [NavigationChange(operation="move", page="p", group="B")]
    )

    assert _as_dict(result) == {"B": ["p"]}


def test_move_applied_twice_matches_single_application() -> None:
    navigation = _groups(A=["p", "q"], B=["r"])
    change = NavigationChange(operation="move", page="p", group="B")

    once = apply_navigation_changes(navigation, [change])
    twice = apply_navigation_changes(navigation, [change, change])

    assert _as_dict(once) == {"A": ["q"], "B": ["r", "p"]}
    assert _as_dict(twice) == _as_dict(once)


def test_move_without_target_group_is_skipped() -> None:
    navigation = _groups(A=["p"])

    result = apply_navigation_changes(
        navigation, [NavigationChange(operation="move", page="p", group="Nowhere")]
    )

    assert _as_dict(result) == {"A": ["p"]}


def test_changes_apply_left_to_right() -> None:
    changes = [
        NavigationChange(operation="add", page="guides/new", group="Guides"),
        NavigationChange(operation="add", page="api/new", group="API"),
        NavigationChange(operation="move", page="guides/new", group="API"),
    ]

    result = apply_navigation_changes([], changes)

    assert _as_dict(result) == {"API": ["api/new", "guides/new"]}


def test_empty_change_list_is_identity_and_input_is_untouched() -> None:
    navigation = _groups(Guides=["guides/intro"], API=["api/users"])

    unchanged = apply_navigation_changes(navigation, [])
    apply_navigation_changes(
        navigation, [NavigationChange(operation="remove", page="guides/intro", group="Guides")]
    )

    assert _as_dict(unchanged) == {"Guides": ["guides/intro"], "API": ["api/users"]}
    assert _as_dict(navigation) == {"Guides": ["guides/intro"], "API": ["api/users"]}


def test_reconciler_rewrites_manifest_navigation(store, make_context) -> None:
    store.add_file(
        "docs/mint.json",
        json.dumps(
            {
                "name": "Acme",
                "navigation": [{"group": "Guides", "pages": ["guides/intro"]}],
            }
        ),
    )
    context = make_context()
    context.doc_structure = DocStructure()
    context.generated_content = GeneratedContent()
    context.update_plan = UpdatePlan(
        summary="Document billing",
        navigation_changes=[NavigationChange(operation="add", page="guides/billing", group="Guides")],
    )

    update = NavigationReconciler(StructureIndexer(store)).reconcile(context)

    assert update is not None
    assert update.path == "docs/mint.json"
    assert context.generated_content.navigation_update is update
    data = json.loads(update.content)
    assert data["name"] == "Acme"
    assert data["navigation"] == [{"group": "Guides", "pages": ["guides/intro", "guides/billing"]}]


def test_reconciler_falls_back_to_root_manifest(store, make_context) -> None:
    store.add_file("mint.json", json.dumps({"navigation": []}))
    context = make_context()
    context.doc_structure = DocStructure()
    context.generated_content = GeneratedContent()
    context.update_plan = UpdatePlan(
        summary="Document billing",
        navigation_changes=[NavigationChange(operation="add", page="billing", group="Guides")],
    )

    update = NavigationReconciler(StructureIndexer(store)).reconcile(context)

    assert update is not None
    assert update.path == "mint.json"


def test_reconciler_skips_when_plan_has_no_navigation_changes(store, make_context) -> None:
    context = make_context()
    context.doc_structure = DocStructure()
    context.generated_content = GeneratedContent()
    context.update_plan = UpdatePlan(summary="Nothing to move")

    assert NavigationReconciler(StructureIndexer(store)).reconcile(context) is None
    assert context.generated_content.navigation_update is None


def test_reconciler_requires_generated_content(store, make_context) -> None:
    context = make_context()
    context.doc_structure = DocStructure()
    context.update_plan = UpdatePlan(summary="plan")

    with pytest.raises(PreconditionError, match="Content must be generated"):
        NavigationReconciler(StructureIndexer(store)).reconcile(context)
