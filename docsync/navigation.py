"""Apply planned navigation edits to the documentation manifest."""

from __future__ import annotations

import json
from typing import Iterable, List, Optional

from .analyzers.structure import StructureIndexer
from .logging import get_logger
from .models import NavigationChange, NavigationGroup, NavigationUpdate, RunContext

logger = get_logger("navigation")


def apply_navigation_changes(
    navigation: Iterable[NavigationGroup],
    changes: Iterable[NavigationChange],
) -> List[NavigationGroup]:
    """Return a new navigation list with ``changes`` applied left to right.

    The input groups are copied first and never modified. ``add`` creates
    missing groups, ``remove`` and ``move`` drop groups they empty, and a
    ``move`` whose target group does not exist is skipped.
    """
    groups = [NavigationGroup(group=item.group, pages=list(item.pages)) for item in navigation]

    for change in changes:
        index = _find_group(groups, change.group)

        if change.operation == "add":
            if index is None:
                groups.append(NavigationGroup(group=change.group, pages=[]))
                index = len(groups) - 1
            if change.page not in groups[index].pages:
                groups[index].pages.append(change.page)

        elif change.operation == "remove":
            if index is None:
                logger.warning("Group '%s' not found for operation: remove", change.group)
                continue
            target = groups[index]
            target.pages = [page for page in target.pages if page != change.page]
            if not target.pages:
                del groups[index]

        elif change.operation == "move":
            if index is None:
                logger.warning("Group '%s' not found for operation: move", change.group)
                continue
            target = groups[index]
            source = next((group for group in groups if change.page in group.pages), None)
            if source is None or source is target:
                continue
            source.pages = [page for page in source.pages if page != change.page]
            if change.page not in target.pages:
                target.pages.append(change.page)
            if not source.pages:
                groups.remove(source)

        else:
            logger.warning("Unknown navigation operation '%s'", change.operation)

    return groups


def _find_group(groups: List[NavigationGroup], name: str) -> Optional[int]:
    lowered = name.lower()
    for index, group in enumerate(groups):
        if group.group.lower() == lowered:
            return index
    return None


class NavigationReconciler:
    """Loads the manifest, applies the plan's navigation changes, and re-serialises it."""

    def __init__(self, indexer: StructureIndexer) -> None:
        self.indexer = indexer
        self.logger = get_logger("navigation.reconciler")

    def reconcile(self, context: RunContext) -> Optional[NavigationUpdate]:
        plan = context.require("update_plan")
        context.require("doc_structure")
        generated = context.require("generated_content")

        changes = list(plan.navigation_changes)
        if not changes:
            self.logger.info("No navigation changes needed, skipping update")
            return None

        manifest = self.indexer.load_manifest(context.docs_repo, context.config.docs.path)
        updated = apply_navigation_changes(manifest.navigation, changes)

        data = dict(manifest.data)
        data["navigation"] = [group.to_dict() for group in updated]
        update = NavigationUpdate(
            path=manifest.path,
            content=json.dumps(data, indent=2, ensure_ascii=False),
            changes=changes,
        )
        generated.navigation_update = update

        self.logger.info("Applied %d navigation change(s) to %s", len(changes), manifest.path)
        for change in changes:
            self.logger.debug("- %s: %s in group '%s'", change.operation, change.page, change.group)
        return update


__all__ = ["NavigationReconciler", "apply_navigation_changes"]
