"""Classify pull request file changes and ask for a semantic summary."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence

from ..errors import CollaboratorError
from ..llm.structured import TextGenerator, request_json
from ..logging import get_logger
from ..models import ChangeAnalysis, ChangedFile, ChangeRecord, MatchRules, Significance
from ..patterns import is_ignored
from ..prompting.builder import PromptBuilder
from ..prompting.constants import CHANGE_ANALYSIS_SYSTEM, DEFAULT_SUMMARY

_STATUS_ALIASES = {
    "added": "added",
    "modified": "modified",
    "removed": "deleted",
    "deleted": "deleted",
}


def normalise_status(status: str) -> str:
    """Map hosting-API statuses onto added/modified/deleted."""
    return _STATUS_ALIASES.get((status or "").lower(), "modified")


def category_for(path: str) -> str:
    """Second-to-last path segment, or an empty string for top-level files."""
    parts = [part for part in path.split("/") if part]
    return parts[-2] if len(parts) >= 2 else ""


def detect_significance(filename: str, patch: str) -> Significance:
    return Significance(
        has_exports="export " in patch,
        has_interfaces="interface " in patch,
        has_classes="class " in patch,
        has_types="type " in patch,
        has_enums="enum " in patch,
        is_test=".test." in filename or ".spec." in filename,
    )


class ChangeClassifier:
    """Turns raw pull request files into a ``ChangeAnalysis``."""

    def __init__(
        self,
        generator: TextGenerator,
        *,
        prompt_builder: PromptBuilder | None = None,
        temperature: Optional[float] = 0.1,
    ) -> None:
        self.generator = generator
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.temperature = temperature
        self.logger = get_logger("analyzers.changes")

    def classify(
        self,
        files: Iterable[ChangedFile],
        rules: MatchRules | None = None,
    ) -> ChangeAnalysis:
        records = self._local_records(files, rules)
        self.logger.debug("Classified %d changed file(s) locally", len(records))

        response = request_json(
            self.generator,
            self.prompt_builder.change_analysis(records),
            system=CHANGE_ANALYSIS_SYSTEM,
            temperature=self.temperature,
        )

        summary = response.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            summary = DEFAULT_SUMMARY
        remote_areas = _string_list(response.get("impactedAreas"), "impactedAreas")
        related = _string_list(response.get("relatedFiles"), "relatedFiles")

        local_areas = [
            record.category
            for record in records
            if record.category and not record.significance.is_test
        ]
        impacted = _ordered_union(local_areas, remote_areas)

        significant = response.get("significantChanges") is True or any(
            record.significance.any_api_change for record in records
        )

        enriched = [
            replace(
                record,
                related_files=tuple(path for path in related if path != record.file),
            )
            for record in records
        ]
        return ChangeAnalysis(
            changes=enriched,
            impacted_areas=impacted,
            significant=significant,
            summary=summary,
        )

    def _local_records(
        self, files: Iterable[ChangedFile], rules: MatchRules | None
    ) -> List[ChangeRecord]:
        records: List[ChangeRecord] = []
        for changed in files:
            if rules is not None and is_ignored(changed.filename, rules):
                self.logger.debug("Skipping ignored path %s", changed.filename)
                continue
            patch = changed.patch or ""
            records.append(
                ChangeRecord(
                    file=changed.filename,
                    patch=patch,
                    change_type=normalise_status(changed.status),
                    significance=detect_significance(changed.filename, patch),
                    category=category_for(changed.filename),
                )
            )
        return records


def _string_list(value: object, key: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise CollaboratorError(f"Change analysis field {key} must be a list")
    return [item for item in value if isinstance(item, str)]


def _ordered_union(*groups: Sequence[str]) -> List[str]:
    seen: List[str] = []
    for group in groups:
        for item in group:
            if item not in seen:
                seen.append(item)
    return seen


__all__ = ["ChangeClassifier", "category_for", "detect_significance", "normalise_status"]
