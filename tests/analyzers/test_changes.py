from __future__ import annotations

import pytest

from docsync.analyzers.changes import (
    ChangeClassifier,
    category_for,
    detect_significance,
    normalise_status,
)
from docsync.config import DocSyncConfig
from docsync.errors import CollaboratorError
from docsync.models import ChangedFile
from docsync.prompting.constants import DEFAULT_SUMMARY
from tests._fixtures.fakes import CHANGE_ANALYSIS, StubGenerator

BILLING_PATCH = "+class BillingService {\n+    public function charge() {}\n+}"


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("added", "added"),
        ("modified", "modified"),
        ("removed", "deleted"),
        ("renamed", "modified"),
        ("", "modified"),
    ],
)
def test_normalise_status(status: str, expected: str) -> None:
    assert normalise_status(status) == expected


def test_category_is_second_to_last_segment() -> None:
    assert category_for("app/Services/Billing.php") == "Services"
    assert category_for("README.md") == ""


def test_detect_significance_uses_substrings() -> None:
    marks = detect_significance("src/user.ts", "+export interface User {}\n+enum Role {}")

    assert marks.has_exports
    assert marks.has_interfaces
    assert marks.has_enums
    assert not marks.has_classes
    assert not marks.is_test
    assert marks.any_api_change

    assert detect_significance("src/user.spec.ts", "").is_test
    assert not detect_significance("src/notes.txt", "+plain text").any_api_change


def test_classify_merges_local_and_generated_signals() -> None:
    generator = StubGenerator(
        {
            CHANGE_ANALYSIS: {
                "summary": "Adds billing",
                "impactedAreas": ["Billing", "Services"],
                "significantChanges": False,
                "relatedFiles": ["app/Services/Billing.php", "app/Models/Invoice.php"],
            }
        }
    )
    files = [ChangedFile(filename="app/Services/Billing.php", status="added", patch=BILLING_PATCH)]

    analysis = ChangeClassifier(generator).classify(files)

    assert analysis.summary == "Adds billing"
    assert analysis.impacted_areas == ["Services", "Billing"]
    # a local class change is significant even when the generator disagrees
    assert analysis.significant is True
    record = analysis.find("app/Services/Billing.php")
    assert record is not None
    assert record.change_type == "added"
    assert record.category == "Services"
    assert record.significance.has_classes
    assert record.related_files == ("app/Models/Invoice.php",)

    call = generator.calls_for(CHANGE_ANALYSIS)[0]
    assert call["json_mode"] is True
    assert "app/Services/Billing.php" in call["prompt"]


def test_classify_defaults_summary_and_skips_test_categories() -> None:
    generator = StubGenerator({CHANGE_ANALYSIS: {}})
    files = [
        ChangedFile(filename="src/utils/strings.test.ts", status="modified", patch="+it('works')"),
        ChangedFile(filename="src/utils/notes.txt", status="removed", patch=None),
    ]

    analysis = ChangeClassifier(generator).classify(files)

    assert analysis.summary == DEFAULT_SUMMARY
    assert analysis.significant is False
    assert analysis.impacted_areas == ["utils"]
    assert [record.change_type for record in analysis.changes] == ["modified", "deleted"]
    assert analysis.changes[1].patch == ""


def test_classify_drops_ignored_paths() -> None:
    rules = DocSyncConfig().match_rules()
    generator = StubGenerator({CHANGE_ANALYSIS: {"summary": "deps"}})
    files = [
        ChangedFile(filename="package-lock.json", status="modified", patch="+{}"),
        ChangedFile(filename="src/index.ts", status="modified", patch="+export const x = 1"),
    ]

    analysis = ChangeClassifier(generator).classify(files, rules)

    assert [record.file for record in analysis.changes] == ["src/index.ts"]


def test_classify_rejects_malformed_lists() -> None:
    generator = StubGenerator({CHANGE_ANALYSIS: {"impactedAreas": "Billing"}})

    with pytest.raises(CollaboratorError):
        ChangeClassifier(generator).classify(
            [ChangedFile(filename="app/Billing.php", status="added", patch="")]
        )


def test_classify_wraps_generator_failures() -> None:
    generator = StubGenerator({CHANGE_ANALYSIS: RuntimeError("model offline")})

    with pytest.raises(CollaboratorError, match="model offline"):
        ChangeClassifier(generator).classify(
            [ChangedFile(filename="app/Billing.php", status="added", patch="")]
        )
