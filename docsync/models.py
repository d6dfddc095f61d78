"""Core data models shared across docsync pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from .errors import PreconditionError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .config import DocSyncConfig

UPDATE_TYPES: Tuple[str, ...] = ("create", "update")
PRIORITIES: Tuple[str, ...] = ("high", "medium", "low")
NAVIGATION_OPERATIONS: Tuple[str, ...] = ("add", "move", "remove")


@dataclass(frozen=True)
class MatchRules:
    """Resolved path rules; no entry of important_patterns is in ignore_patterns."""

    doc_extensions: Tuple[str, ...]
    ignore_patterns: frozenset[str]
    important_patterns: frozenset[str]
    path_mappings: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RepoRef:
    """Owner, name, and default ref of a hosted repository."""

    owner: str
    repo: str
    branch: str = "main"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class ChangedFile:
    """A raw entry from the pull request file listing."""

    filename: str
    status: str
    patch: Optional[str] = None


@dataclass
class PullRequest:
    """The subset of a hosted pull request the pipeline reads."""

    number: int
    title: str
    head_ref: str
    base_ref: str
    html_url: str = ""
    labels: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Significance:
    """Heuristic markers derived from diff text."""

    has_exports: bool = False
    has_interfaces: bool = False
    has_classes: bool = False
    has_types: bool = False
    has_enums: bool = False
    is_test: bool = False

    @property
    def any_api_change(self) -> bool:
        return any(
            (
                self.has_exports,
                self.has_interfaces,
                self.has_classes,
                self.has_types,
                self.has_enums,
            )
        )

    def to_dict(self) -> Dict[str, bool]:
        return {
            "hasExports": self.has_exports,
            "hasInterfaces": self.has_interfaces,
            "hasClasses": self.has_classes,
            "hasTypes": self.has_types,
            "hasEnums": self.has_enums,
            "isTest": self.is_test,
        }


@dataclass(frozen=True)
class ChangeRecord:
    """Classified change for one file of one run."""

    file: str
    patch: str
    change_type: str
    significance: Significance
    category: str
    related_files: Tuple[str, ...] = ()


@dataclass
class ChangeAnalysis:
    """Aggregate output of the change classifier."""

    changes: List[ChangeRecord]
    impacted_areas: List[str]
    significant: bool
    summary: str

    def find(self, path: str) -> Optional[ChangeRecord]:
        for change in self.changes:
            if change.file == path:
                return change
        return None


@dataclass
class DocFile:
    """A documentation file discovered while indexing the docs tree."""

    path: str
    type: str = "file"
    category: Optional[str] = None
    references: List[str] = field(default_factory=list)


@dataclass
class NavigationGroup:
    """One group of the navigation manifest."""

    group: str
    pages: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["NavigationGroup"]:
        if not isinstance(payload, dict):
            return None
        name = payload.get("group")
        if not isinstance(name, str):
            return None
        pages_raw = payload.get("pages")
        pages: List[str] = []
        if isinstance(pages_raw, list):
            for page in pages_raw:
                if isinstance(page, str) and page not in pages:
                    pages.append(page)
        return cls(group=name, pages=pages)

    def to_dict(self) -> Dict[str, Any]:
        return {"group": self.group, "pages": list(self.pages)}


@dataclass
class DocStructure:
    """Snapshot of the documentation tree for a single run."""

    files: List[DocFile] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    navigation: List[NavigationGroup] = field(default_factory=list)
    file_tree: str = ""

    def find(self, path: str) -> Optional[DocFile]:
        for doc in self.files:
            if doc.path == path:
                return doc
        return None


@dataclass(frozen=True)
class PlannedUpdate:
    """A proposed documentation creation or modification."""

    path: str
    type: str = "update"
    reason: str = "Update needed based on code changes"
    priority: str = "medium"
    source_files: Tuple[str, ...] = ()
    related_docs: Tuple[str, ...] = ()
    suggested_content: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class NavigationChange:
    """A single navigation edit; lists of these are applied left to right."""

    operation: str
    page: str
    group: str


@dataclass
class UpdatePlan:
    """Planner output consumed by generation and navigation reconciliation."""

    summary: str
    updates: List[PlannedUpdate] = field(default_factory=list)
    navigation_changes: List[NavigationChange] = field(default_factory=list)


@dataclass
class GeneratedFile:
    path: str
    content: str
    type: str
    reason: str


@dataclass
class NavigationUpdate:
    path: str
    content: str
    changes: List[NavigationChange] = field(default_factory=list)


@dataclass
class GeneratedContent:
    """Terminal artifact handed to the publisher."""

    files: List[GeneratedFile] = field(default_factory=list)
    navigation_update: Optional[NavigationUpdate] = None

    @property
    def is_empty(self) -> bool:
        return not self.files and self.navigation_update is None


@dataclass
class RunContext:
    """Mutable state threaded through one pipeline execution."""

    owner: str
    repo: str
    config: "DocSyncConfig"
    docs_repo: RepoRef
    match_rules: MatchRules
    pull_number: Optional[int] = None
    pull_title: Optional[str] = None
    source_pull: Optional[PullRequest] = None
    changed_files: Optional[List[ChangedFile]] = None
    important_files: Optional[List[str]] = None
    code_analysis: Optional[ChangeAnalysis] = None
    doc_structure: Optional[DocStructure] = None
    update_plan: Optional[UpdatePlan] = None
    generated_content: Optional[GeneratedContent] = None
    pull_request_url: Optional[str] = None

    _REQUIREMENTS = {
        "source_pull": "Pull request must be fetched before publishing",
        "changed_files": "Changed files must be fetched before classifying changes",
        "important_files": "Important files must be searched before planning initial docs",
        "code_analysis": "Code analysis must be performed before this stage",
        "doc_structure": "Documentation structure must be analyzed before this stage",
        "update_plan": "Update plan must be created before this stage",
        "generated_content": "Content must be generated before this stage",
    }

    def require(self, name: str) -> Any:
        """Return the named field or raise PreconditionError when it is unset."""
        value = getattr(self, name)
        if value is None:
            message = self._REQUIREMENTS.get(name, f"{name} is required")
            raise PreconditionError(message)
        return value

    def describe(self) -> str:
        if self.pull_number is not None:
            return f"{self.owner}/{self.repo}#{self.pull_number}"
        return f"{self.owner}/{self.repo}"


__all__ = [
    "ChangeAnalysis",
    "ChangeRecord",
    "ChangedFile",
    "DocFile",
    "DocStructure",
    "GeneratedContent",
    "GeneratedFile",
    "MatchRules",
    "NAVIGATION_OPERATIONS",
    "NavigationChange",
    "NavigationGroup",
    "NavigationUpdate",
    "PRIORITIES",
    "PlannedUpdate",
    "PullRequest",
    "RepoRef",
    "RunContext",
    "Significance",
    "UPDATE_TYPES",
    "UpdatePlan",
]
