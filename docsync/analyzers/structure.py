"""Index the documentation tree of a docs repository."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..errors import CollaboratorError, NotFoundError
from ..git.store import GitHubStore
from ..llm.structured import TextGenerator, request_json
from ..logging import get_logger
from ..models import DocFile, DocStructure, MatchRules, NavigationGroup, RepoRef
from ..patterns import is_doc_file
from ..prompting.builder import PromptBuilder
from ..prompting.constants import DOC_REFERENCES_SYSTEM


@dataclass
class ManifestDocument:
    """Parsed navigation manifest plus the location and revision it came from."""

    path: str
    data: Dict[str, Any]
    sha: str

    @property
    def navigation(self) -> List[NavigationGroup]:
        return parse_navigation(self.data.get("navigation"))


def parse_navigation(payload: Any) -> List[NavigationGroup]:
    groups: List[NavigationGroup] = []
    if not isinstance(payload, list):
        return groups
    for item in payload:
        group = NavigationGroup.from_dict(item)
        if group is not None:
            groups.append(group)
    return groups


class StructureIndexer:
    """Walks the docs directory and records files, categories, and navigation."""

    def __init__(
        self,
        store: GitHubStore,
        generator: TextGenerator | None = None,
        *,
        manifest_name: str = "mint.json",
        prompt_builder: PromptBuilder | None = None,
    ) -> None:
        self.store = store
        self.generator = generator
        self.manifest_name = manifest_name
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("analyzers.structure")

    def build(self, docs_repo: RepoRef, docs_root: str, rules: MatchRules) -> DocStructure:
        root = docs_root.strip("/")
        structure = DocStructure()
        tree_lines: List[str] = []
        self._traverse(docs_repo, root, root, 0, rules, structure, tree_lines)
        structure.file_tree = "".join(f"{line}\n" for line in tree_lines)
        self.logger.info(
            "Indexed %d doc file(s) across %d categories in %s",
            len(structure.files),
            len(structure.categories),
            docs_repo.full_name,
        )
        return structure

    def load_manifest(self, docs_repo: RepoRef, docs_root: str) -> ManifestDocument:
        """Read the manifest under the docs root, falling back to the repository root."""
        root = docs_root.strip("/")
        primary = f"{root}/{self.manifest_name}" if root else self.manifest_name
        try:
            remote = self.store.get_file(docs_repo, primary)
        except NotFoundError:
            if primary == self.manifest_name:
                raise
            self.logger.info("%s not found, trying repository root", primary)
            remote = self.store.get_file(docs_repo, self.manifest_name)
        try:
            data = json.loads(remote.content)
        except json.JSONDecodeError as exc:
            raise CollaboratorError(f"Manifest {remote.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise CollaboratorError(f"Manifest {remote.path} must contain a JSON object")
        return ManifestDocument(path=remote.path, data=data, sha=remote.sha)

    def enrich_references(self, structure: DocStructure, docs_repo: RepoRef) -> DocStructure:
        if self.generator is None:
            return structure
        for doc in structure.files:
            try:
                remote = self.store.get_file(docs_repo, doc.path)
                response = request_json(
                    self.generator,
                    self.prompt_builder.doc_references(doc.path, remote.content),
                    system=DOC_REFERENCES_SYSTEM,
                )
            except CollaboratorError as exc:
                self.logger.warning("Could not analyze references for %s: %s", doc.path, exc)
                continue
            references: List[str] = []
            for key in ("references", "codeFiles", "relatedDocs"):
                values = response.get(key)
                if not isinstance(values, list):
                    continue
                for value in values:
                    if isinstance(value, str) and value not in references:
                        references.append(value)
            doc.references = references
        return structure

    # ------------------------------------------------------------------
    # Helpers

    def _traverse(
        self,
        docs_repo: RepoRef,
        root: str,
        current: str,
        depth: int,
        rules: MatchRules,
        structure: DocStructure,
        tree_lines: List[str],
    ) -> None:
        try:
            entries = self.store.list_directory(docs_repo, current)
        except CollaboratorError as exc:
            self.logger.warning("Error reading directory %s: %s", current or "/", exc)
            return

        for entry in entries:
            icon = "📁" if entry.type == "dir" else "📄"
            tree_lines.append(f"{'  ' * depth}{icon} {entry.path}")
            if entry.type == "dir":
                if current == root and entry.name not in structure.categories:
                    structure.categories.append(entry.name)
                self._traverse(docs_repo, root, entry.path, depth + 1, rules, structure, tree_lines)
            elif is_doc_file(entry.path, rules):
                structure.files.append(
                    DocFile(path=entry.path, type="file", category=_parent_name(entry.path))
                )
            elif entry.name == self.manifest_name:
                structure.navigation = self._read_navigation(docs_repo, entry.path)

    def _read_navigation(self, docs_repo: RepoRef, path: str) -> List[NavigationGroup]:
        try:
            remote = self.store.get_file(docs_repo, path)
            data = json.loads(remote.content)
        except (CollaboratorError, json.JSONDecodeError) as exc:
            self.logger.warning("Error reading %s: %s", path, exc)
            return []
        if not isinstance(data, dict):
            self.logger.warning("Manifest %s is not a JSON object", path)
            return []
        return parse_navigation(data.get("navigation"))


def _parent_name(path: str) -> Optional[str]:
    parent = posixpath.basename(posixpath.dirname(path))
    return parent or None


__all__ = ["ManifestDocument", "StructureIndexer", "parse_navigation"]
