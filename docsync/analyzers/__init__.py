"""Analyzers that turn repository state into pipeline inputs."""

from .changes import ChangeClassifier
from .structure import ManifestDocument, StructureIndexer

__all__ = ["ChangeClassifier", "ManifestDocument", "StructureIndexer"]
