"""Error taxonomy shared by docsync pipeline stages."""

from __future__ import annotations


class DocSyncError(RuntimeError):
    """Base class for failures raised by docsync."""


class ConfigError(DocSyncError):
    """Raised when configuration or credentials are invalid."""


class PreconditionError(DocSyncError):
    """Raised when a stage runs before the stage that feeds it."""


class CollaboratorError(DocSyncError):
    """Raised when text generation or the repository store cannot be used."""


class RepositoryError(CollaboratorError):
    """Raised when the hosting API answers with an error status."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(RepositoryError):
    """The requested file, directory, or branch does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=404)


class CacheError(CollaboratorError):
    """Raised when the generation cache exists but cannot be read."""


class PayloadError(DocSyncError):
    """Raised when an incoming webhook or API payload is malformed."""


class PipelineError(DocSyncError):
    """A fatal stage failure annotated with the run that triggered it."""

    def __init__(self, message: str, *, stage: str, run: str) -> None:
        super().__init__(f"[{run}] {stage} failed: {message}")
        self.stage = stage
        self.run = run


__all__ = [
    "CacheError",
    "CollaboratorError",
    "ConfigError",
    "DocSyncError",
    "NotFoundError",
    "PayloadError",
    "PipelineError",
    "PreconditionError",
    "RepositoryError",
]
