"""docsync keeps a documentation tree in sync with pull request changes."""

from .config import Credentials, DocSyncConfig, load_config
from .errors import DocSyncError
from .orchestrator import Orchestrator

__all__ = ["Credentials", "DocSyncConfig", "DocSyncError", "Orchestrator", "load_config"]
