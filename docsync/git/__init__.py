"""Repository access and publishing."""

from .publisher import Publisher, PublishResult
from .store import GitHubStore, RemoteEntry, RemoteFile

__all__ = ["GitHubStore", "PublishResult", "Publisher", "RemoteEntry", "RemoteFile"]
