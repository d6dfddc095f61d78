"""Persistent stores used by docsync runs."""

from .generation_cache import GenerationCache

__all__ = ["GenerationCache"]
