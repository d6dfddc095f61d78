"""Prompt construction for the text generator."""

from .builder import PromptBuilder, PromptRequest

__all__ = ["PromptBuilder", "PromptRequest"]
