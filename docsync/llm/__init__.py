"""Text generation adapters."""

from .runner import LLMRequest, LLMRunner
from .structured import TextGenerator, request_json, strip_fences

__all__ = ["LLMRequest", "LLMRunner", "TextGenerator", "request_json", "strip_fences"]
