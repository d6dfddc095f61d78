"""Structured (JSON object) responses on top of a text generator."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Optional, Protocol

from ..errors import CollaboratorError

_FENCE = re.compile(r"^```[a-zA-Z]*\n|```$")


class TextGenerator(Protocol):
    """Capability used by every stage that needs generated text."""

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> str:
        ...


def request_json(
    generator: TextGenerator,
    prompt: str,
    *,
    system: str,
    temperature: Optional[float] = 0.1,
) -> Dict[str, Any]:
    """Run ``prompt`` and parse the reply as a JSON object."""
    try:
        raw = generator.run(prompt, system=system, temperature=temperature, json_mode=True)
    except CollaboratorError:
        raise
    except Exception as exc:
        raise CollaboratorError(f"Text generation failed: {exc}") from exc
    return parse_json_object(raw)


def parse_json_object(raw: str) -> Dict[str, Any]:
    text = strip_fences(raw or "")
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CollaboratorError(f"Unparsable JSON from text generator: {exc}") from exc
    if not isinstance(parsed, dict):
        raise CollaboratorError("Text generator returned JSON that is not an object")
    return parsed


def strip_fences(content: str) -> str:
    """Remove an accidental markdown code fence wrapping the whole reply."""
    return _FENCE.sub("", content.strip()).strip()


__all__ = ["TextGenerator", "parse_json_object", "request_json", "strip_fences"]
