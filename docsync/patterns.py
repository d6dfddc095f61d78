"""Path pattern resolution for important/ignore rules."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Mapping, Optional, Pattern

from .models import MatchRules

_GLOB_CHARS = frozenset("*?[")


def prefix_closure(patterns: Iterable[str]) -> frozenset[str]:
    """Expand each pattern into itself plus every ancestor directory prefix.

    ``app/Models/**`` yields ``app``, ``app/Models`` and ``app/Models/**``.
    """
    closed: set[str] = set()
    for pattern in patterns:
        parts = [part for part in pattern.replace("\\", "/").split("/") if part]
        for index in range(1, len(parts) + 1):
            closed.add("/".join(parts[:index]))
    return frozenset(closed)


def resolve_match_rules(
    doc_extensions: Iterable[str],
    ignore_patterns: Iterable[str],
    important_patterns: Iterable[str],
    path_mappings: Optional[Mapping[str, str]] = None,
) -> MatchRules:
    """Close both pattern lists and drop ignore entries shadowed by important ones."""
    important = prefix_closure(important_patterns)
    ignore = prefix_closure(ignore_patterns) - important
    extensions = tuple(_normalise_extension(ext) for ext in doc_extensions if ext)
    return MatchRules(
        doc_extensions=extensions,
        ignore_patterns=ignore,
        important_patterns=important,
        path_mappings=dict(path_mappings or {}),
    )


def pattern_matches(path: str, pattern: str) -> bool:
    """Glob match where ``**`` crosses directories and ``*`` stays in one segment."""
    normalized = path.replace("\\", "/").strip("/")
    pattern = pattern.replace("\\", "/").strip("/")
    if not pattern:
        return False
    if not any(ch in _GLOB_CHARS for ch in pattern):
        return normalized == pattern or normalized.startswith(f"{pattern}/")
    return _compile(pattern).match(normalized) is not None


def is_important(path: str, rules: MatchRules) -> bool:
    return _matches_closure(path, rules.important_patterns)


def is_ignored(path: str, rules: MatchRules) -> bool:
    """True when an ignore rule excludes the path; important paths are never excluded."""
    if is_important(path, rules):
        return False
    return _matches_closure(path, rules.ignore_patterns)


def should_include(path: str, rules: MatchRules) -> bool:
    return is_important(path, rules) and not is_ignored(path, rules)


def is_doc_file(path: str, rules: MatchRules) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in rules.doc_extensions)


def _matches_closure(path: str, patterns: frozenset[str]) -> bool:
    """Match against a closed pattern set.

    Entries that are strict ancestors of another entry only stand for the
    directory itself, so ``app`` from ``app/Models/**`` matches ``app`` but
    not ``app/Http/foo``.
    """
    normalized = path.replace("\\", "/").strip("/")
    ancestors = _ancestor_entries(patterns)
    for pattern in patterns:
        if pattern in ancestors:
            if normalized == pattern:
                return True
        elif pattern_matches(normalized, pattern):
            return True
    return False


@lru_cache(maxsize=64)
def _ancestor_entries(patterns: frozenset[str]) -> frozenset[str]:
    return frozenset(
        entry
        for entry in patterns
        if any(other.startswith(f"{entry}/") for other in patterns)
    )


def _normalise_extension(extension: str) -> str:
    extension = extension.strip()
    return extension if extension.startswith(".") else f".{extension}"


@lru_cache(maxsize=512)
def _compile(pattern: str) -> Pattern[str]:
    out: list[str] = []
    index = 0
    length = len(pattern)
    while index < length:
        char = pattern[index]
        if char == "/" and pattern[index + 1 :] == "**":
            # trailing /** also matches the directory itself
            out.append("(?:/.*)?")
            break
        if char == "*":
            if pattern[index : index + 2] == "**":
                index += 2
                if index < length and pattern[index] == "/":
                    out.append("(?:.*/)?")
                    index += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            closing = pattern.find("]", index + 1)
            if closing == -1:
                out.append(re.escape(char))
            else:
                body = pattern[index + 1 : closing]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                index = closing
        else:
            out.append(re.escape(char))
        index += 1
    return re.compile("^" + "".join(out) + "$")


__all__ = [
    "is_doc_file",
    "is_ignored",
    "is_important",
    "pattern_matches",
    "prefix_closure",
    "resolve_match_rules",
    "should_include",
]
