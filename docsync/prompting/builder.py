"""Builds the prompts sent to the text generator."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..models import (
    ChangeAnalysis,
    ChangeRecord,
    DocStructure,
    MatchRules,
    PlannedUpdate,
)
from .constants import CONTENT_SYSTEM_TEMPLATE, INITIAL_DOC_SYSTEM

_EXTENSION = re.compile(r"\.[^/.]+$")


@dataclass(frozen=True)
class PromptRequest:
    """A system/user prompt pair for one generation call."""

    system: str
    prompt: str


class PromptBuilder:
    """Assembles stage-specific prompts from pipeline state."""

    def __init__(self, *, style_guide: str | None = None) -> None:
        self.style_guide = style_guide

    def change_analysis(self, changes: Sequence[ChangeRecord]) -> str:
        blocks = []
        for change in changes:
            blocks.append(
                "\n".join(
                    [
                        f"File: {change.file} ({change.change_type})",
                        f"Category: {change.category}",
                        f"Significance: {json.dumps(change.significance.to_dict())}",
                        "Patch:",
                        "```diff",
                        change.patch,
                        "```",
                    ]
                )
            )
        return "Here are the code changes to analyze:\n\n" + "\n\n".join(blocks)

    def doc_references(self, path: str, content: str) -> str:
        return f"Documentation file: {path}\n\nContent:\n{content}"

    def update_plan(
        self,
        analysis: ChangeAnalysis,
        structure: DocStructure,
        rules: MatchRules,
    ) -> str:
        changed = []
        for change in analysis.changes:
            related = ", ".join(change.related_files) or "none"
            changed.append(
                f"- {change.file} ({change.change_type})\n"
                f"  Category: {change.category}\n"
                f"  Significance: {json.dumps(change.significance.to_dict())}\n"
                f"  Related Files: {related}"
            )
        navigation = [group.to_dict() for group in structure.navigation]
        extensions = ", ".join(rules.doc_extensions) or ".mdx"
        return "\n".join(
            [
                "Here is the current state to analyze:",
                "",
                "Code Changes Summary:",
                analysis.summary,
                "",
                f"Impacted Areas: {', '.join(analysis.impacted_areas)}",
                f"Significant Changes: {str(analysis.significant).lower()}",
                "",
                "Changed Files:",
                "\n".join(changed),
                "",
                "Documentation Structure:",
                f"Categories: {', '.join(structure.categories)}",
                "",
                "File Tree:",
                structure.file_tree,
                "Current Navigation:",
                json.dumps(navigation, indent=2),
                "",
                "Configuration:",
                f"Doc Extensions: {extensions}",
                f"Path Mappings: {json.dumps(rules.path_mappings)}",
                "",
                "Please analyze this information and provide a detailed plan for documentation updates.",
            ]
        )

    def content(
        self,
        update: PlannedUpdate,
        structure: DocStructure,
        analysis: ChangeAnalysis,
        *,
        existing: Optional[str] = None,
        template: Optional[str] = None,
    ) -> PromptRequest:
        task = "create new" if update.type == "create" else "update existing"
        system = CONTENT_SYSTEM_TEMPLATE.format(task=task)
        if self.style_guide:
            system = f"{system}\n\nStyle Guide:\n{self.style_guide}"

        sources = []
        for path in update.source_files:
            change = analysis.find(path)
            sources.append(
                f"File: {path}\n"
                f"Type: {change.change_type if change else 'unknown'}\n"
                f"Patch:\n```diff\n{change.patch if change else ''}\n```"
            )

        sections = [
            f"Task: {'Create new' if update.type == 'create' else 'Update'} documentation file at {update.path}",
            "",
            "Context:",
            update.reason,
            "",
            "Source Files:",
            "\n\n".join(sources) or "none",
        ]
        if template:
            sections.extend(["", "Template to follow:", template])
        if existing:
            sections.extend(["", "Current content to update:", existing])
        suggested = (
            json.dumps(update.suggested_content, indent=2)
            if update.suggested_content
            else "Standard documentation structure"
        )
        sections.extend(["", "Suggested Structure:", suggested, "", "Related Documentation:"])
        sections.append(_related_docs(update.related_docs, structure))
        sections.extend(
            [
                "",
                "Please provide the complete MDX content for this documentation file.",
                "Return the content directly, starting with frontmatter (---). Do not wrap in backticks.",
            ]
        )
        return PromptRequest(system=system, prompt="\n".join(sections))

    def initial_doc(self, update: PlannedUpdate, *, owner: str, repo: str) -> PromptRequest:
        source = update.source_files[0] if update.source_files else update.path
        title = display_title(source)
        template = "\n".join(
            [
                "---",
                f'title: "{title}"',
                f'description: "Documentation for {source} in the {repo} repository."',
                f"tags: [documentation, {repo}]",
                "---",
                "",
                f"# {title}",
                "",
                "## Overview",
                f"Provide a brief overview of what **{source}** does.",
                "",
                "## Usage",
                "Explain how this file is used within the project.",
                "",
                "## Examples",
                "Provide sample code that shows how this file integrates into the project.",
                "",
                "## References",
                f"- Related files: {', '.join(update.source_files) or source}",
                f"- Repository: [{repo}](https://github.com/{owner}/{repo})",
            ]
        )
        prompt = (
            "Write structured MDX documentation for the following file:\n\n"
            f"- **File Name:** {source}\n"
            f"- **Project:** {repo}\n"
            "- **Overview:** Briefly describe what this file does.\n"
            "- **Usage:** Explain how this file is used and its purpose in the repository.\n"
            "- **Examples:** Provide example usage, such as function calls or configurations.\n"
            "- **References:** List related files and documentation links.\n\n"
            "Follow this structure and return only the MDX content:\n"
            f"```mdx\n{template}\n```"
        )
        return PromptRequest(system=INITIAL_DOC_SYSTEM, prompt=prompt)


def display_title(source: str) -> str:
    """``app/Services/Billing.php`` -> ``Services > Billing``."""
    trimmed = source[4:] if source.startswith("app/") else source
    return _EXTENSION.sub("", trimmed).replace("/", " > ")


def _related_docs(related: Iterable[str], structure: DocStructure) -> str:
    lines = []
    for doc in related:
        state = "exists" if structure.find(doc) is not None else "planned"
        lines.append(f"- {doc} ({state})")
    return "\n".join(lines) or "No related documentation"


__all__ = ["PromptBuilder", "PromptRequest", "display_title"]
