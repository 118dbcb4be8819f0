"""Shared CLI rendering helpers."""
from __future__ import annotations

import os
import textwrap
from typing import List

from arcstory.services.story_service import StoryNodeView

DEFAULT_WIDTH = 72
END_MARKER = "~ The End ~"


def debug_enabled() -> bool:
    """Return True only when ARCSTORY_DEBUG is explicitly set to '1'."""
    return os.getenv("ARCSTORY_DEBUG") == "1"


def wrap_paragraphs(text: str, width: int = DEFAULT_WIDTH) -> List[str]:
    """
    Wrap text paragraph by paragraph, breaking on word boundaries.

    Paragraphs are separated by blank lines in both input and output.
    """
    if not text or width <= 0:
        return [text] if text else []
    lines: List[str] = []
    for index, paragraph in enumerate(text.split("\n\n")):
        if index:
            lines.append("")
        wrapped = textwrap.wrap(
            " ".join(paragraph.split()),
            width=width,
            break_long_words=False,
            break_on_hyphens=False,
        )
        lines.extend(wrapped or [""])
    return lines


def render_view(view: StoryNodeView, width: int = DEFAULT_WIDTH) -> List[str]:
    """Return the console lines for a story view."""
    lines: List[str] = []
    if view.title:
        lines.append(f"== {view.title} ==")
    lines.extend(wrap_paragraphs(view.text, width))
    lines.append("")
    if view.is_end:
        lines.append(END_MARKER)
        return lines
    for index, choice in enumerate(view.choices, start=1):
        suffix = f"  [-> {choice.target_node_id}]" if debug_enabled() else ""
        lines.append(f"{index}. {choice.label}{suffix}")
    return lines
