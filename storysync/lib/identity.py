"""
Todo identity codec.

A story-owned todo carries its origin twice:
  - id:      "{story_id}:{section}:{line_number}"   e.g. "2.3:tasks:14"
  - content: "[{story_id}Δ{label}{index}] text"     e.g. "[2.3ΔTask1] Implement login"

The id's line number is a hint that goes stale as soon as the document is
edited. The content prefix's story id is authoritative for provenance.
"""

import re

from storysync.lib.constants import SECTION_LABELS, SEPARATOR
from storysync.lib.types import ParsedTodoId, Section, TodoItem

STORY_PREFIX_RE = re.compile(rf'^\s*\[([\d.]+){SEPARATOR}')
FULL_PREFIX_RE = re.compile(rf'^\s*\[[\d.]+{SEPARATOR}\w+\]\s*(.+)$')


def encode_prefix(story_id: str, section: Section, section_index: int) -> str:
    """Build the human-visible content prefix for a task."""
    label = SECTION_LABELS[section.value]
    return f"[{story_id}{SEPARATOR}{label}{section_index}]"


def encode_id(story_id: str, section: Section, line_number: int) -> str:
    return f"{story_id}:{section.value}:{line_number}"


def decode_id(todo_id: str | None) -> ParsedTodoId | None:
    """Decode a todo id. Returns None for anything malformed."""
    if not todo_id:
        return None

    parts = todo_id.split(":")
    if len(parts) != 3:
        return None

    story_id, section_value, line_str = parts
    if not story_id:
        return None

    try:
        line_hint = int(line_str)
    except ValueError:
        return None
    if line_hint < 0:
        return None

    try:
        section = Section(section_value)
    except ValueError:
        return None

    return ParsedTodoId(story_id=story_id, section=section, line_hint=line_hint)


def decode_story_from_content(content: str) -> str | None:
    """Return the story id from a [storyΔ...] content prefix, if any."""
    match = STORY_PREFIX_RE.match(content or "")
    return match.group(1) if match else None


def is_story_todo(todo: TodoItem) -> bool:
    """True if the todo's content carries a story prefix."""
    return decode_story_from_content(todo.content) is not None


def extract_task_text(content: str) -> str:
    """Strip the [storyΔLabelN] prefix, returning the bare task text."""
    match = FULL_PREFIX_RE.match(content or "")
    if match:
        return match.group(1).strip()
    return (content or "").strip()
