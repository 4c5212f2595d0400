"""
Assistant-facing text blocks.

render_todo_hint() is returned alongside a freshly loaded story so the
assistant seeds its todo list with the story's checkboxes.
render_compaction_context() preserves the todo protocol and current story
across context compaction.
"""

from pathlib import Path

from storysync.lib.identity import is_story_todo
from storysync.lib.types import TodoItem

__all__ = ["render_todo_hint", "render_compaction_context"]

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
PRIORITY_ICONS = {"high": "🔴", "medium": "🟡", "low": "🟢"}
MAX_PENDING_SHOWN = 10


def render_todo_hint(story_id: str, todos: list[TodoItem]) -> str:
    """Markdown telling the assistant which todos to write for a loaded story."""
    story_todos = [t for t in todos if is_story_todo(t)]
    if not story_todos:
        return ""

    open_count = sum(1 for t in story_todos if t.status != "completed")
    lines = [
        f"## Story {story_id} - Todo List",
        "",
        f"{len(story_todos)} checkbox tasks ({open_count} open). "
        "Write these to your todo list with `todowrite`, keeping each item's id "
        "and its `[storyΔ...]` prefix unchanged.",
        "Marking an item completed checks its box in the story file.",
        "",
    ]
    for todo in story_todos:
        mark = "x" if todo.status == "completed" else " "
        lines.append(f"- [{mark}] {todo.content} (id: {todo.id}, priority: {todo.priority})")

    return "\n".join(lines)


def render_compaction_context(tracker, stories_dir: Path | None = None) -> str | None:
    """Session context preserving in-flight story todos and the current story.

    Args:
        tracker: StoryTracker
        stories_dir: Shown as the story file location when given

    Returns:
        Markdown, or None if there's nothing worth preserving
    """
    parts = []
    todos = tracker.get_current_todos() or []
    story_todos = [t for t in todos if is_story_todo(t)]
    pending = [t for t in story_todos if t.status == "pending"]
    in_progress = [t for t in story_todos if t.status == "in_progress"]
    completed = [t for t in story_todos if t.status == "completed"]

    if pending or in_progress:
        parts.append("## Todo Protocol")
        parts.append("")
        parts.append("1. Call `todoread` to get your current task list")
        parts.append("2. If any todo is marked `in_progress`, complete it FIRST")
        parts.append("3. The TODO LIST is your source of truth, not the compaction summary")
        parts.append("")
        parts.append(
            f"Progress: {len(completed)} completed, {len(in_progress)} in progress, "
            f"{len(pending)} pending"
        )
        parts.append("")

        if in_progress:
            parts.append("### IN PROGRESS:")
            for todo in in_progress:
                parts.append(f"- {todo.content}")
            parts.append("")

        if pending:
            parts.append("### PENDING (work queue):")
            ordered = sorted(pending, key=lambda t: PRIORITY_ORDER.get(t.priority, 1))
            for todo in ordered[:MAX_PENDING_SHOWN]:
                icon = PRIORITY_ICONS.get(todo.priority, PRIORITY_ICONS["medium"])
                parts.append(f"{icon} {todo.content}")
            if len(pending) > MAX_PENDING_SHOWN:
                parts.append(
                    f"   ... and {len(pending) - MAX_PENDING_SHOWN} more (call todoread for full list)"
                )
            parts.append("")

        parts.append("---")
        parts.append("")

    story_context = tracker.get_current_story_context()
    if story_context:
        story = tracker.get_current_story()
        parts.append("## Current Story Context")
        parts.append("")
        parts.append(story_context)
        if stories_dir is not None:
            filename = f"story-{story.id.replace('.', '-')}.md"
            parts.append(f"**File:** {Path(stories_dir) / filename}")
        parts.append("")

    if not parts:
        return None
    return "\n".join(parts).rstrip() + "\n"
