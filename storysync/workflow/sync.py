"""Story <-> todo list synchronization hooks.

Two entry points, called by the host integration:

  on_story_loaded()   story markdown fetched -> todos seeded and merged
  on_todos_written()  assistant rewrote its todo list -> checkboxes updated

Callers must serialize calls per project: checkbox updates are whole-file
read-modify-write with no locking.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from storysync.lib.checkbox import find_checkbox_line, set_checkbox
from storysync.lib.config import SyncConfig
from storysync.lib.hints import render_todo_hint
from storysync.lib.identity import decode_id, decode_story_from_content
from storysync.lib.matcher import MATCH_NONE, find_match
from storysync.lib.merge import merge_todos
from storysync.lib.taskparse import parse_story_tasks, tasks_to_todos
from storysync.lib.types import SyncReport, TodoItem, TodoStatus
from storysync.pm.stories import find_story_file
from storysync.workflow.fsm import StoryStatus
from storysync.workflow.tracker import StoryTracker

logger = logging.getLogger(__name__)


@dataclass
class StoryLoadResult:
    """What the host hands back to the assistant after a story load."""
    todos: list[TodoItem]         # Merged snapshot to seed the todo list with
    hint: str                     # Markdown explaining the story todos
    task_count: int = 0           # Checkboxes parsed from the story


def on_story_loaded(
    tracker: StoryTracker,
    config: SyncConfig,
    story_id: str,
    story_content: str,
) -> StoryLoadResult:
    """Seed the todo list from a freshly loaded story.

    The story becomes the tracker's current story in "loading" status unless
    it already is current. With todo sync disabled nothing else happens.
    """
    current = tracker.get_current_story()
    if current is None or current.id != story_id:
        tracker.set_current_story(story_id, story_content, StoryStatus.LOADING.value)

    if not config.todo_sync:
        return StoryLoadResult(todos=[], hint="")

    tasks = parse_story_tasks(story_content, story_id, config.section_aliases)
    fresh = tasks_to_todos(tasks)

    existing = tracker.get_current_todos() or []
    merged = merge_todos(existing, fresh, story_id)
    tracker.set_current_todos(merged)

    logger.info(
        f"Synced story {story_id} tasks to todos: {len(tasks)} tasks, "
        f"{len(existing)} previous, {len(merged)} total"
    )

    return StoryLoadResult(
        todos=merged,
        hint=render_todo_hint(story_id, merged),
        task_count=len(tasks),
    )


def on_todos_written(
    tracker: StoryTracker,
    config: SyncConfig,
    stories_dir: Path,
    todos: list[TodoItem],
) -> Optional[SyncReport]:
    """Apply the assistant's todo status changes to story checkboxes.

    Each story todo is matched against the previous snapshot. When its
    completed-ness changed, the checkbox is located in the story file and
    flipped. Anything that can't be resolved with confidence is skipped and
    the document left alone.

    The new list always replaces the tracker snapshot, whatever happened to
    individual items.

    Returns:
        SyncReport, or None when todo sync is disabled
    """
    if not config.todo_sync:
        return None

    previous = tracker.get_current_todos() or []
    report = SyncReport()

    for todo in todos:
        report.processed += 1
        _reconcile_todo(todo, previous, config, Path(stories_dir), report)

    tracker.set_current_todos(todos)

    logger.info(f"Todo sync report: {report.to_dict()}")
    return report


def _reconcile_todo(
    todo: TodoItem,
    previous: list[TodoItem],
    config: SyncConfig,
    stories_dir: Path,
    report: SyncReport,
) -> None:
    content_story = decode_story_from_content(todo.content)
    parsed_id = decode_id(todo.id)

    # No prefix and no decodable id: the assistant's own todo
    if content_story is None and parsed_id is None:
        report.user_skipped += 1
        return

    match = find_match(todo, previous, config.similarity_floor)
    if match.match_type == MATCH_NONE:
        if match.confidence > 0:
            report.low_confidence += 1
            logger.debug(
                f"Low-confidence match for '{todo.content}' ({match.confidence:.2f}), skipping"
            )
        else:
            report.unmatched += 1
        return
    report.matched[match.match_type] += 1

    prior = match.matched
    was_checked = prior.status == TodoStatus.COMPLETED.value
    now_checked = todo.status == TodoStatus.COMPLETED.value
    if was_checked == now_checked:
        report.unchanged += 1
        return

    # The prior item was projected from the document, so its id is the better hint
    id_info = decode_id(prior.id) or parsed_id
    story_id = (
        content_story
        or decode_story_from_content(prior.content)
        or (id_info.story_id if id_info else None)
    )
    if story_id is None:
        report.identity_misses += 1
        logger.warning(f"Cannot tell which story todo {todo.id!r} belongs to, skipping")
        return

    line_hint = id_info.line_hint if id_info and id_info.story_id == story_id else None

    story_file = find_story_file(stories_dir, story_id)
    if story_file is None:
        report.locate_misses += 1
        logger.warning(f"Story file not found for story {story_id} (todo {todo.id!r})")
        return

    line_number = find_checkbox_line(
        story_file.path,
        prior.content,
        line_hint,
        radius=config.search_radius,
        similarity_floor=config.similarity_floor,
    )
    if line_number is None and todo.content != prior.content:
        line_number = find_checkbox_line(
            story_file.path,
            todo.content,
            line_hint,
            radius=config.search_radius,
            similarity_floor=config.similarity_floor,
        )
    if line_number is None:
        report.locate_misses += 1
        logger.warning(f"Checkbox not found in {story_file.path} for todo {todo.id!r}")
        return

    if set_checkbox(story_file.path, line_number, now_checked):
        report.checkboxes_updated += 1
        logger.info(
            f"Updated checkbox: story {story_id} line {line_number} "
            f"-> {'checked' if now_checked else 'unchecked'}"
        )
    else:
        report.unchanged += 1
