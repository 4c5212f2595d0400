"""
Todo list merging.

When a story is (re)loaded its freshly parsed todos replace whatever the
previous snapshot held for that story. Everything else the assistant is
tracking survives.
"""

import logging

from storysync.lib.identity import decode_story_from_content
from storysync.lib.types import TodoItem, TodoStatus

logger = logging.getLogger(__name__)


def merge_todos(
    existing: list[TodoItem],
    fresh: list[TodoItem],
    loading_story_id: str,
) -> list[TodoItem]:
    """Combine the previous snapshot with a freshly loaded story's todos.

    Result order is user todos, then other stories' unfinished todos, then
    the fresh todos. Dropped: anything from the loading story (the fresh
    parse supersedes it) and completed todos of other stories.

    User todos are always kept as-is. Story todos never introduce a
    duplicate id: a retained other-story todo is skipped if a fresh todo
    carries its id, and any story todo whose id is already present is skipped.
    """
    user_todos = []
    other_story_todos = []

    for todo in existing:
        story_id = decode_story_from_content(todo.content)
        if story_id is None:
            user_todos.append(todo)
        elif story_id != loading_story_id and todo.status != TodoStatus.COMPLETED.value:
            other_story_todos.append(todo)

    merged = list(user_todos)
    seen_ids = {todo.id for todo in user_todos if todo.id}
    fresh_ids = {todo.id for todo in fresh if todo.id}

    for todo in other_story_todos:
        if todo.id and (todo.id in seen_ids or todo.id in fresh_ids):
            logger.debug(f"Dropping duplicate todo id {todo.id}")
            continue
        if todo.id:
            seen_ids.add(todo.id)
        merged.append(todo)

    for todo in fresh:
        if todo.id and todo.id in seen_ids:
            logger.debug(f"Dropping duplicate todo id {todo.id}")
            continue
        if todo.id:
            seen_ids.add(todo.id)
        merged.append(todo)

    return merged
