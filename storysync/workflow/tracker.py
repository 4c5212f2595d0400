"""Current-story tracker.

Tracks which story is being worked, its lifecycle status, and the todo list
snapshot being reconciled against it. State survives process restarts in a
single JSON file (by default ~/.config/storysync/state.json).

Restoring is scoped to the project directory: state saved for another
project is discarded. The session id is never restored, every process gets
a fresh one.
"""

import json
import logging
import os
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path

from storysync.lib.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_STATE_FILE
from storysync.lib.types import TodoItem
from storysync.lib.validate import Invalid, ValidationError, load_json_checked, validate_before_write
from storysync.pm.models import TrackedStory
from storysync.workflow.fsm import StoryFSM, StoryStatus, parse_status, transition_to

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class StoryTracker:
    """Persistent holder of the current story and its todo snapshot.

    Every mutating call saves state to disk. Save failures are logged,
    never raised.
    """

    def __init__(
        self,
        project_dir: Path,
        state_file: Path | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.project_dir = str(Path(project_dir).resolve())
        self.state_file = Path(state_file) if state_file else DEFAULT_STATE_FILE
        self.history_limit = history_limit

        self.current_story: TrackedStory | None = None
        self.current_todos: list[TodoItem] | None = None
        self.session_id = str(uuid.uuid4())
        self.history: list[dict] = []

    def load(self) -> None:
        """Restore saved state if it belongs to this project.

        A missing, corrupt or schema-invalid state file leaves the tracker empty.
        """
        if not self.state_file.exists():
            return

        result = load_json_checked(self.state_file, "tracker_state")
        if isinstance(result, Invalid):
            logger.warning(f"Ignoring tracker state: {result.reason}")
            return

        saved = result.value
        if saved["projectDir"] != self.project_dir:
            logger.info(
                f"Tracker state belongs to {saved['projectDir']}, not {self.project_dir}; starting fresh"
            )
            return

        current = saved.get("currentStory")
        self.current_story = TrackedStory.from_dict(current) if current else None
        todos = saved.get("currentTodos")
        self.current_todos = [TodoItem.from_dict(t) for t in todos] if todos is not None else None
        self.history = list(saved.get("history", []))
        # session_id stays the freshly generated one

    def set_current_story(
        self,
        story_id: str,
        content: str = "",
        status: str = StoryStatus.LOADING.value,
    ) -> TrackedStory:
        """Make story_id the current story, replacing any previous one."""
        if parse_status(status) is None:
            raise ValueError(f"Unknown story status: {status}")

        self.current_story = TrackedStory(
            id=story_id,
            content=content,
            status=status,
            started_at=_utc_now(),
        )
        self._add_history_entry(story_id, status)
        self.save()
        return self.current_story

    def update_story_status(self, story_id: str, status: str) -> None:
        """Record a status change for story_id.

        If story_id is the current story its status moves through the FSM,
        so illegal moves raise InvalidTransition. A status equal to the
        current one is a no-op.

        Raises:
            ValueError: Unknown status string
            InvalidTransition: Not reachable from the current story's status
        """
        to_status = parse_status(status)
        if to_status is None:
            raise ValueError(f"Unknown story status: {status}")

        story = self.current_story
        if story is not None and story.id == story_id:
            fsm = StoryFSM(story_id, initial=story.status)
            if not transition_to(fsm, to_status):
                return
            story.status = fsm.state
            if to_status == StoryStatus.COMPLETED:
                story.completed_at = _utc_now()
            elif story.completed_at:
                story.completed_at = None

        self._add_history_entry(story_id, to_status.value)
        self.save()

    def get_current_story(self) -> TrackedStory | None:
        return self.current_story

    def get_current_story_context(self) -> str | None:
        """Formatted summary of the current story for session context, or None."""
        story = self.current_story
        if story is None:
            return None

        lines = [
            f"Current Story: {story.id}",
            f"Status: {story.status}",
            f"Started: {story.started_at}",
        ]
        if story.completed_at:
            lines.append(f"Completed: {story.completed_at}")

        recent = self.history[-5:]
        if recent:
            lines.append("")
            lines.append("Recent Activity:")
            for entry in recent:
                lines.append(f"- {entry['storyId']}: {entry['status']} at {entry['timestamp']}")

        return "\n".join(lines)

    def clear_current_story(self) -> None:
        self.current_story = None
        self.save()

    def get_session_id(self) -> str:
        return self.session_id

    def get_history(self) -> list[dict]:
        return list(self.history)

    def get_current_todos(self) -> list[TodoItem] | None:
        if self.current_todos is None:
            return None
        return list(self.current_todos)

    def set_current_todos(self, todos: list[TodoItem]) -> None:
        self.current_todos = list(todos)
        self.save()

    def clear_todos(self) -> None:
        self.current_todos = None
        self.save()

    def _add_history_entry(self, story_id: str, status: str) -> None:
        timestamp = _utc_now()
        # Keep history time-ordered even if the wall clock steps backwards
        if self.history and timestamp < self.history[-1]["timestamp"]:
            timestamp = self.history[-1]["timestamp"]

        self.history.append({
            "storyId": story_id,
            "status": status,
            "timestamp": timestamp,
        })

        if len(self.history) > self.history_limit:
            self.history = self.history[-self.history_limit:]

    def to_dict(self) -> dict:
        data = {
            "currentStory": self.current_story.to_dict() if self.current_story else None,
            "sessionId": self.session_id,
            "projectDir": self.project_dir,
            "history": self.history,
        }
        if self.current_todos is not None:
            data["currentTodos"] = [t.to_dict() for t in self.current_todos]
        return data

    def save(self) -> None:
        """Write state atomically: temp file in the same directory, then rename.

        State that fails schema validation is not written; the previous file
        stays on disk and a warning is logged.
        """
        data = self.to_dict()
        try:
            validate_before_write(data, "tracker_state", self.state_file)
        except ValidationError as e:
            logger.warning(f"Failed to save tracker state: {e}")
            return

        tmp_path = None
        try:
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.state_file.parent,
                prefix=f".{self.state_file.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.state_file)
            tmp_path = None
        except OSError as e:
            logger.warning(f"Failed to save tracker state to {self.state_file}: {e}")
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass


def create_tracker(project_dir: Path, state_file: Path | None = None, history_limit: int = DEFAULT_HISTORY_LIMIT) -> StoryTracker:
    """Create a StoryTracker and restore its saved state."""
    tracker = StoryTracker(project_dir, state_file=state_file, history_limit=history_limit)
    tracker.load()
    return tracker
