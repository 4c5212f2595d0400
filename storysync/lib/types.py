"""
Shared data types for storysync.

Dataclasses used across the parser, matcher, merge engine and tracker,
kept here to avoid circular imports.
"""

from dataclasses import dataclass, field
from enum import Enum


class Section(Enum):
    """Story section a checkbox was found under.

    Values are the short tokens embedded in todo ids.
    """
    ACCEPTANCE_CRITERIA = "ac"
    TASKS = "tasks"
    IMPLEMENTATION_NOTES = "impl-notes"


class TodoStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class Task:
    """A single checkbox line parsed from a story document.

    Created fresh on every parse. A later parse of an edited document
    produces a new Task, possibly with a different line_number.
    """
    story_id: str                 # "2.3"
    section: Section
    section_index: int            # 1-based ordinal within the section
    line_number: int              # 0-based line at parse time
    content: str                  # Text after the checkbox marker, trimmed
    checked: bool
    priority: Priority
    indent: int = 0               # Leading whitespace width

    @property
    def id(self) -> str:
        return f"{self.story_id}:{self.section.value}:{self.line_number}"


@dataclass
class TodoItem:
    """Assistant-facing todo entry.

    Either projected from a Task (content carries a [storyΔLabelN] prefix)
    or authored directly by the assistant/user.
    """
    id: str
    content: str
    status: str = TodoStatus.PENDING.value
    priority: str = Priority.MEDIUM.value

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "status": self.status,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TodoItem":
        return cls(
            id=str(data.get("id", "")),
            content=str(data.get("content", "")),
            status=data.get("status", TodoStatus.PENDING.value),
            priority=data.get("priority", Priority.MEDIUM.value),
        )


@dataclass(frozen=True)
class ParsedTodoId:
    """Decoded todo id. line_hint is only valid until the document is edited."""
    story_id: str
    section: Section
    line_hint: int


@dataclass
class MatchResult:
    """Outcome of pairing an incoming todo with a prior one."""
    matched: TodoItem | None
    match_type: str               # "id", "exact-content", "similar-content", "none"
    confidence: float = 0.0


@dataclass
class SyncReport:
    """Diagnostic counts from one reconciliation pass.

    Advisory only: nothing reads these to make decisions.
    """
    processed: int = 0
    matched: dict[str, int] = field(default_factory=lambda: {
        "id": 0, "exact-content": 0, "similar-content": 0,
    })
    user_skipped: int = 0
    unmatched: int = 0
    low_confidence: int = 0
    identity_misses: int = 0
    unchanged: int = 0
    locate_misses: int = 0
    checkboxes_updated: int = 0

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "matched": dict(self.matched),
            "user_skipped": self.user_skipped,
            "unmatched": self.unmatched,
            "low_confidence": self.low_confidence,
            "identity_misses": self.identity_misses,
            "unchanged": self.unchanged,
            "locate_misses": self.locate_misses,
            "checkboxes_updated": self.checkboxes_updated,
        }
