"""
Data models for PM module.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class StoryFile:
    """A story markdown file resolved from a story id."""
    path: str                                  # Full path to the file
    filename: str                              # Name as it exists on disk
    story_id: str                              # Normalized id: "4.1"
    alternative_files: list[str] = field(default_factory=list)

    @property
    def has_multiple_matches(self) -> bool:
        return bool(self.alternative_files)


@dataclass
class TrackedStory:
    """The story currently being worked, as held by the tracker."""
    id: str                                    # "2.3"
    content: str                               # Raw story markdown at load time
    status: str                                # loading, in_progress, completed, blocked, needs_review
    started_at: str                            # ISO timestamp
    completed_at: Optional[str] = None         # ISO timestamp when completed

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "content": self.content,
            "status": self.status,
            "startedAt": self.started_at,
        }
        if self.completed_at:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "TrackedStory":
        return cls(
            id=data["id"],
            content=data.get("content", ""),
            status=data["status"],
            started_at=data["startedAt"],
            completed_at=data.get("completedAt"),
        )
