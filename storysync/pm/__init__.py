"""
PM (Project Management) module for storysync.

Resolves story ids to markdown files on disk and holds the story models
shared with the tracker.
"""

from storysync.pm.models import StoryFile, TrackedStory
from storysync.pm.stories import (
    find_story_file,
    list_stories,
    load_story,
    normalize_story_id,
    parse_story_id_from_filename,
)

__all__ = [
    "StoryFile",
    "TrackedStory",
    "find_story_file",
    "list_stories",
    "load_story",
    "normalize_story_id",
    "parse_story_id_from_filename",
]
