"""Shared constants for storysync."""

import re
from pathlib import Path
from types import MappingProxyType

# Delimiter between story id and section label in todo content prefixes.
# Non-ASCII so it never collides with ordinary task wording.
SEPARATOR = "Δ"

# "- [ ] text" / "  - [x] text"
CHECKBOX_RE = re.compile(r'^(\s*)- \[([ xX])\] (.+)$')
HEADING_RE = re.compile(r'^##\s+(.+)$')

# Section heading aliases (lowercased, matched by prefix) -> section value.
# Order matters: "tasks / subtasks" must be tried before "tasks".
DEFAULT_SECTION_ALIASES = MappingProxyType({
    "acceptance criteria": "ac",
    "tasks / subtasks": "tasks",
    "tasks/subtasks": "tasks",
    "tasks": "tasks",
    "subtasks": "tasks",
    "implementation notes": "impl-notes",
})

SECTION_LABELS = MappingProxyType({
    "ac": "AC",
    "tasks": "Task",
    "impl-notes": "Fix",
})

# Reconciliation tunables
DEFAULT_SIMILARITY_FLOOR = 0.7
DEFAULT_SEARCH_RADIUS = 15
DEFAULT_HISTORY_LIMIT = 100

# Project-relative and global paths
CONFIG_FILENAME = "storysync.yaml"
DEFAULT_STORIES_DIR = "docs/implementation-artifacts/stories"
DEFAULT_STATE_FILE = Path.home() / ".config" / "storysync" / "state.json"

# Story file names: story-4-1.md, story-4-1-title.md, 4-1.md, 4-1-title.md
STORY_FILENAME_RE = re.compile(r'^(story-)?(\d+)-(\d+)(?:-[a-zA-Z0-9-]+)?\.md$', re.IGNORECASE)
