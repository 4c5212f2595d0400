"""
Story file lookup.

Stories live as markdown files in the project's stories directory, named
by epic and number in any of these forms (case-insensitive):

  story-4-1.md
  story-4-1-setup.md
  4-1.md
  4-1-fastify-setup.md

Files with the "story-" prefix win over those without.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from storysync.lib.constants import STORY_FILENAME_RE
from storysync.pm.models import StoryFile

logger = logging.getLogger(__name__)

STORY_ID_RE = re.compile(r'^(?:story-)?(\d+)[.-](\d+)', re.IGNORECASE)


def normalize_story_id(story_id: str) -> Optional[str]:
    """Normalize "story-4-1", "4-1" or "4.1" to "4.1". Returns None if unrecognized."""
    match = STORY_ID_RE.match((story_id or "").strip())
    if not match:
        return None
    return f"{match.group(1)}.{match.group(2)}"


def parse_story_id_from_filename(filename: str) -> Optional[dict]:
    """Parse a story filename into {id, epic, number, has_story_prefix}, or None."""
    match = STORY_FILENAME_RE.match(filename)
    if not match:
        return None

    epic, number = match.group(2), match.group(3)
    return {
        "id": f"{epic}.{number}",
        "epic": epic,
        "number": number,
        "has_story_prefix": bool(match.group(1)),
    }


def find_story_file(stories_dir: Path, story_id: str) -> Optional[StoryFile]:
    """Find the markdown file for a story id.

    Returns None if the directory or a matching file doesn't exist. If several
    files match, the "story-" prefixed one (then alphabetically first) is
    selected and the rest are logged.
    """
    stories_dir = Path(stories_dir)
    if not stories_dir.is_dir():
        return None

    normalized = normalize_story_id(story_id)
    if normalized is None:
        return None

    matches = []
    for f in stories_dir.iterdir():
        if not f.is_file():
            continue
        parsed = parse_story_id_from_filename(f.name)
        if parsed and parsed["id"] == normalized:
            matches.append((parsed["has_story_prefix"], f))

    if not matches:
        return None

    matches.sort(key=lambda m: (not m[0], m[1].name))
    selected = matches[0][1]
    alternatives = [f.name for _, f in matches[1:]]

    if alternatives:
        reason = "has story- prefix" if matches[0][0] else "alphabetically first"
        logger.warning(
            f"Multiple files for story {normalized}: using {selected.name} ({reason}), "
            f"ignoring {', '.join(alternatives)}"
        )

    return StoryFile(
        path=str(selected),
        filename=selected.name,
        story_id=normalized,
        alternative_files=alternatives,
    )


def load_story(stories_dir: Path, story_id: str) -> Optional[tuple[StoryFile, str]]:
    """Find and read a story. Returns (StoryFile, markdown) or None."""
    story_file = find_story_file(stories_dir, story_id)
    if story_file is None:
        return None

    try:
        content = Path(story_file.path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read story {story_file.story_id}: {e}")
        return None

    return story_file, content


def list_stories(stories_dir: Path) -> list[str]:
    """List normalized ids of all stories in the directory, sorted by epic then number."""
    stories_dir = Path(stories_dir)
    if not stories_dir.is_dir():
        return []

    ids = set()
    for f in stories_dir.iterdir():
        parsed = parse_story_id_from_filename(f.name)
        if parsed:
            ids.add((int(parsed["epic"]), int(parsed["number"])))

    return [f"{epic}.{number}" for epic, number in sorted(ids)]
