"""
Checkbox locator and mutator for story files.

Todo ids carry the line a checkbox was on when the story was parsed. The
story may have been edited since, so the hint is only a starting point:
every candidate line is confirmed against the task text before use.
"""

import logging
from pathlib import Path

from storysync.lib.constants import CHECKBOX_RE, DEFAULT_SEARCH_RADIUS, DEFAULT_SIMILARITY_FLOOR
from storysync.lib.identity import extract_task_text
from storysync.lib.matcher import content_matches

logger = logging.getLogger(__name__)


def _read_lines(path: Path) -> list[str]:
    # newline="" keeps \r\n intact so a rewrite only touches the bracket
    with open(path, encoding="utf-8", newline="") as f:
        return f.read().split("\n")


def _line_matches(line: str, search: str, similarity_floor: float) -> bool:
    match = CHECKBOX_RE.match(line)
    if not match:
        return False
    return content_matches(match.group(3).strip(), search, similarity_floor)


def _window_order(line_hint: int, radius: int, line_count: int) -> list[int]:
    """Line indices around the hint, nearest first, excluding the hint itself."""
    order = []
    for distance in range(1, radius + 1):
        for i in (line_hint - distance, line_hint + distance):
            if 0 <= i < line_count:
                order.append(i)
    return order


def find_checkbox_line(
    story_path: Path,
    task_content: str,
    line_hint: int | None,
    radius: int = DEFAULT_SEARCH_RADIUS,
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> int | None:
    """Find the current line index of the checkbox for task_content.

    Search order: the hinted line, then outward within +/- radius nearest
    first, then the rest of the file once. Returns None if nothing matches
    or the file can't be read.

    Args:
        story_path: Story markdown file
        task_content: Todo content (a [storyΔLabelN] prefix is stripped)
        line_hint: 0-based line from the todo id, or None to scan the whole file
        radius: Lines either side of the hint to try before a full scan
        similarity_floor: Minimum word similarity for a fuzzy line match
    """
    try:
        lines = _read_lines(Path(story_path))
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read story file {story_path}: {e}")
        return None

    search = extract_task_text(task_content)
    if not search:
        return None

    tried = set()
    if line_hint is not None and 0 <= line_hint < len(lines):
        tried.add(line_hint)
        if _line_matches(lines[line_hint], search, similarity_floor):
            return line_hint

    if line_hint is not None:
        for i in _window_order(line_hint, radius, len(lines)):
            tried.add(i)
            if _line_matches(lines[i], search, similarity_floor):
                logger.debug(f"Checkbox for '{search}' moved from line {line_hint} to {i}")
                return i

    for i, line in enumerate(lines):
        if i in tried:
            continue
        if _line_matches(line, search, similarity_floor):
            logger.debug(f"Checkbox for '{search}' found by full scan at line {i}")
            return i

    return None


def set_checkbox(story_path: Path, line_number: int, checked: bool) -> bool:
    """Set the checkbox on line_number to checked/unchecked.

    The line is re-validated as a checkbox before writing. Only the bracket
    contents change; the rest of the file is preserved byte for byte.

    Returns:
        True if the file was changed, False if the line was out of range,
        not a checkbox, already in the requested state, or I/O failed.
    """
    path = Path(story_path)
    try:
        lines = _read_lines(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to read story file {path}: {e}")
        return False

    if line_number < 0 or line_number >= len(lines):
        return False

    line = lines[line_number]
    match = CHECKBOX_RE.match(line)
    if not match:
        logger.warning(f"Line {line_number} of {path} is not a checkbox, not updating")
        return False

    currently_checked = match.group(2).lower() == "x"
    if currently_checked == checked:
        return False

    # "- [" follows the indent; the state character sits right after it
    pos = len(match.group(1)) + 3
    lines[line_number] = line[:pos] + ("x" if checked else " ") + line[pos + 1:]

    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write("\n".join(lines))
    except OSError as e:
        logger.warning(f"Failed to write story file {path}: {e}")
        return False

    return True
