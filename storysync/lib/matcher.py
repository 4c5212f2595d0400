"""
Todo matcher.

Pairs a todo returned by the assistant with the item it came from in the
previous snapshot. Attempts, in order:

  1. exact id            -> "id", confidence 1.0
  2. exact content       -> "exact-content", confidence 1.0
  3. word-set similarity -> "similar-content" if above the floor, else "none"

Ambiguous matches are left unresolved rather than guessed.
"""

import logging

from storysync.lib.constants import DEFAULT_SIMILARITY_FLOOR
from storysync.lib.types import MatchResult, TodoItem

logger = logging.getLogger(__name__)

MATCH_ID = "id"
MATCH_EXACT = "exact-content"
MATCH_SIMILAR = "similar-content"
MATCH_NONE = "none"


def _normalize(text: str) -> str:
    return " ".join((text or "").split()).lower()


def word_similarity(a: str, b: str) -> float:
    """Jaccard similarity of the case-insensitive whitespace word sets of a and b."""
    a = _normalize(a)
    b = _normalize(b)
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0

    words_a = set(a.split())
    words_b = set(b.split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def content_matches(candidate: str, search: str, similarity_floor: float = DEFAULT_SIMILARITY_FLOOR) -> bool:
    """Content rule shared by the matcher and the checkbox locator.

    Accepts exact (case-insensitive) equality, substring in either
    direction, or word similarity strictly above the floor.
    """
    candidate = _normalize(candidate)
    search = _normalize(search)
    if not candidate or not search:
        return False
    if candidate == search:
        return True
    if candidate in search or search in candidate:
        return True
    return word_similarity(candidate, search) > similarity_floor


def find_match(
    incoming: TodoItem,
    prior: list[TodoItem],
    similarity_floor: float = DEFAULT_SIMILARITY_FLOOR,
) -> MatchResult:
    """Find the prior todo that incoming most likely corresponds to.

    An exact id match wins even when the content was also reworded.
    Similarity ties go to the earliest prior entry.
    """
    if incoming.id:
        for item in prior:
            if item.id == incoming.id:
                return MatchResult(matched=item, match_type=MATCH_ID, confidence=1.0)

    content = (incoming.content or "").strip()
    if content:
        for item in prior:
            if (item.content or "").strip() == content:
                return MatchResult(matched=item, match_type=MATCH_EXACT, confidence=1.0)

    best_item = None
    best_score = 0.0
    for item in prior:
        score = word_similarity(incoming.content, item.content)
        if score > best_score:
            best_item = item
            best_score = score

    if best_item is not None and best_score > similarity_floor:
        return MatchResult(matched=best_item, match_type=MATCH_SIMILAR, confidence=best_score)

    if best_item is not None:
        logger.debug(
            f"Best candidate for '{incoming.content}' scored {best_score:.2f}, "
            f"below floor {similarity_floor}"
        )
    return MatchResult(matched=None, match_type=MATCH_NONE, confidence=best_score)
