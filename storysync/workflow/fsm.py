"""Story lifecycle state machine using transitions library.

States:
    loading       story content fetched, not yet confirmed as being worked
    in_progress   explicitly being worked
    completed     done
    blocked       waiting on something external
    needs_review  implementation done, awaiting review

Usage:
    from storysync.workflow.fsm import StoryFSM, transition_to

    fsm = StoryFSM("2.3")           # starts in "loading"
    fsm.start()                     # loading -> in_progress
    transition_to(fsm, StoryStatus.NEEDS_REVIEW)
"""

import logging
from enum import Enum
from typing import Callable

from transitions import Machine, MachineError

logger = logging.getLogger(__name__)


class StoryStatus(Enum):
    """All valid story states. Values match the persisted status strings."""

    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    NEEDS_REVIEW = "needs_review"


STATES = [s.value for s in StoryStatus]

# Each trigger becomes a method on the FSM
TRANSITIONS = [
    # Caller confirms the loaded story is being worked
    {"trigger": "start", "source": "loading", "dest": "in_progress"},

    # Any explicit status promotes a story out of loading
    {"trigger": "complete", "source": "loading", "dest": "completed"},
    {"trigger": "complete", "source": "in_progress", "dest": "completed"},
    {"trigger": "complete", "source": "needs_review", "dest": "completed"},

    {"trigger": "block", "source": "loading", "dest": "blocked"},
    {"trigger": "block", "source": "in_progress", "dest": "blocked"},

    {"trigger": "request_review", "source": "loading", "dest": "needs_review"},
    {"trigger": "request_review", "source": "in_progress", "dest": "needs_review"},

    # Back to work: unblocked, review sent it back, or completed story reopened
    {"trigger": "resume", "source": "blocked", "dest": "in_progress"},
    {"trigger": "resume", "source": "needs_review", "dest": "in_progress"},
    {"trigger": "resume", "source": "completed", "dest": "in_progress"},
]


def _build_trigger_lookup() -> dict[tuple[str, str], str]:
    """Build lookup from (source, dest) -> trigger name."""
    lookup: dict[tuple[str, str], str] = {}
    for t in TRANSITIONS:
        key = (t["source"], t["dest"])
        if key not in lookup:
            lookup[key] = t["trigger"]
    return lookup


TRIGGER_FOR = _build_trigger_lookup()


class InvalidTransition(Exception):
    """Raised when attempting an invalid story status transition."""

    def __init__(self, from_state: str, to_state: StoryStatus, story_id: str = ""):
        self.from_state = from_state
        self.to_state = to_state
        self.story_id = story_id
        super().__init__(
            f"Invalid transition: {from_state} -> {to_state.value}"
            + (f" (story: {story_id})" if story_id else "")
        )


def parse_status(status_str: str | None) -> StoryStatus | None:
    """Parse a status string into StoryStatus. Returns None if unknown."""
    if status_str is None:
        return None
    for status in StoryStatus:
        if status.value == status_str:
            return status
    return None


class StoryFSM:
    """State machine for one story's lifecycle.

    Persistence is the caller's concern; pass on_transition to be told
    about every change.
    """

    def __init__(
        self,
        story_id: str,
        initial: str = StoryStatus.LOADING.value,
        on_transition: Callable[[str, str, str], None] | None = None,
    ):
        """
        Args:
            story_id: Story being tracked (for log messages)
            initial: Starting state; unknown values fall back to "loading"
            on_transition: Optional callback(from_state, to_state, trigger)
        """
        self.story_id = story_id
        self.on_transition = on_transition

        if initial not in STATES:
            logger.warning(f"[FSM] {story_id}: Unknown state '{initial}', defaulting to 'loading'")
            initial = StoryStatus.LOADING.value

        self.machine = Machine(
            model=self,
            states=STATES,
            transitions=TRANSITIONS,
            initial=initial,
            auto_transitions=False,
            send_event=True,
            after_state_change="on_state_change",
        )

    def on_state_change(self, event) -> None:
        from_state = event.transition.source
        to_state = event.transition.dest
        trigger = event.event.name

        logger.info(f"[FSM] {self.story_id}: {from_state} -> {to_state} ({trigger})")

        if self.on_transition:
            self.on_transition(from_state, to_state, trigger)

    def can(self, trigger: str) -> bool:
        """Check if a trigger can be executed in current state."""
        return trigger in self.machine.get_triggers(self.state)

    def get_available_triggers(self) -> list[str]:
        return self.machine.get_triggers(self.state)


def transition_to(fsm: StoryFSM, to_status: StoryStatus) -> bool:
    """Move fsm to to_status via the matching trigger.

    Returns False if already in that state (no-op), True if it moved.

    Raises:
        InvalidTransition: If no trigger leads from the current state to to_status
    """
    current = fsm.state
    if current == to_status.value:
        logger.debug(f"[STATE] {fsm.story_id}: already {current}, no-op")
        return False

    trigger = TRIGGER_FOR.get((current, to_status.value))
    if trigger is None:
        raise InvalidTransition(current, to_status, fsm.story_id)

    try:
        getattr(fsm, trigger)()
    except MachineError as e:
        raise InvalidTransition(current, to_status, fsm.story_id) from e
    return True
