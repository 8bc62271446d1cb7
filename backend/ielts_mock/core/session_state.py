"""
Test session lifecycle.

    created -> in_progress -> completed -> evaluated (-> evaluated)

A session may also jump from created straight to completed when the
student submits without any auto-save in between. Nothing moves backwards;
re-evaluation is evaluated -> evaluated and overwrites the stored band.
"""

from typing import Dict, FrozenSet

from ielts_mock.models.models import SessionStatus


class InvalidSessionTransition(Exception):
    """Raised when a session is asked to move to a state it cannot reach."""

    def __init__(self, current: SessionStatus, target: SessionStatus):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move test session from {current.value} to {target.value}"
        )


ALLOWED_TRANSITIONS: Dict[SessionStatus, FrozenSet[SessionStatus]] = {
    SessionStatus.CREATED: frozenset(
        {SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED}
    ),
    SessionStatus.IN_PROGRESS: frozenset(
        {SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED}
    ),
    SessionStatus.COMPLETED: frozenset({SessionStatus.EVALUATED}),
    SessionStatus.EVALUATED: frozenset({SessionStatus.EVALUATED}),
}

_missing = [status.value for status in SessionStatus if status not in ALLOWED_TRANSITIONS]
if _missing:
    raise RuntimeError(f"ALLOWED_TRANSITIONS has no entry for: {_missing}")


def can_transition(current: SessionStatus, target: SessionStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: SessionStatus, target: SessionStatus) -> None:
    """
    Validate a lifecycle move.

    Raises:
        InvalidSessionTransition: If target is not reachable from current
    """
    if not can_transition(current, target):
        raise InvalidSessionTransition(current, target)


def accepts_answers(status: SessionStatus) -> bool:
    """Whether answers may still be written to a session in this state."""
    return status in (SessionStatus.CREATED, SessionStatus.IN_PROGRESS)
