"""Exceptions raised by the review engine."""


class VocabTutorError(Exception):
    """Base class for engine errors."""


class InvalidArgument(VocabTutorError, ValueError):
    """Malformed caller input, e.g. a non-positive session size."""


class EmptyQueue(VocabTutorError):
    """A session was started with nothing to review."""


class InvalidTransition(VocabTutorError):
    """A session method was called in a state that forbids it."""

    def __init__(self, action: str, state: str):
        super().__init__(f"cannot {action} while {state}")
        self.action = action
        self.state = state


class PersistenceFailure(VocabTutorError):
    """The card store could not write a scheduling record."""

    def __init__(self, item_id: int, message: str = "write failed"):
        super().__init__(f"item {item_id}: {message}")
        self.item_id = item_id
