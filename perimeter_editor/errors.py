"""
Editor Errors
=============

Bounded Context: User-visible failure taxonomy of the boundary editor.

Every error carries a stable ``code`` so the control plane can publish it as a
notice without parsing the message.

Hierarchy:

    EditorError
    ├── ValidationError          # rejected before any gateway call
    ├── CloneError               # geometry could not be rebuilt as an overlay
    ├── PersistenceError         # gateway call failed
    └── InvalidTransitionError   # action not available in the current state
        └── EditorBusyError      # a gateway call is still in flight
"""


class EditorError(Exception):
    """Base class for all editor errors."""

    code = "editor_error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code


class ValidationError(EditorError):
    """Raised when user input is rejected (e.g. an empty boundary name)."""

    code = "validation_error"


class CloneError(EditorError):
    """Raised when a geometry cannot be turned into a new overlay handle."""

    code = "clone_error"


class PersistenceError(EditorError):
    """Raised by gateways when a persistence call fails."""

    code = "persistence_error"


class InvalidTransitionError(EditorError):
    """Raised when an action is disabled in the current editor state."""

    code = "invalid_transition"


class EditorBusyError(InvalidTransitionError):
    """Raised when a session-mutating action arrives while a save is pending."""

    code = "editor_busy"
