"""
StackJump Error Hierarchy

Unified exception hierarchy for consistent error handling across the codebase.
All custom exceptions inherit from StackJumpError for easy catching and filtering.

Two families matter to callers:

- internal/fatal errors (InvalidStateError and its PreconditionError subclass)
  signal a malformed board or a programming error and must not be recovered
  from silently;
- user-facing errors (InvalidMoveError, GameOverError, NotationError) are
  raised only by the game layer, never by the pure move-generation core,
  which reports bad candidates as an ``invalid`` validation result instead.

Usage:
    from stackjump.errors import InvalidMoveError

    try:
        state = GameEngine.apply_move(state, "c3-d4")
    except InvalidMoveError as e:
        logger.warning(f"Rejected move: {e.message}, reason: {e.reason}")
"""

from typing import Any

__all__ = [
    "ConfigurationError",
    "FatalError",
    "GameOverError",
    "InvalidMoveError",
    "InvalidStateError",
    "NotationError",
    "PreconditionError",
    "SerializationError",
    "StackJumpError",
]


class StackJumpError(Exception):
    """Base exception for all StackJump errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "STACKJUMP_ERROR"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


# =============================================================================
# Internal Errors
# =============================================================================


class InvalidStateError(StackJumpError):
    """Corrupted or unexpected board/game state.

    Raised when the board violates a data-model invariant (an empty stack
    stored under a cell, a cell off the board, an unknown owner) or when a
    position-stack index is out of range. These are programming errors.
    """
    code: str = "INVALID_STATE"


class PreconditionError(InvalidStateError):
    """A core routine was called with arguments it does not accept.

    The single-jump enumerator raises this when asked about an empty cell;
    callers must only query occupied cells.
    """
    code: str = "PRECONDITION_FAILED"


# =============================================================================
# User-facing Errors
# =============================================================================


class InvalidMoveError(StackJumpError):
    """Move that cannot be applied to the current position.

    Attributes:
        reason: Validator message code (e.g. "UNCONTROLLED", "INVALID_MOVE")
    """
    code: str = "INVALID_MOVE"

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, context=context)
        self.reason = reason
        if reason:
            self.context["reason"] = reason


class GameOverError(StackJumpError):
    """A move was submitted to a finished game."""
    code: str = "GAME_OVER"


class NotationError(StackJumpError):
    """Move token does not match the ``cell (('-'|'x') cell)*`` grammar."""
    code: str = "INVALID_NOTATION"


# =============================================================================
# Configuration / IO Errors
# =============================================================================


class ConfigurationError(StackJumpError):
    """Invalid configuration.

    Raised for unknown rulesets, a new game requested for a ruleset without
    an opening layout, or unparsable environment settings.
    """
    code: str = "CONFIGURATION_ERROR"


class SerializationError(StackJumpError):
    """Stored game record could not be read back."""
    code: str = "SERIALIZATION_ERROR"


# Alias used by callers that only care about the fatal/non-fatal split.
FatalError = InvalidStateError
