"""
Centralized error messages for consistent error reporting at the caller boundary.

Turns league exceptions into a small, stable payload: the taxonomy kind plus
a human-readable message. Internal details never leave this module.
"""

from typing import Dict

from league.utils.exceptions import LeagueException


class ErrorMessages:
    """Centralized error payload factory."""

    GENERIC_MESSAGE = "An unexpected error occurred. Please try again later."

    @staticmethod
    def from_exception(error: Exception) -> Dict[str, str]:
        """Build the caller-facing payload for any exception."""
        if isinstance(error, LeagueException):
            return {"error": error.kind, "message": error.user_message}
        return {"error": "InternalError", "message": ErrorMessages.GENERIC_MESSAGE}


def format_error(error: Exception) -> Dict[str, str]:
    """Shortcut for ErrorMessages.from_exception."""
    return ErrorMessages.from_exception(error)
