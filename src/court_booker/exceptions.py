"""Error taxonomy for the booking automation."""

from __future__ import annotations


class CourtBookerError(Exception):
    """Base class for every error raised by the booking core."""


class ParseFailure(CourtBookerError):
    """Date or time text could not be understood; the user must resubmit."""


class NavigationFailure(CourtBookerError):
    """The scheduler did not reach the target date within the allowed number of steps."""


class ActionFailure(CourtBookerError):
    """A click or confirmation step did not produce the expected effect."""


class SessionFailure(CourtBookerError):
    """The browser session was lost or could not be established."""


RETRYABLE_ERRORS = (SessionFailure, ActionFailure, NavigationFailure)
