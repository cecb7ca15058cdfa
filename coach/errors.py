"""
Error taxonomy for the conversational session orchestrator.

Every error carries a stable ``code`` so the UI server can report it without
inspecting exception classes. Mode-mismatch discards are not errors and never
raise.
"""


class CoachError(Exception):
    """Base class for all orchestrator errors."""

    code = "coach_error"


class ConfigurationError(CoachError):
    """Agent setup is missing or still holds a placeholder value."""

    code = "configuration_error"


class AlreadyActiveError(CoachError):
    """A session is already connecting or connected."""

    code = "already_active"


class SessionConnectionError(CoachError):
    """The transport failed to connect, dropped, or the session ended early."""

    code = "connection_error"


class ConnectionTimeoutError(SessionConnectionError):
    """The session did not reach ``connected`` within the allowed time."""

    code = "connection_timeout"


class EmptyMessageError(CoachError):
    """A user message was blank after trimming."""

    code = "empty_message"


class NotFoundError(CoachError):
    """No conversation record exists with the requested id."""

    code = "not_found"
