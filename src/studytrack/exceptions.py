"""Exception hierarchy for studytrack.

All exceptions inherit from :class:`StudytrackError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`studytrack.exit_codes`.
The top-level error handler in :func:`studytrack.app.main` catches
``StudytrackError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Library code (the coordinator in particular) catches ``StudytrackError`` at
each call site and never lets a network failure escape.

Subclass hierarchy::

    StudytrackError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- AuthError            (exit 3)
    +-- NotFoundError        (exit 4)
    +-- ServerError          (exit 5)
    +-- ConnectionError_     (exit 6)
    +-- RequestError         (exit 7)
    +-- ResponseFormatError  (exit 8)
    +-- ConfigError          (exit 1)
"""

from studytrack.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_REQUEST_ERROR,
    EXIT_RESPONSE_FORMAT_ERROR,
    EXIT_SERVER_ERROR,
)


class StudytrackError(Exception):
    """Base exception for all studytrack errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`studytrack.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(StudytrackError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(StudytrackError):
    """Raised when authentication fails (missing, expired or rejected token)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(StudytrackError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(StudytrackError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(StudytrackError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class RequestError(StudytrackError):
    """Raised when the API rejects a request with any other 4xx status."""

    exit_code = EXIT_REQUEST_ERROR


class ResponseFormatError(StudytrackError):
    """Raised when a response body cannot be validated into the expected model."""

    exit_code = EXIT_RESPONSE_FORMAT_ERROR


class ConfigError(StudytrackError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
