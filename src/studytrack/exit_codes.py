"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~studytrack.exceptions.StudytrackError` subclass.
Shell wrappers can inspect the exit code to tell failure classes apart
without parsing stderr.

Example::

    $ studytrack dashboard
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the bearer token was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication or authorisation failed."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_REQUEST_ERROR = 7
"""The API rejected the request with a 4xx status other than 401/403/404."""

EXIT_RESPONSE_FORMAT_ERROR = 8
"""The API answered with a payload that does not match the expected shape."""
