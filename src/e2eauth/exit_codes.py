"""Numeric process exit codes used by the ``e2eauth`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~e2eauth.exceptions.E2EAuthError` subclass. CI
scripts can inspect the exit code to tell an auth failure from a broken
login page without parsing stderr.

Example::

    $ e2eauth --strict token
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the provider rejected the credentials
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""Token acquisition failed and the fallback policy was disabled."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_ELEMENT_NOT_FOUND = 8
"""A login page element could not be located by any selector strategy."""

EXIT_INTERCEPTION_ERROR = 9
"""The token endpoint response was never captured or could not be read."""
