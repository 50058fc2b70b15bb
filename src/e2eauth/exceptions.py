"""Exception hierarchy for e2eauth.

All exceptions inherit from :class:`E2EAuthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`e2eauth.exit_codes`.
The library itself rarely lets these escape: the token acquirer and the
login flow hand failures to :class:`~e2eauth.fallback.FallbackPolicy`,
which only raises when it has been disabled.

Subclass hierarchy::

    E2EAuthError (exit 1)
    +-- InvalidUsageError     (exit 2)
    +-- AuthError             (exit 3)
    +-- ConnectionError_      (exit 6)
    +-- ElementNotFoundError  (exit 8)
    +-- InterceptionError     (exit 9)
    +-- ConfigError           (exit 1)
"""

from e2eauth.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_ELEMENT_NOT_FOUND,
    EXIT_GENERIC_FAILURE,
    EXIT_INTERCEPTION_ERROR,
    EXIT_INVALID_USAGE,
)


class E2EAuthError(Exception):
    """Base exception for all e2eauth errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(E2EAuthError):
    """Raised for unknown command names or invalid CLI arguments."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(E2EAuthError):
    """Raised when a token cannot be acquired and fallback is disabled."""

    exit_code = EXIT_AUTH_FAILURE


class ConnectionError_(E2EAuthError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ElementNotFoundError(E2EAuthError):
    """Raised when no selector strategy locates a required login page element."""

    exit_code = EXIT_ELEMENT_NOT_FOUND


class InterceptionError(E2EAuthError):
    """Raised when the token endpoint response is missing or malformed."""

    exit_code = EXIT_INTERCEPTION_ERROR


class ConfigError(E2EAuthError):
    """Raised for configuration problems (bad numeric variables, missing base URL)."""

    exit_code = EXIT_GENERIC_FAILURE
