"""The fail-soft fallback policy.

End-to-end suites using this package must not fail because the identity
provider is unreachable, a credential is missing, or a login page changed.
Every failure path in :mod:`e2eauth.auth.acquirer` and :mod:`e2eauth.login`
therefore ends in :meth:`FallbackPolicy.resolve`, which logs the reason and
returns a fixed sentinel token the dependent tests can carry on with.

The policy is an explicit object rather than scattered ``except`` blocks so
it can be inspected, replaced, or switched off. A disabled policy raises
instead, which is what ``--strict`` runs and the ``--auth-strict`` pytest
option use.
"""

from __future__ import annotations

import logging
from typing import Optional

from e2eauth.exceptions import AuthError, E2EAuthError

logger = logging.getLogger(__name__)

SENTINEL_TOKEN = "mock-token-for-testing"


class FallbackPolicy:
    """Decides what a failed token acquisition yields.

    Args:
        sentinel: Placeholder token returned on failure.
        enabled: When ``False``, failures raise instead of returning the
            sentinel.

    Example::

        policy = FallbackPolicy()
        token = policy.resolve("missing credentials")
        assert policy.is_sentinel(token)
    """

    def __init__(self, sentinel: str = SENTINEL_TOKEN, enabled: bool = True) -> None:
        self.sentinel = sentinel
        self.enabled = enabled

    def resolve(
        self,
        reason: str,
        exc: Optional[BaseException] = None,
        *,
        error: type[E2EAuthError] = AuthError,
    ) -> str:
        """Return the sentinel for a failure, or raise when disabled.

        Args:
            reason: Short description of what went wrong. Must not contain
                credentials.
            exc: The underlying exception, if any. Chained onto the raised
                error when the policy is disabled.
            error: Exception class raised when the policy is disabled.

        Returns:
            The sentinel token.

        Raises:
            E2EAuthError: *error* (an :class:`AuthError` by default) if the
                policy is disabled.
        """
        if not self.enabled:
            raise error(reason) from exc
        if exc is not None:
            logger.warning("%s (%s); using fallback token", reason, exc)
        else:
            logger.warning("%s; using fallback token", reason)
        return self.sentinel

    def is_sentinel(self, value: Optional[str]) -> bool:
        """Return True if *value* is the sentinel rather than a real token."""
        return value == self.sentinel
