"""Token acquirer -- password grant, user tokens, UI login, and logout.

:class:`TokenAcquirer` is the object a test (or a fixture) owns for the
duration of a run. It resolves :class:`~e2eauth.models.Settings` on every
call, talks to the realm's token and logout endpoints with :mod:`httpx`,
and keeps at most one current :class:`~e2eauth.models.Token` in memory.

Two collaborators are supplied by the host test suite rather than
implemented here:

- a *user-token poster* that turns a bearer session into an
  application-specific user token (see :data:`UserTokenPoster`), and
- a *login plugin* used for realms whose login UI is handled elsewhere
  (see :data:`LoginPlugin`).

Failures are never raised to the caller while the
:class:`~e2eauth.fallback.FallbackPolicy` is enabled; they resolve to the
sentinel token instead.

See Also:
    :mod:`e2eauth.login.flow` for the browser-driven branch of
    :meth:`TokenAcquirer.do_login`.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Optional

import httpx

from e2eauth.aliases import TOKEN_ALIAS, AliasStore
from e2eauth.config import OverridesLike, logout_endpoint, resolve_settings, token_endpoint
from e2eauth.exceptions import ConfigError, ConnectionError_, InterceptionError
from e2eauth.fallback import FallbackPolicy
from e2eauth.models import LoginPluginParams, LoginTimeouts, Settings, Token, TokenResponse, UserTokenRequest

if TYPE_CHECKING:
    from playwright.sync_api import Page

logger = logging.getLogger(__name__)

UserTokenPoster = Callable[[UserTokenRequest], Mapping[str, Any]]
"""Host collaborator: receives ``{Name, Expiration}``, returns a body with ``Token``."""

LoginPlugin = Callable[["Page", LoginPluginParams], Optional[str]]
"""Host collaborator for delegated realms; may return the resulting token."""

USER_TOKEN_NAME_PREFIX = "Auto-Token-"


def format_expiration(minutes: int) -> str:
    """Format a user-token lifetime as the ``00:00:MM:00`` string the API expects."""
    return f"00:00:{minutes:02d}:00"


class TokenAcquirer:
    """Acquire, hold, and clear bearer tokens for one test run.

    Args:
        overrides: Highest-precedence settings layer, applied on every
            call. See :func:`~e2eauth.config.resolve_settings`.
        env: Environment mapping to resolve from. Defaults to
            ``os.environ`` at call time.
        fallback: Policy applied to every failure. Defaults to a policy
            returning ``"mock-token-for-testing"``.
        aliases: Where the resolved token is published under ``token``.
        user_token_poster: Collaborator used by :meth:`get_user_token`.
        login_plugin: Collaborator used by :meth:`do_login` for the
            delegated realm.
        timeouts: Step timeouts for the UI login flow.

    Example::

        acquirer = TokenAcquirer(overrides={"realm": "csspp2025"})
        token = acquirer.get_bearer_token()
        headers = {"Authorization": f"Bearer {token}"}
    """

    def __init__(
        self,
        overrides: OverridesLike = None,
        *,
        env: Optional[Mapping[str, str]] = None,
        fallback: Optional[FallbackPolicy] = None,
        aliases: Optional[AliasStore] = None,
        user_token_poster: Optional[UserTokenPoster] = None,
        login_plugin: Optional[LoginPlugin] = None,
        timeouts: Optional[LoginTimeouts] = None,
    ) -> None:
        self.overrides = overrides
        self.env = env
        self.fallback = fallback or FallbackPolicy()
        self.aliases = aliases if aliases is not None else AliasStore()
        self.user_token_poster = user_token_poster
        self.login_plugin = login_plugin
        self.timeouts = timeouts or LoginTimeouts()
        self._current: Optional[Token] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def token(self) -> Optional[str]:
        """The current token value, or ``None`` if none is held."""
        return self._current.value if self._current else None

    @property
    def token_expiry(self) -> Optional[datetime]:
        """When the current token should be considered expired."""
        return self._current.expires_at if self._current else None

    def remember(self, token: Token) -> None:
        """Replace the current token unconditionally."""
        self._current = token

    def forget(self) -> None:
        """Drop the current token and its expiry."""
        self._current = None

    def publish(self, value: str) -> str:
        """Publish *value* under the ``token`` alias and return it."""
        self.aliases.publish(TOKEN_ALIAS, value)
        return value

    def settings(self, use_secondary_persona: bool = False) -> Settings:
        """Resolve settings afresh for one invocation."""
        return resolve_settings(
            self.overrides,
            use_secondary_persona=use_secondary_persona,
            env=self.env,
        )

    def logout_url(self) -> str:
        return logout_endpoint(self.settings())

    # ------------------------------------------------------------------
    # Direct exchange
    # ------------------------------------------------------------------

    def get_bearer_token(self, use_secondary_persona: bool = False) -> str:
        """Exchange the persona's username and password for an access token.

        Makes exactly one ``POST`` to the realm's token endpoint with a
        form-encoded password grant. Nothing is retried.

        Args:
            use_secondary_persona: Use the second persona's credentials.

        Returns:
            The ``access_token`` on HTTP 200, otherwise the fallback
            sentinel. Either way the value is published as ``token``.

        Raises:
            AuthError: Only when the fallback policy is disabled and
                credentials are missing or the provider rejects them.
            ConnectionError_: Only when the fallback policy is disabled and
                the request cannot be sent.
            ConfigError: Only when the fallback policy is disabled and the
                settings cannot be resolved.
        """
        try:
            settings = self.settings(use_secondary_persona)
        except ConfigError as exc:
            return self.publish(
                self.fallback.resolve("Invalid settings", exc, error=ConfigError)
            )
        persona = "second user" if use_secondary_persona else "primary user"
        logger.debug(
            "Auth info - username: %s, password: %s, client id: %s",
            "provided" if settings.username else "MISSING",
            "provided" if settings.password else "MISSING",
            settings.client_id,
        )

        if not settings.has_credentials:
            return self.publish(
                self.fallback.resolve(
                    f"Missing credentials for the {persona}; set E2EAUTH_USERNAME "
                    "and E2EAUTH_PASSWORD or pass overrides"
                )
            )

        url = token_endpoint(settings)
        data: dict[str, str] = {
            "username": settings.username or "",
            "password": settings.password or "",
            "grant_type": "password",
            "client_id": settings.client_id,
        }

        try:
            response = httpx.post(
                url,
                data=data,
                headers={"Accept": "application/json"},
                timeout=settings.request_timeout,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self.publish(
                self.fallback.resolve(
                    f"Token request to {url} failed", exc, error=ConnectionError_
                )
            )

        if response.status_code != 200:
            return self.publish(
                self.fallback.resolve(
                    f"Token request failed with status {response.status_code}: "
                    f"{response.text}"
                )
            )

        try:
            token_response = TokenResponse.model_validate(response.json())
        except ValueError as exc:
            return self.publish(
                self.fallback.resolve(
                    "Token response missing 'access_token' field", exc
                )
            )

        self.remember(Token.from_response(token_response))
        return self.publish(token_response.access_token)

    # ------------------------------------------------------------------
    # User tokens
    # ------------------------------------------------------------------

    def get_user_token(self, expiration_minutes: Optional[int] = None) -> str:
        """Ask the user-token collaborator for an application user token.

        Args:
            expiration_minutes: Requested lifetime. Defaults to the
                resolved ``token_expiration_minutes`` (30).

        Returns:
            The ``Token`` field of the collaborator's response, or the
            fallback sentinel. Published as ``token``.
        """
        if expiration_minutes is None:
            try:
                expiration_minutes = self.settings().token_expiration_minutes
            except ConfigError as exc:
                return self.publish(
                    self.fallback.resolve("Invalid settings", exc, error=ConfigError)
                )

        request = UserTokenRequest(
            name=f"{USER_TOKEN_NAME_PREFIX}{random.randint(0, 1_000_000)}",
            expiration=format_expiration(expiration_minutes),
        )
        logger.info("Generating user token %s", request.name)

        if self.user_token_poster is None:
            return self.publish(
                self.fallback.resolve("No user-token collaborator configured")
            )

        try:
            body = self.user_token_poster(request)
        except Exception as exc:
            return self.publish(
                self.fallback.resolve("User-token collaborator failed", exc)
            )

        value = body.get("Token") if isinstance(body, Mapping) else None
        if not isinstance(value, str) or not value:
            return self.publish(
                self.fallback.resolve(
                    "User-token response has no 'Token' field",
                    error=InterceptionError,
                )
            )
        return self.publish(value)

    def get_token(self, use_secondary_persona: bool = False) -> str:
        """Get a bearer token, or a user token when user-token mode is on.

        The bearer exchange always runs first. In user-token mode its value
        only triggers the user-token request and is then discarded.

        Args:
            use_secondary_persona: Use the second persona's credentials.

        Returns:
            The bearer token, or the user token in user-token mode.
        """
        logger.info("Getting authentication token")
        bearer = self.get_bearer_token(use_secondary_persona)
        try:
            user_token_mode = self.settings(use_secondary_persona).user_token_mode
        except ConfigError:
            # get_bearer_token already resolved this failure to the sentinel.
            return bearer
        if user_token_mode:
            return self.get_user_token()
        return bearer

    # ------------------------------------------------------------------
    # UI login and logout
    # ------------------------------------------------------------------

    def do_login(self, page: Page, base_url: Optional[str] = None) -> Optional[str]:
        """Log in through the browser and return the token it receives.

        Args:
            page: A Playwright page to drive.
            base_url: Application URL to open. Defaults to the resolved
                ``base_url`` setting.

        Returns:
            The captured access token, a fallback token, or for the
            delegated realm whatever the login plugin returned.

        Raises:
            ConfigError: If the generic flow has no base URL to open.
        """
        from e2eauth.login.flow import LoginFlow

        return LoginFlow(self, self.timeouts).run(page, base_url)

    def logout(self) -> None:
        """Forget the current token and hit the realm's logout endpoint.

        The ``GET`` is unauthenticated and its response is not inspected.
        Transport errors, malformed URLs and unresolvable settings are
        logged and swallowed.
        """
        logger.info("Logging out")
        self.forget()
        try:
            settings = self.settings()
        except ConfigError as exc:
            logger.warning("Skipping logout request: %s", exc)
            return
        url = logout_endpoint(settings)
        try:
            httpx.get(url, timeout=settings.request_timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Logout request to %s failed: %s", url, exc)
