"""Browser-driven login that captures the token from the provider's response.

:class:`LoginFlow` implements :meth:`e2eauth.auth.acquirer.TokenAcquirer.do_login`.
It has two branches chosen by the resolved realm:

**Delegated** -- the realm in :data:`DELEGATED_LOGIN_REALM` has its own
login UI, handled by the host's login plugin.

**Generic** -- the application redirects to the provider's login form.
The flow opens the application, steps through an optional first-time
login page, fills the provider form, and reads ``access_token`` from the
browser's own ``POST .../token`` response. A password-grant token taken
before the browser is touched serves as the backup when the UI cannot be
driven.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Optional
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from e2eauth.exceptions import (
    AuthError,
    ConfigError,
    E2EAuthError,
    ElementNotFoundError,
    InterceptionError,
)
from e2eauth.login.strategies import (
    EMAIL_FIELD_STRATEGIES,
    LOGIN_BUTTON_SELECTOR,
    PASSWORD_SELECTOR,
    SUBMIT_STRATEGIES,
    USERNAME_SELECTOR,
    apply_first,
    is_first_time_login_url,
    looks_like_first_time_page,
)
from e2eauth.models import InterceptedRequest, LoginPluginParams, LoginTimeouts, Settings, Token, TokenResponse

if TYPE_CHECKING:
    from playwright.sync_api import Page, Response

    from e2eauth.auth.acquirer import TokenAcquirer

logger = logging.getLogger(__name__)

DELEGATED_LOGIN_REALM = "PathWave"


def is_token_response(response: Response) -> bool:
    """Whether *response* answers a ``POST`` to an OIDC token endpoint."""
    if response.request.method != "POST":
        return False
    return urlparse(response.url).path.endswith("/token")


def provider_host(settings: Settings) -> str:
    return urlparse(settings.provider_url).netloc or settings.provider_url


class LoginFlow:
    """Drive one login on a Playwright page for *acquirer*."""

    def __init__(self, acquirer: TokenAcquirer, timeouts: Optional[LoginTimeouts] = None) -> None:
        self.acquirer = acquirer
        self.timeouts = timeouts or LoginTimeouts()

    def run(self, page: Page, base_url: Optional[str] = None) -> Optional[str]:
        try:
            settings = self.acquirer.settings()
        except ConfigError as exc:
            return self._give_up("Invalid settings", exc, ConfigError)
        target = base_url or settings.base_url
        if settings.realm == DELEGATED_LOGIN_REALM:
            return self._delegated(page, settings, target)
        if not target:
            raise ConfigError(
                "No base URL to open; pass one or set E2EAUTH_BASE_URL"
            )
        return self._generic(page, settings, target)

    # --- Delegated branch ---

    def _delegated(self, page: Page, settings: Settings, target: Optional[str]) -> Optional[str]:
        plugin = self.acquirer.login_plugin
        if plugin is None:
            return self._give_up(
                f"No login plugin configured for realm {settings.realm}", error=AuthError
            )

        params = LoginPluginParams(
            root=settings.provider_url,
            realm=settings.realm,
            username=settings.username,
            password=settings.password,
            client_id=settings.client_id,
            redirect_uri=settings.redirect_url or target,
        )
        logger.info("Delegating login for realm %s to the login plugin", settings.realm)
        try:
            result = plugin(page, params)
        except Exception as exc:
            return self._give_up("Login plugin failed", exc, AuthError)
        if isinstance(result, str):
            self.acquirer.publish(result)
        return result

    # --- Generic branch ---

    def _generic(self, page: Page, settings: Settings, target: str) -> str:
        backup = self.acquirer.get_bearer_token()

        captured: list[Response] = []

        def _capture(response: Response) -> None:
            if is_token_response(response):
                captured.append(response)

        page.on("response", _capture)
        try:
            self._drive(page, settings, target)
            if captured:
                response = captured[0]
            else:
                response = page.wait_for_event(
                    "response",
                    predicate=is_token_response,
                    timeout=self.timeouts.interception,
                )
            return self._read_token(response)
        except ElementNotFoundError as exc:
            if not self.acquirer.fallback.is_sentinel(backup):
                logger.warning("%s; using the password-grant token instead", exc)
                return self.acquirer.publish(backup)
            return self._give_up(str(exc), exc, ElementNotFoundError)
        except PlaywrightTimeoutError as exc:
            return self._give_up("Timed out waiting for the token response", exc)
        except PlaywrightError as exc:
            return self._give_up("Browser error during login", exc)
        finally:
            page.remove_listener("response", _capture)

    def _give_up(
        self,
        reason: str,
        exc: Optional[BaseException] = None,
        error: type[E2EAuthError] = InterceptionError,
    ) -> str:
        """Resolve a failed UI login; the backup token is not kept as current."""
        self.acquirer.forget()
        return self.acquirer.publish(
            self.acquirer.fallback.resolve(reason, exc, error=error)
        )

    def _drive(self, page: Page, settings: Settings, target: str) -> None:
        host = provider_host(settings)
        logger.info("Navigating to %s", target)
        try:
            page.goto(target, timeout=self.timeouts.navigation, wait_until="domcontentloaded")
        except PlaywrightError as exc:
            logger.warning("Navigation to %s reported an error: %s", target, exc)

        page.wait_for_timeout(self.timeouts.redirect_delay)
        logger.debug(
            "Page %s: title=%r, inputs=%s, buttons=%s",
            page.url,
            page.title(),
            page.locator("input").count(),
            page.locator("button").count(),
        )

        if is_first_time_login_url(page.url, host) and looks_like_first_time_page(page):
            logger.info("First-time login page detected")
            email = settings.username or ""
            apply_first(page, EMAIL_FIELD_STRATEGIES, lambda el: el.fill(email), "email field")
            apply_first(page, SUBMIT_STRATEGIES, lambda el: el.click(), "submit button")
            self._wait_for_provider(page, host)

        if page.locator(USERNAME_SELECTOR).count() == 0:
            self._wait_for_provider(page, host)

        self._fill(page, USERNAME_SELECTOR, settings.username or "", "username field")
        self._fill(page, PASSWORD_SELECTOR, settings.password or "", "password field")
        self._click(page, LOGIN_BUTTON_SELECTOR, "login button")

    def _wait_for_provider(self, page: Page, host: str) -> None:
        try:
            page.wait_for_url(
                lambda url: host in url, timeout=self.timeouts.provider_redirect
            )
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(
                f"Never reached the identity provider at {host}"
            ) from exc

    def _fill(self, page: Page, selector: str, value: str, description: str) -> None:
        self._on_element(
            page,
            selector,
            lambda: page.fill(selector, value, timeout=self.timeouts.field),
            description,
        )

    def _click(self, page: Page, selector: str, description: str) -> None:
        self._on_element(
            page,
            selector,
            lambda: page.click(selector, timeout=self.timeouts.field),
            description,
        )

    @staticmethod
    def _on_element(
        page: Page, selector: str, action: Callable[[], None], description: str
    ) -> None:
        try:
            action()
        except PlaywrightTimeoutError as exc:
            raise ElementNotFoundError(f"Could not find {description} ({selector})") from exc

    def _read_token(self, response: Response) -> str:
        try:
            body = response.json()
        except (PlaywrightError, ValueError):
            body = None

        intercepted = InterceptedRequest(
            url=response.url,
            method=response.request.method,
            status=response.status,
            body=body if isinstance(body, dict) else None,
        )
        logger.info("Intercepted token response with status %s", intercepted.status)

        if intercepted.access_token is None:
            return self._give_up(
                f"Token response (status {intercepted.status}) has no access_token"
            )
        try:
            token = Token.from_response(TokenResponse.model_validate(intercepted.body))
        except ValueError as exc:
            return self._give_up("Malformed token response", exc)
        self.acquirer.remember(token)
        return self.acquirer.publish(token.value)
