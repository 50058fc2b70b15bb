"""Shared test fixtures for e2eauth.

Provides environment isolation, output state management, HTTP response
mocks and a mock Playwright page. Fixtures are discovered automatically
by pytest.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional
from unittest.mock import MagicMock

import httpx
import pytest

from e2eauth.config import ENV_VARS
from e2eauth.output import reset_output

pytest_plugins = ["pytester", "e2eauth.pytest_plugin"]

PROVIDER_URL = "https://keycloak.pw.keysight.com"
TOKEN_URL = f"{PROVIDER_URL}/auth/realms/csspp2025/protocol/openid-connect/token"
LOGOUT_URL = f"{PROVIDER_URL}/auth/realms/csspp2025/protocol/openid-connect/logout"
APP_URL = "https://app.example.com"


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches sys.stdout/sys.stderr at creation time; once
    CliRunner restores the real streams the cached ones are closed. The
    CLI also installs a log handler bound to those streams.
    """
    yield
    reset_output()
    logger = logging.getLogger("e2eauth")
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Clear every recognised variable and keep crash logs under tmp_path."""
    for names in ENV_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("E2EAUTH_USER_TOKEN_ENDPOINT", raising=False)
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    return tmp_path


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    """Export primary and secondary persona credentials."""
    monkeypatch.setenv("E2EAUTH_USERNAME", "alice")
    monkeypatch.setenv("E2EAUTH_PASSWORD", "alice-secret")
    monkeypatch.setenv("E2EAUTH_SECOND_USERNAME", "bob")
    monkeypatch.setenv("E2EAUTH_SECOND_PASSWORD", "bob-secret")


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


def make_token_response(
    access_token: str = "test-access-token",
    expires_in: int = 300,
    token_type: str = "Bearer",
) -> dict[str, object]:
    """Build a token endpoint JSON body."""
    return {
        "access_token": access_token,
        "expires_in": expires_in,
        "token_type": token_type,
    }


def mock_httpx_response(
    json_body: Optional[Any] = None,
    status_code: int = 200,
    text: Optional[str] = None,
) -> MagicMock:
    """Create a mock httpx.Response."""
    if json_body is None:
        json_body = make_token_response()
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.json.return_value = json_body
    response.text = text if text is not None else str(json_body)
    return response


# ---------------------------------------------------------------------------
# Playwright page mock
# ---------------------------------------------------------------------------


def mock_browser_response(
    body: Optional[Any] = None,
    status: int = 200,
    url: str = TOKEN_URL,
    method: str = "POST",
) -> MagicMock:
    """Create a mock Playwright Response for the token endpoint."""
    response = MagicMock()
    response.url = url
    response.status = status
    response.request.method = method
    response.json.return_value = make_token_response("ui-token") if body is None else body
    return response


class FakePage:
    """A MagicMock-backed Playwright page.

    ``locator(selector).count()`` answers from ``counts`` (default 1).
    The ``response`` handler registered with ``on`` is kept so a test can
    deliver browser responses, by default when the login button is clicked.
    """

    def __init__(
        self,
        url: str = f"{PROVIDER_URL}/auth/realms/csspp2025/protocol/openid-connect/auth",
        counts: Optional[dict[str, int]] = None,
        body_text: str = "",
    ) -> None:
        self.mock = MagicMock()
        self.mock.url = url
        self.mock.title.return_value = "Sign in"
        self.counts = counts or {}
        self.body_text = body_text
        self.handlers: list[Any] = []
        self.on_click: list[Any] = []
        self.locators: dict[str, MagicMock] = {}

        self.mock.locator.side_effect = self._locator
        self.mock.on.side_effect = self._on
        self.mock.click.side_effect = self._click

    def _locator(self, selector: str) -> MagicMock:
        if selector not in self.locators:
            locator = MagicMock(name=f"locator({selector})")
            locator.count.return_value = self.counts.get(selector, 1)
            locator.inner_text.return_value = self.body_text
            locator.all.return_value = []
            self.locators[selector] = locator
        return self.locators[selector]

    def _on(self, event: str, handler: Any) -> None:
        if event == "response":
            self.handlers.append(handler)

    def _click(self, *args: Any, **kwargs: Any) -> None:
        for response in self.on_click:
            for handler in list(self.handlers):
                handler(response)

    def deliver_on_click(self, response: MagicMock) -> None:
        self.on_click.append(response)


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def page_factory() -> type[FakePage]:
    """The :class:`FakePage` class, for tests that need a custom URL or counts."""
    return FakePage


@pytest.fixture
def browser_response() -> Any:
    """Factory for mock Playwright token endpoint responses."""
    return mock_browser_response


@pytest.fixture
def httpx_response() -> Any:
    """Factory for mock httpx responses."""
    return mock_httpx_response
