"""pytest fixtures and options for suites that need tokens.

Enable the plugin from a ``conftest.py``::

    pytest_plugins = ["e2eauth.pytest_plugin"]

Every test gets its own :class:`~e2eauth.auth.acquirer.TokenAcquirer`
through the ``auth_service`` fixture. Override ``user_token_poster`` or
``login_plugin`` in your ``conftest.py`` to supply the collaborators your
application needs::

    @pytest.fixture
    def user_token_poster(api_client):
        return lambda request: api_client.post_user_token(request.model_dump(by_alias=True))

``logged_in_token`` drives the UI login on pytest-playwright's ``page``
fixture, which is only requested when that fixture is used.
"""

from __future__ import annotations

from typing import Optional

import pytest

from e2eauth.aliases import AliasStore
from e2eauth.auth.acquirer import LoginPlugin, TokenAcquirer, UserTokenPoster
from e2eauth.auth.commands import CommandRegistry, create_default_registry
from e2eauth.fallback import FallbackPolicy
from e2eauth.models import SettingsOverrides


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("e2eauth", "token acquisition for end-to-end tests")
    group.addoption("--auth-provider-url", help="Identity provider base URL.")
    group.addoption("--auth-realm", help="Identity provider realm.")
    group.addoption("--auth-client-id", help="OAuth client identifier.")
    group.addoption("--auth-base-url", help="Application URL opened by the UI login.")
    group.addoption(
        "--auth-user-token",
        action="store_true",
        default=False,
        help="Exchange bearer tokens for application user tokens.",
    )
    group.addoption(
        "--auth-strict",
        action="store_true",
        default=False,
        help="Fail tests instead of substituting the fallback token.",
    )


@pytest.fixture
def auth_overrides(request: pytest.FixtureRequest) -> SettingsOverrides:
    """Settings overrides built from the ``--auth-*`` command-line options."""
    config = request.config
    return SettingsOverrides(
        provider_url=config.getoption("auth_provider_url"),
        realm=config.getoption("auth_realm"),
        client_id=config.getoption("auth_client_id"),
        base_url=config.getoption("auth_base_url"),
        user_token_mode=True if config.getoption("auth_user_token") else None,
    )


@pytest.fixture
def auth_aliases() -> AliasStore:
    return AliasStore()


@pytest.fixture
def auth_fallback(request: pytest.FixtureRequest) -> FallbackPolicy:
    return FallbackPolicy(enabled=not request.config.getoption("auth_strict"))


@pytest.fixture
def user_token_poster() -> Optional[UserTokenPoster]:
    """The user-token collaborator. Override to return one."""
    return None


@pytest.fixture
def login_plugin() -> Optional[LoginPlugin]:
    """The delegated-realm login collaborator. Override to return one."""
    return None


@pytest.fixture
def auth_service(
    auth_overrides: SettingsOverrides,
    auth_fallback: FallbackPolicy,
    auth_aliases: AliasStore,
    user_token_poster: Optional[UserTokenPoster],
    login_plugin: Optional[LoginPlugin],
) -> TokenAcquirer:
    """A fresh acquirer owned by the current test."""
    return TokenAcquirer(
        auth_overrides,
        fallback=auth_fallback,
        aliases=auth_aliases,
        user_token_poster=user_token_poster,
        login_plugin=login_plugin,
    )


@pytest.fixture
def auth_commands(auth_service: TokenAcquirer) -> CommandRegistry:
    return create_default_registry(auth_service)


@pytest.fixture
def keycloak_token(auth_service: TokenAcquirer) -> str:
    return auth_service.get_token()


@pytest.fixture
def keycloak_token_second_user(auth_service: TokenAcquirer) -> str:
    return auth_service.get_token(use_secondary_persona=True)


@pytest.fixture
def bearer_token(auth_service: TokenAcquirer) -> str:
    return auth_service.get_bearer_token()


@pytest.fixture
def logged_in_token(request: pytest.FixtureRequest, auth_service: TokenAcquirer) -> Optional[str]:
    """Log in through the UI on pytest-playwright's ``page`` and return the token."""
    page = request.getfixturevalue("page")
    return auth_service.do_login(page)
