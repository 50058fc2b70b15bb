"""Token commands -- fetch, exchange, log in, and log out from a shell.

Registered directly on the root application::

    e2eauth token                    # bearer token, or user token in user-token mode
    e2eauth bearer --second-user     # password grant for the second persona
    e2eauth user-token --endpoint https://app.example.com/api/user-tokens
    e2eauth login https://app.example.com --headed
    e2eauth logout

Tokens are written to stdout and nothing else is, so
``export TOKEN=$(e2eauth token)`` works. Without ``--strict`` a failed
acquisition prints the fallback sentinel and exits 0, exactly as a test
would see it.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Optional

import httpx
import typer

from e2eauth.auth.acquirer import TokenAcquirer, UserTokenPoster
from e2eauth.exceptions import E2EAuthError
from e2eauth.fallback import FallbackPolicy
from e2eauth.models import UserTokenRequest
from e2eauth.output import error, info, print_token, success, warning

BROWSERS = ("chromium", "firefox", "webkit")


def build_acquirer(ctx: typer.Context, **kwargs: Any) -> TokenAcquirer:
    """Create an acquirer from the root callback's overrides and ``--strict``."""
    obj = ctx.obj or {}
    return TokenAcquirer(
        overrides=obj.get("overrides"),
        fallback=FallbackPolicy(enabled=not obj.get("strict", False)),
        **kwargs,
    )


def http_user_token_poster(
    endpoint: str,
    bearer: Callable[[], Optional[str]],
    timeout: float = 30.0,
) -> UserTokenPoster:
    """Build a user-token collaborator that POSTs the request as JSON.

    Args:
        endpoint: Application URL that issues user tokens.
        bearer: Returns the bearer token to authenticate with.
        timeout: HTTP timeout in seconds.
    """

    def _post(request: UserTokenRequest) -> Mapping[str, Any]:
        headers = {"Accept": "application/json"}
        token = bearer()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        response = httpx.post(
            endpoint,
            json=request.model_dump(by_alias=True),
            headers=headers,
            timeout=timeout,
        )
        response.raise_for_status()
        return response.json()

    return _post


def _report(acquirer: TokenAcquirer, token: str) -> None:
    if acquirer.fallback.is_sentinel(token):
        warning("Token acquisition failed; printed the fallback token")
    else:
        success("Token acquired")
    print_token(token)


def _fail(exc: E2EAuthError) -> None:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)


def token_command(
    ctx: typer.Context,
    second_user: bool = typer.Option(
        False, "--second-user", help="Use the second persona's credentials."
    ),
) -> None:
    """Print a token, honouring user-token mode.

    Example::

        e2eauth token
        E2EAUTH_USER_TOKEN=true e2eauth token
    """
    acquirer = build_acquirer(ctx)
    try:
        token = acquirer.get_token(second_user)
    except E2EAuthError as exc:
        _fail(exc)
        return
    _report(acquirer, token)


def bearer_command(
    ctx: typer.Context,
    second_user: bool = typer.Option(
        False, "--second-user", help="Use the second persona's credentials."
    ),
) -> None:
    """Print a password-grant bearer token."""
    acquirer = build_acquirer(ctx)
    try:
        token = acquirer.get_bearer_token(second_user)
    except E2EAuthError as exc:
        _fail(exc)
        return
    _report(acquirer, token)


def user_token_command(
    ctx: typer.Context,
    minutes: Optional[int] = typer.Option(
        None, "--minutes", "-m", min=1, help="Requested lifetime in minutes."
    ),
    endpoint: Optional[str] = typer.Option(
        None,
        "--endpoint",
        envvar="E2EAUTH_USER_TOKEN_ENDPOINT",
        help="Application endpoint that issues user tokens.",
    ),
) -> None:
    """Exchange a bearer session for an application user token.

    The bearer token is acquired first and sent as ``Authorization`` to
    ``--endpoint``. Without an endpoint there is no one to ask and the
    fallback applies.
    """
    acquirer = build_acquirer(ctx)
    if endpoint:
        acquirer.user_token_poster = http_user_token_poster(
            endpoint,
            lambda: acquirer.token,
            timeout=acquirer.settings().request_timeout,
        )
    try:
        acquirer.get_bearer_token()
        token = acquirer.get_user_token(minutes)
    except E2EAuthError as exc:
        _fail(exc)
        return
    _report(acquirer, token)


def login_command(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Argument(
        None, help="Application URL to open. Defaults to E2EAUTH_BASE_URL."
    ),
    headed: bool = typer.Option(False, "--headed", help="Show the browser window."),
    browser: str = typer.Option(
        "chromium", "--browser", "-b", help="Browser engine: chromium, firefox, webkit."
    ),
) -> None:
    """Log in through the provider's UI in a real browser and print the token.

    Example::

        e2eauth login https://app.example.com --headed
    """
    if browser not in BROWSERS:
        error(f"Unknown browser '{browser}'. Choose from: {', '.join(BROWSERS)}")
        raise typer.Exit(code=2)

    from playwright.sync_api import sync_playwright

    acquirer = build_acquirer(ctx)
    info(f"Starting {browser} ({'headed' if headed else 'headless'})")
    with sync_playwright() as p:
        launcher = getattr(p, browser)
        instance = launcher.launch(headless=not headed)
        try:
            page = instance.new_context().new_page()
            token = acquirer.do_login(page, base_url)
        except E2EAuthError as exc:
            _fail(exc)
            return
        finally:
            instance.close()

    if token is None:
        warning("The login plugin returned no token")
        return
    _report(acquirer, token)


def logout_command(ctx: typer.Context) -> None:
    """Call the realm's logout endpoint."""
    acquirer = build_acquirer(ctx)
    acquirer.logout()
    success(f"Logged out via {acquirer.logout_url()}")


def register_token_commands(app: typer.Typer) -> None:
    """Attach the token commands to *app*."""
    app.command("token")(token_command)
    app.command("bearer")(bearer_command)
    app.command("user-token")(user_token_command)
    app.command("login")(login_command)
    app.command("logout")(logout_command)
