"""e2eauth -- OAuth2/OIDC token helpers for browser-driven end-to-end tests.

This package lets an end-to-end test suite obtain bearer tokens from a
Keycloak-style identity provider, either through a direct password grant
or by driving the provider's login page with Playwright and capturing the
token the browser receives.

Typical usage::

    from e2eauth import TokenAcquirer

    acquirer = TokenAcquirer()
    token = acquirer.get_token()

Failures never abort the calling test: every error path ends in the
:class:`~e2eauth.fallback.FallbackPolicy`, which by default substitutes a
fixed sentinel token.

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: Settings resolution (overrides, environment, defaults).
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    fallback: The fail-soft fallback policy.
    aliases: Named values published for the calling test.
    output: stdout/stderr formatting for the CLI.
    pytest_plugin: Opt-in pytest fixtures.
"""

__version__ = "0.1.0"

from e2eauth.aliases import TOKEN_ALIAS, AliasStore
from e2eauth.auth.acquirer import TokenAcquirer
from e2eauth.fallback import SENTINEL_TOKEN, FallbackPolicy

__all__ = [
    "AliasStore",
    "FallbackPolicy",
    "SENTINEL_TOKEN",
    "TOKEN_ALIAS",
    "TokenAcquirer",
    "__version__",
]
