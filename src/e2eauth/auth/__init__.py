"""Token acquisition for e2eauth.

The main entry points are:

- :class:`TokenAcquirer` -- caller-owned object that exchanges credentials
  for tokens, drives UI logins, and logs out.
- :class:`CommandRegistry` -- maps legacy command names to acquirer
  operations.
- :func:`create_default_registry` -- factory that binds every legacy
  command to one acquirer.

Typical usage::

    from e2eauth.auth import TokenAcquirer, create_default_registry

    acquirer = TokenAcquirer()
    commands = create_default_registry(acquirer)
    token = commands.run("getKeycloakToken")
"""

from e2eauth.auth.acquirer import LoginPlugin, TokenAcquirer, UserTokenPoster
from e2eauth.auth.commands import CommandRegistry, create_default_registry

__all__ = [
    "CommandRegistry",
    "LoginPlugin",
    "TokenAcquirer",
    "UserTokenPoster",
    "create_default_registry",
]
