"""Command registry -- legacy command names mapped to acquirer operations.

Suites migrated from older browser-test tooling call their auth helpers by
name (``getKeycloakToken``, ``doTheLogin``, ``keycloakLogout``, ...). The
:class:`CommandRegistry` keeps those names working: each name is bound to
an operation of one caller-owned
:class:`~e2eauth.auth.acquirer.TokenAcquirer`, and :meth:`~CommandRegistry.run`
dispatches by name.

For most use cases, call :func:`create_default_registry` to get a registry
pre-loaded with every legacy command.

See Also:
    :mod:`e2eauth.pytest_plugin` -- exposes the registry as the
    ``auth_commands`` fixture.
"""

from __future__ import annotations

from typing import Any, Callable

from e2eauth.auth.acquirer import TokenAcquirer
from e2eauth.exceptions import InvalidUsageError

Command = Callable[..., Any]


class CommandRegistry:
    """Registry and dispatcher for named auth commands.

    Example::

        registry = create_default_registry(acquirer)
        token = registry.run("getKeycloakToken")
        registry.run("doTheLogin", page, "https://app.example.com")
    """

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(self, name: str, command: Command) -> None:
        """Register *command* under *name*, replacing any previous binding.

        Args:
            name: The command name tests call.
            command: Any callable; arguments given to :meth:`run` are
                forwarded unchanged.
        """
        self._commands[name] = command

    def get(self, name: str) -> Command:
        """Retrieve a registered command by name.

        Raises:
            InvalidUsageError: If no command is registered under *name*.
        """
        command = self._commands.get(name)
        if command is None:
            available = ", ".join(sorted(self._commands)) or "(none)"
            raise InvalidUsageError(
                f"No auth command registered as '{name}'. "
                f"Available commands: {available}"
            )
        return command

    def run(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Look up *name* and call it with the given arguments."""
        return self.get(name)(*args, **kwargs)

    def list_commands(self) -> list[str]:
        return sorted(self._commands)


def create_default_registry(acquirer: TokenAcquirer) -> CommandRegistry:
    """Create a :class:`CommandRegistry` bound to *acquirer*.

    The following commands are registered:

    - ``getKeycloakToken`` / ``getKeycloakTokenSecondUser`` --
      :meth:`~TokenAcquirer.get_token` for either persona.
    - ``getBearerToken`` / ``getBearerTokenSecondUser`` --
      :meth:`~TokenAcquirer.get_bearer_token` for either persona.
    - ``getUserTokenGlobal`` -- :meth:`~TokenAcquirer.get_user_token`.
    - ``doTheLogin`` -- :meth:`~TokenAcquirer.do_login`.
    - ``keycloakLogout`` / ``doTheLogout`` -- :meth:`~TokenAcquirer.logout`.

    Returns:
        A fully initialised :class:`CommandRegistry`.
    """
    registry = CommandRegistry()
    registry.register("getKeycloakToken", lambda: acquirer.get_token())
    registry.register(
        "getKeycloakTokenSecondUser", lambda: acquirer.get_token(True)
    )
    registry.register("getBearerToken", lambda: acquirer.get_bearer_token())
    registry.register(
        "getBearerTokenSecondUser", lambda: acquirer.get_bearer_token(True)
    )
    registry.register("getUserTokenGlobal", acquirer.get_user_token)
    registry.register("doTheLogin", acquirer.do_login)
    registry.register("keycloakLogout", acquirer.logout)
    registry.register("doTheLogout", acquirer.logout)
    return registry
