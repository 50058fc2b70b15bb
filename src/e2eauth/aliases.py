"""Named values published for the calling test.

Tests read the acquired token back by name instead of threading return
values through helpers. The acquirer publishes under :data:`TOKEN_ALIAS`
whenever it settles on a token, real or sentinel.
"""

from __future__ import annotations

from typing import Any

TOKEN_ALIAS = "token"


class AliasStore:
    """A small name -> value map with a test-friendly error on misses.

    Example::

        aliases = AliasStore()
        aliases.publish("token", "abc")
        assert aliases["token"] == "abc"
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def publish(self, name: str, value: Any) -> None:
        """Store *value* under *name*, replacing any previous value."""
        self._values[name] = value

    def get(self, name: str) -> Any:
        """Return the value published under *name*.

        Raises:
            KeyError: If nothing was published under *name*.
        """
        try:
            return self._values[name]
        except KeyError:
            available = ", ".join(sorted(self._values)) or "(none)"
            raise KeyError(
                f"No alias '{name}' has been published. Available aliases: {available}"
            ) from None

    def __getitem__(self, name: str) -> Any:
        return self.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def clear(self) -> None:
        self._values.clear()

    def as_dict(self) -> dict[str, Any]:
        return dict(self._values)
