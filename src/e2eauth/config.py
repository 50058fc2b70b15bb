"""Settings resolution with override, environment, and default precedence.

This module turns the scattered inputs of a test run into one
:class:`~e2eauth.models.Settings` value:

* **Overrides** -- a :class:`~e2eauth.models.SettingsOverrides` (or a
  plain mapping) passed by the caller, e.g. built from pytest options or
  CLI flags.
* **Environment** -- named environment variables. Each field has a
  primary ``E2EAUTH_*`` name followed by the legacy name older suites
  export (``USERNAME``, ``AUTH_URL``, ...).
* **Defaults** -- the built-in values in :data:`DEFAULTS`.

Resolution is done field by field and the first non-empty value wins, so
an override for ``realm`` does not stop ``client_id`` from coming from
the environment. Resolution is pure: nothing is cached or written.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from e2eauth.exceptions import ConfigError
from e2eauth.models import Settings, SettingsOverrides

_APP_NAME = "e2eauth"

ENV_PREFIX = "E2EAUTH_"

DEFAULTS: dict[str, Any] = {
    "provider_url": "https://keycloak.pw.keysight.com",
    "client_id": "clt-test-automation-ui",
    "realm": "csspp2025",
    "user_token_mode": False,
    "token_expiration_minutes": 30,
    "request_timeout": 30.0,
}

# Field name -> environment variables, highest precedence first.
ENV_VARS: dict[str, tuple[str, ...]] = {
    "provider_url": ("E2EAUTH_PROVIDER_URL", "AUTH_URL"),
    "client_id": ("E2EAUTH_CLIENT_ID", "CLIENT_ID"),
    "realm": ("E2EAUTH_REALM", "REALM"),
    "username": ("E2EAUTH_USERNAME", "USERNAME"),
    "password": ("E2EAUTH_PASSWORD", "PASSWORD"),
    "second_username": ("E2EAUTH_SECOND_USERNAME", "USERNAME2"),
    "second_password": ("E2EAUTH_SECOND_PASSWORD", "PASSWORD2"),
    "user_token_mode": ("E2EAUTH_USER_TOKEN", "USER_TOKEN"),
    "token_expiration_minutes": ("E2EAUTH_USER_TOKEN_EXPIRATION",),
    "base_url": ("E2EAUTH_BASE_URL", "BASE_URL"),
    "redirect_url": ("E2EAUTH_REDIRECT_URL", "REDIRECT_URL"),
    "request_timeout": ("E2EAUTH_REQUEST_TIMEOUT",),
}

_TOKEN_PATH = "protocol/openid-connect/token"
_LOGOUT_PATH = "protocol/openid-connect/logout"

OverridesLike = Union[SettingsOverrides, Mapping[str, Any], None]


# --- Layer lookups ---


def _is_set(value: Any) -> bool:
    """Return True for values that count as present (not None, not empty)."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def _normalise_overrides(overrides: OverridesLike) -> dict[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, SettingsOverrides):
        return overrides.model_dump(exclude_none=True)
    # Validate plain mappings so unknown keys fail loudly.
    try:
        return SettingsOverrides.model_validate(dict(overrides)).model_dump(
            exclude_none=True
        )
    except ValueError as exc:
        raise ConfigError(f"Invalid settings overrides: {exc}") from exc


def _from_env(field: str, env: Mapping[str, str]) -> Optional[str]:
    for name in ENV_VARS.get(field, ()):
        value = env.get(name)
        if _is_set(value):
            return value
    return None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _parse_number(field: str, value: str, kind: type) -> Any:
    try:
        return kind(value.strip())
    except ValueError as exc:
        names = ", ".join(ENV_VARS[field])
        raise ConfigError(
            f"Environment variable for '{field}' ({names}) must be a number, got {value!r}"
        ) from exc


def _pick(
    field: str,
    overrides: dict[str, Any],
    env: Mapping[str, str],
    env_field: Optional[str] = None,
) -> Any:
    """Return the first non-empty value for *field*: override, env, default."""
    value = overrides.get(field)
    if _is_set(value):
        return value

    raw = _from_env(env_field or field, env)
    if raw is not None:
        default = DEFAULTS.get(field)
        if isinstance(default, bool):
            return _parse_bool(raw)
        if isinstance(default, int):
            return _parse_number(field, raw, int)
        if isinstance(default, float):
            return _parse_number(field, raw, float)
        return raw

    return DEFAULTS.get(field)


# --- Public API ---


def resolve_settings(
    overrides: OverridesLike = None,
    *,
    use_secondary_persona: bool = False,
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Merge overrides, environment variables, and defaults into settings.

    Precedence (high to low), applied to every field independently:
        1. ``overrides``
        2. Environment variables listed in :data:`ENV_VARS`
        3. :data:`DEFAULTS`

    Args:
        overrides: Per-call overrides. ``None`` values and empty strings
            are ignored.
        use_secondary_persona: Resolve the second persona's username and
            password instead of the primary ones.
        env: Environment mapping to read. Defaults to ``os.environ``.

    Returns:
        A fully populated, frozen :class:`~e2eauth.models.Settings`.
        ``username`` and ``password`` may still be ``None``; callers decide
        what a missing credential means.

    Raises:
        ConfigError: If an override mapping has unknown keys or a numeric
            environment variable cannot be parsed.
    """
    if env is None:
        env = os.environ
    layer = _normalise_overrides(overrides)

    if use_secondary_persona:
        username = layer.get("second_username")
        password = layer.get("second_password")
        user_field, pass_field = "second_username", "second_password"
    else:
        username = layer.get("username")
        password = layer.get("password")
        user_field, pass_field = "username", "password"

    if not _is_set(username):
        username = _from_env(user_field, env)
    if not _is_set(password):
        password = _from_env(pass_field, env)

    return Settings(
        provider_url=_pick("provider_url", layer, env),
        client_id=_pick("client_id", layer, env),
        realm=_pick("realm", layer, env),
        username=username,
        password=password,
        use_secondary_persona=use_secondary_persona,
        user_token_mode=_pick("user_token_mode", layer, env),
        token_expiration_minutes=_pick("token_expiration_minutes", layer, env),
        base_url=_pick("base_url", layer, env),
        redirect_url=_pick("redirect_url", layer, env),
        request_timeout=_pick("request_timeout", layer, env),
    )


def _realm_endpoint(settings: Settings, path: str) -> str:
    root = settings.provider_url.rstrip("/")
    return f"{root}/auth/realms/{settings.realm}/{path}"


def token_endpoint(settings: Settings) -> str:
    """Return the realm's OpenID Connect token endpoint URL."""
    return _realm_endpoint(settings, _TOKEN_PATH)


def logout_endpoint(settings: Settings) -> str:
    """Return the realm's OpenID Connect logout endpoint URL."""
    return _realm_endpoint(settings, _LOGOUT_PATH)


def describe_environment(env: Optional[Mapping[str, str]] = None) -> list[tuple[str, str, bool]]:
    """List every recognised environment variable and whether it is set.

    Args:
        env: Environment mapping to inspect. Defaults to ``os.environ``.

    Returns:
        ``(field, variable, is_set)`` tuples in :data:`ENV_VARS` order.
    """
    if env is None:
        env = os.environ
    rows: list[tuple[str, str, bool]] = []
    for field, names in ENV_VARS.items():
        for name in names:
            rows.append((field, name, _is_set(env.get(name))))
    return rows


# --- Data directory ---


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/e2eauth/`` (default ``~/.local/share/e2eauth/``).
    On macOS/Windows: ``~/.e2eauth/``.
    """
    system = platform.system()
    if system == "Linux" or system.endswith("BSD"):
        base = os.environ.get("XDG_DATA_HOME", "")
        root = Path(base) if base else Path.home() / ".local" / "share"
        path = root / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path
