"""Canonical Pydantic models shared across all e2eauth modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Settings models** -- produced by :func:`~e2eauth.config.resolve_settings`:
    :class:`Settings`, :class:`SettingsOverrides`, and :class:`LoginTimeouts`.

**Token models** -- what the identity provider hands back and what the
acquirer keeps in memory:
    :class:`TokenResponse`, :class:`Token`, and :class:`InterceptedRequest`.

**Collaborator payloads** -- what is passed to the host-supplied
collaborators:
    :class:`UserTokenRequest` and :class:`LoginPluginParams`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

EXPIRY_SAFETY_MARGIN_SECONDS = 30


# --- Settings ---


class Settings(BaseModel):
    """Fully resolved settings for one acquirer invocation.

    Built fresh by :func:`~e2eauth.config.resolve_settings` on every call,
    so a change to the environment between two calls is picked up. The
    model is frozen; derive a variant with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    provider_url: str = Field(description="Identity provider base URL")
    client_id: str = Field(description="OAuth client identifier")
    realm: str = Field(description="Identity provider realm")
    username: Optional[str] = Field(
        default=None, description="Username of the selected persona"
    )
    password: Optional[str] = Field(
        default=None, description="Password of the selected persona"
    )
    use_secondary_persona: bool = False
    user_token_mode: bool = Field(
        default=False,
        description="Exchange the bearer token for an application user token",
    )
    token_expiration_minutes: int = Field(
        default=30, description="Lifetime requested for user tokens"
    )
    base_url: Optional[str] = Field(
        default=None, description="Application under test, used by the UI login"
    )
    redirect_url: Optional[str] = Field(
        default=None, description="Redirect URI handed to the delegated login plugin"
    )
    request_timeout: float = Field(
        default=30.0, description="HTTP timeout in seconds"
    )

    @property
    def has_credentials(self) -> bool:
        """Whether both a username and a password were resolved."""
        return bool(self.username and self.password)


class SettingsOverrides(BaseModel):
    """Explicit per-call overrides, the highest-precedence settings layer.

    Every field is optional; ``None`` and empty strings mean "not set" and
    let the environment or the built-in default decide. Credentials exist
    for both personas so one override object serves either.
    """

    model_config = ConfigDict(extra="forbid")

    provider_url: Optional[str] = None
    client_id: Optional[str] = None
    realm: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    second_username: Optional[str] = None
    second_password: Optional[str] = None
    user_token_mode: Optional[bool] = None
    token_expiration_minutes: Optional[int] = None
    base_url: Optional[str] = None
    redirect_url: Optional[str] = None
    request_timeout: Optional[float] = None


class LoginTimeouts(BaseModel):
    """Per-step timeouts of the UI login flow, in milliseconds."""

    navigation: int = Field(default=60_000, description="Initial page load")
    redirect_delay: int = Field(
        default=3_000, description="Fixed pause for redirects after navigation"
    )
    provider_redirect: int = Field(
        default=60_000, description="Waiting to land on the provider host"
    )
    field: int = Field(default=30_000, description="Waiting for a form field")
    interception: int = Field(
        default=60_000, description="Waiting for the token endpoint response"
    )


# --- Tokens ---


class TokenResponse(BaseModel):
    """Body of a successful token endpoint response.

    Unknown keys are preserved in ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    scope: Optional[str] = None


class Token(BaseModel):
    """The current token held by an acquirer."""

    value: str
    expires_at: Optional[datetime] = None

    @classmethod
    def from_response(cls, response: TokenResponse) -> Token:
        """Build a token whose expiry keeps a 30-second safety margin.

        Args:
            response: A parsed token endpoint body.

        Returns:
            A :class:`Token` expiring ``expires_in - 30`` seconds from now,
            or with no expiry when the provider did not send one.
        """
        expires_at = None
        if response.expires_in is not None:
            expires_at = datetime.now(timezone.utc) + timedelta(
                seconds=response.expires_in - EXPIRY_SAFETY_MARGIN_SECONDS
            )
        return cls(value=response.access_token, expires_at=expires_at)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


class InterceptedRequest(BaseModel):
    """One captured token endpoint exchange made by the browser.

    Read once to extract the token, then discarded.
    """

    url: str
    method: str
    status: int
    body: Optional[dict[str, Any]] = None

    @property
    def access_token(self) -> Optional[str]:
        if not self.body:
            return None
        value = self.body.get("access_token")
        return value if isinstance(value, str) and value else None


# --- Collaborator payloads ---


class UserTokenRequest(BaseModel):
    """Payload for the host-supplied "post user token" collaborator.

    Serialise with ``model_dump(by_alias=True)`` to get the ``Name`` and
    ``Expiration`` keys the application expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    expiration: str = Field(alias="Expiration")


class LoginPluginParams(BaseModel):
    """Arguments handed to the delegated login plugin."""

    root: Optional[str] = None
    realm: str
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str
    redirect_uri: Optional[str] = None
