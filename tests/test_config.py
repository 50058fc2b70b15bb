"""Tests for e2eauth.config -- precedence, persona selection, endpoints."""

from __future__ import annotations

from pathlib import Path

import pytest

from e2eauth.config import (
    DEFAULTS,
    ENV_VARS,
    describe_environment,
    get_data_dir,
    logout_endpoint,
    resolve_settings,
    token_endpoint,
)
from e2eauth.exceptions import ConfigError
from e2eauth.models import SettingsOverrides


class TestDefaults:
    def test_empty_environment_uses_defaults(self) -> None:
        settings = resolve_settings(env={})
        assert settings.provider_url == "https://keycloak.pw.keysight.com"
        assert settings.client_id == "clt-test-automation-ui"
        assert settings.realm == "csspp2025"
        assert settings.user_token_mode is False
        assert settings.token_expiration_minutes == 30
        assert settings.request_timeout == 30.0

    def test_credentials_have_no_default(self) -> None:
        settings = resolve_settings(env={})
        assert settings.username is None
        assert settings.password is None
        assert settings.has_credentials is False

    def test_reads_os_environ_when_env_not_given(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("E2EAUTH_REALM", "from-os")
        assert resolve_settings().realm == "from-os"


class TestPrecedence:
    """Override beats environment beats default, field by field."""

    def test_override_beats_environment(self) -> None:
        settings = resolve_settings({"realm": "R1"}, env={"E2EAUTH_REALM": "R2"})
        assert settings.realm == "R1"

    def test_environment_beats_default(self) -> None:
        settings = resolve_settings(env={"E2EAUTH_REALM": "R2"})
        assert settings.realm == "R2"

    def test_fields_resolve_independently(self) -> None:
        settings = resolve_settings(
            {"realm": "R1"}, env={"E2EAUTH_CLIENT_ID": "client-from-env"}
        )
        assert settings.realm == "R1"
        assert settings.client_id == "client-from-env"
        assert settings.provider_url == DEFAULTS["provider_url"]

    def test_empty_override_falls_through(self) -> None:
        settings = resolve_settings({"realm": ""}, env={"E2EAUTH_REALM": "R2"})
        assert settings.realm == "R2"

    def test_empty_environment_value_falls_through(self) -> None:
        settings = resolve_settings(env={"E2EAUTH_REALM": "", "REALM": "legacy"})
        assert settings.realm == "legacy"

    def test_primary_name_beats_legacy_name(self) -> None:
        settings = resolve_settings(
            env={"E2EAUTH_PROVIDER_URL": "https://new", "AUTH_URL": "https://old"}
        )
        assert settings.provider_url == "https://new"

    def test_legacy_name_is_read(self) -> None:
        settings = resolve_settings(env={"AUTH_URL": "https://old", "CLIENT_ID": "c"})
        assert settings.provider_url == "https://old"
        assert settings.client_id == "c"

    def test_accepts_overrides_model(self) -> None:
        settings = resolve_settings(SettingsOverrides(client_id="model"), env={})
        assert settings.client_id == "model"

    def test_unknown_override_key_raises(self) -> None:
        with pytest.raises(ConfigError, match="Invalid settings overrides"):
            resolve_settings({"relm": "typo"}, env={})


# field, override, raw env value, parsed env value, default
FIELD_CASES = [
    ("provider_url", "https://sso.override", "https://sso.env", "https://sso.env", DEFAULTS["provider_url"]),
    ("client_id", "client-override", "client-env", "client-env", DEFAULTS["client_id"]),
    ("realm", "realm-override", "realm-env", "realm-env", DEFAULTS["realm"]),
    ("username", "alice", "carol", "carol", None),
    ("password", "alice-secret", "carol-secret", "carol-secret", None),
    ("second_username", "bob", "dave", "dave", None),
    ("second_password", "bob-secret", "dave-secret", "dave-secret", None),
    ("user_token_mode", False, "true", True, DEFAULTS["user_token_mode"]),
    ("token_expiration_minutes", 5, "45", 45, DEFAULTS["token_expiration_minutes"]),
    ("base_url", "https://app.override", "https://app.env", "https://app.env", None),
    ("redirect_url", "https://app.override/cb", "https://app.env/cb", "https://app.env/cb", None),
    ("request_timeout", 2.5, "10", 10.0, DEFAULTS["request_timeout"]),
]


def _resolved(field: str, overrides: dict, env: dict):
    secondary = field.startswith("second_")
    settings = resolve_settings(overrides, use_secondary_persona=secondary, env=env)
    return getattr(settings, field.removeprefix("second_"))


def test_every_field_has_a_case() -> None:
    assert [case[0] for case in FIELD_CASES] == list(ENV_VARS)


@pytest.mark.parametrize(("field", "override", "raw", "from_env", "default"), FIELD_CASES)
class TestFieldPrecedence:
    def test_override_beats_environment(self, field, override, raw, from_env, default) -> None:
        env = {name: raw for name in ENV_VARS[field]}
        assert _resolved(field, {field: override}, env) == override

    def test_environment_beats_default(self, field, override, raw, from_env, default) -> None:
        assert _resolved(field, {}, {ENV_VARS[field][0]: raw}) == from_env

    def test_default_when_unset(self, field, override, raw, from_env, default) -> None:
        assert _resolved(field, {}, {}) == default


class TestPersonas:
    ENV = {
        "USERNAME": "alice",
        "PASSWORD": "alice-secret",
        "USERNAME2": "bob",
        "PASSWORD2": "bob-secret",
    }

    def test_primary_persona(self) -> None:
        settings = resolve_settings(env=self.ENV)
        assert settings.username == "alice"
        assert settings.password == "alice-secret"
        assert settings.use_secondary_persona is False

    def test_secondary_persona(self) -> None:
        settings = resolve_settings(use_secondary_persona=True, env=self.ENV)
        assert settings.username == "bob"
        assert settings.password == "bob-secret"
        assert settings.use_secondary_persona is True

    def test_secondary_override(self) -> None:
        settings = resolve_settings(
            {"second_username": "carol", "second_password": "pw"},
            use_secondary_persona=True,
            env=self.ENV,
        )
        assert settings.username == "carol"
        assert settings.password == "pw"

    def test_primary_override_ignored_for_secondary(self) -> None:
        settings = resolve_settings(
            {"username": "carol"}, use_secondary_persona=True, env=self.ENV
        )
        assert settings.username == "bob"


class TestTypedVariables:
    @pytest.mark.parametrize("value", ["true", "TRUE", "True"])
    def test_user_token_true(self, value: str) -> None:
        assert resolve_settings(env={"USER_TOKEN": value}).user_token_mode is True

    @pytest.mark.parametrize("value", ["false", "1", "yes", "on"])
    def test_user_token_only_true_enables(self, value: str) -> None:
        assert resolve_settings(env={"USER_TOKEN": value}).user_token_mode is False

    def test_expiration_minutes_parsed(self) -> None:
        settings = resolve_settings(env={"E2EAUTH_USER_TOKEN_EXPIRATION": "45"})
        assert settings.token_expiration_minutes == 45

    def test_request_timeout_parsed(self) -> None:
        settings = resolve_settings(env={"E2EAUTH_REQUEST_TIMEOUT": "2.5"})
        assert settings.request_timeout == 2.5

    def test_non_numeric_expiration_raises(self) -> None:
        with pytest.raises(ConfigError, match="must be a number"):
            resolve_settings(env={"E2EAUTH_USER_TOKEN_EXPIRATION": "soon"})


class TestEndpoints:
    def test_token_endpoint(self) -> None:
        settings = resolve_settings(env={})
        assert token_endpoint(settings) == (
            "https://keycloak.pw.keysight.com/auth/realms/csspp2025"
            "/protocol/openid-connect/token"
        )

    def test_logout_endpoint(self) -> None:
        settings = resolve_settings({"realm": "other"}, env={})
        assert logout_endpoint(settings) == (
            "https://keycloak.pw.keysight.com/auth/realms/other"
            "/protocol/openid-connect/logout"
        )

    def test_trailing_slash_tolerated(self) -> None:
        settings = resolve_settings({"provider_url": "https://idp.example.com/"}, env={})
        assert token_endpoint(settings).startswith("https://idp.example.com/auth/realms/")


class TestDescribeEnvironment:
    def test_reports_set_variables(self) -> None:
        rows = describe_environment({"E2EAUTH_REALM": "x", "PASSWORD": ""})
        lookup = {name: is_set for _, name, is_set in rows}
        assert lookup["E2EAUTH_REALM"] is True
        assert lookup["PASSWORD"] is False
        assert lookup["AUTH_URL"] is False

    def test_lists_every_variable(self) -> None:
        names = [name for _, name, _ in describe_environment({})]
        assert "E2EAUTH_USERNAME" in names
        assert "USERNAME2" in names
        assert len(names) == len(set(names))


class TestDataDir:
    def test_data_dir_created(self, isolated_env: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("e2eauth.config.platform.system", lambda: "Linux")
        path = get_data_dir()
        assert path == isolated_env / "data" / "e2eauth"
        assert path.is_dir()
