"""Playwright-driven login through the identity provider's UI."""

from e2eauth.login.flow import DELEGATED_LOGIN_REALM, LoginFlow
from e2eauth.login.strategies import (
    EMAIL_FIELD_STRATEGIES,
    SUBMIT_STRATEGIES,
    SelectorStrategy,
    apply_first,
)

__all__ = [
    "DELEGATED_LOGIN_REALM",
    "EMAIL_FIELD_STRATEGIES",
    "LoginFlow",
    "SUBMIT_STRATEGIES",
    "SelectorStrategy",
    "apply_first",
]
