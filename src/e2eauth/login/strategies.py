"""Selector strategies and page heuristics for the provider login UI.

A login page that changes between releases is probed with an ordered list
of :class:`SelectorStrategy` objects. :func:`apply_first` tries them in
order and acts on the first one that finds an element; only when every
strategy misses is :class:`~e2eauth.exceptions.ElementNotFoundError`
raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional, Sequence

from e2eauth.exceptions import ElementNotFoundError

if TYPE_CHECKING:
    from playwright.sync_api import Locator, Page

logger = logging.getLogger(__name__)

Finder = Callable[["Page"], Optional["Locator"]]

FIRST_TIME_LOGIN_MARKER = "first-time-login"
FIRST_TIME_TEXT_MARKERS = ("first time", "welcome")

USERNAME_SELECTOR = '[id="username"]'
PASSWORD_SELECTOR = '[id="password"]'
LOGIN_BUTTON_SELECTOR = '[id="kc-login"]'


@dataclass(frozen=True)
class SelectorStrategy:
    """One named way of locating an element on a page."""

    name: str
    find: Finder


def css(selector: str) -> Finder:
    """Build a finder returning the first element matching *selector*."""

    def _find(page: Page) -> Optional[Locator]:
        locator = page.locator(selector)
        if locator.count() > 0:
            return locator.first
        return None

    return _find


def _email_like_input(page: Page) -> Optional[Locator]:
    for candidate in page.locator("input").all():
        for attr in ("id", "name", "placeholder"):
            value = candidate.get_attribute(attr) or ""
            if "email" in value.lower():
                return candidate
    return None


def _submit_like_control(page: Page) -> Optional[Locator]:
    for selector in ('input[type="submit"]', 'button[type="submit"]', "button"):
        found = css(selector)(page)
        if found is not None:
            return found
    return None


EMAIL_FIELD_STRATEGIES: tuple[SelectorStrategy, ...] = (
    SelectorStrategy("email input with id", css('input#email[type="email"]')),
    SelectorStrategy("input with id email", css("input#email")),
    SelectorStrategy("email input", css('input[type="email"]')),
    SelectorStrategy("email-like input", _email_like_input),
)

SUBMIT_STRATEGIES: tuple[SelectorStrategy, ...] = (
    SelectorStrategy("Enter button", css('button:text-is("Enter")')),
    SelectorStrategy("button with id enter", css("button#enter")),
    SelectorStrategy("button containing Enter", css('button:has-text("Enter")')),
    SelectorStrategy("submit-like control", _submit_like_control),
)


def first_match(
    page: Page, strategies: Sequence[SelectorStrategy]
) -> Optional[tuple[SelectorStrategy, Locator]]:
    """Return the first strategy that finds an element, with that element."""
    for strategy in strategies:
        found = strategy.find(page)
        if found is not None:
            return strategy, found
        logger.debug("Selector strategy '%s' found nothing", strategy.name)
    return None


def apply_first(
    page: Page,
    strategies: Sequence[SelectorStrategy],
    action: Callable[[Locator], None],
    description: str,
) -> str:
    """Run *action* on the element found by the first matching strategy.

    Args:
        page: Page to probe.
        strategies: Strategies in priority order.
        action: Called with the located element, e.g. ``lambda el: el.click()``.
        description: What is being looked for, used in messages.

    Returns:
        The name of the strategy that matched.

    Raises:
        ElementNotFoundError: If no strategy finds an element.
    """
    match = first_match(page, strategies)
    if match is None:
        tried = ", ".join(s.name for s in strategies)
        raise ElementNotFoundError(f"Could not find {description} (tried: {tried})")
    strategy, element = match
    logger.debug("Found %s via '%s'", description, strategy.name)
    action(element)
    return strategy.name


# --- Heuristics ---


def is_first_time_login_url(url: str, provider_host: str) -> bool:
    """Whether *url* looks like a first-time login page rather than the provider."""
    if FIRST_TIME_LOGIN_MARKER in url:
        return True
    return "login" in url and provider_host not in url


def looks_like_first_time_page(page: Page) -> bool:
    """Probe the page for an email input or a welcome text."""
    if page.locator('input[type="email"], input#email').count() > 0:
        return True
    text = page.locator("body").inner_text().lower()
    return any(marker in text for marker in FIRST_TIME_TEXT_MARKERS)
