"""Page inspection for the login flow: who is logged in, and what the login form needs."""

import html
import re
from typing import Callable, Optional

from cf.models import LoginState, LoginStatus, Session

LOGIN_PATH = "/enter"

# Codeforces renders `handle = "tourist"` into an inline script for logged-in users.
HANDLE_PATTERN = re.compile(r'handle = "([\s\S]+?)"')
ANONYMOUS_PATTERN = re.compile(r'href="/enter(?:\?[^"]*)?"')

CSRF_PATTERNS = (
    re.compile(r"csrf='(.+?)'"),
    re.compile(r'<meta name="X-Csrf-Token" content="([^"]+)"'),
)
LOGIN_ERROR_PATTERN = re.compile(r'class="error for__password">([^<]*)<')

CHALLENGE_MARKERS = (
    "Just a moment...",
    "cf-browser-verification",
    "challenge-platform",
)

# Time-to-action the browser login form reports; the site only checks it is present.
TTA = "176"

TokenExtractor = Callable[[str], Optional[str]]


def classify(body: str) -> LoginStatus:
    """Decide from a page body whether the session behind it is logged in."""
    match = HANDLE_PATTERN.search(body)
    if match:
        return LoginStatus(LoginState.AUTHENTICATED, html.unescape(match.group(1)))
    if ANONYMOUS_PATTERN.search(body):
        return LoginStatus(LoginState.UNAUTHENTICATED)
    return LoginStatus(LoginState.AMBIGUOUS)


def is_challenge_page(body: str) -> bool:
    return any(marker in body for marker in CHALLENGE_MARKERS)


def extract_csrf(body: str) -> Optional[str]:
    """Default anti-forgery token extractor for the login page."""
    for pattern in CSRF_PATTERNS:
        match = pattern.search(body)
        if match:
            return match.group(1)
    return None


def extract_login_error(body: str) -> Optional[str]:
    match = LOGIN_ERROR_PATTERN.search(body)
    if match and match.group(1).strip():
        return html.unescape(match.group(1).strip())
    return None


def build_login_form(session: Session, csrf_token: str) -> dict[str, str]:
    return {
        "csrf_token": csrf_token,
        "action": "enter",
        "ftaa": session.ftaa,
        "bfaa": session.bfaa,
        "handleOrEmail": session.handle_or_email,
        "password": session.password,
        "_tta": TTA,
        "remember": "on",
    }
