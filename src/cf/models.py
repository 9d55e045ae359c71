"""Data models for the cf client."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass
class CookieRecord:
    """Serializable form of a single cookie from the jar."""

    name: str
    value: str
    domain: str
    path: str = "/"
    expires: Optional[int] = None
    secure: bool = False
    host_only: bool = True


@dataclass
class LastSubmission:
    """The most recently observed submission, cached for watch/pull commands."""

    contest_id: str
    problem_id: str
    submission_id: str = ""
    verdict: str = ""


@dataclass
class Session:
    """Everything persisted between runs for one Codeforces identity."""

    cookies: list[CookieRecord] = field(default_factory=list)
    handle: str = ""
    handle_or_email: str = ""
    password: str = field(default="", repr=False)
    ftaa: str = ""
    bfaa: str = ""
    last_submission: Optional[LastSubmission] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.handle_or_email and self.password)


class LoginState(Enum):
    UNKNOWN = "unknown"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"
    AMBIGUOUS = "ambiguous"


@dataclass
class LoginStatus:
    """Result of classifying a page body."""

    state: LoginState
    handle: str = ""

    @property
    def authenticated(self) -> bool:
        return self.state is LoginState.AUTHENTICATED


class ProbeStatus(Enum):
    HEALTHY = "healthy"
    CHALLENGE_BLOCKED = "challenge_blocked"
    UNHEALTHY = "unhealthy"


@dataclass
class ProbeResult:
    """Outcome of a connectivity check."""

    status: ProbeStatus
    reason: str = ""

    @property
    def healthy(self) -> bool:
        return self.status is ProbeStatus.HEALTHY


@dataclass
class Config:
    """User configuration for the CLI."""

    host: str
    proxy: str
    session_path: str
    timeout: float
