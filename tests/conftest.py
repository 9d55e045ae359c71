"""Shared pytest fixtures for the cf test suite."""

import threading
from urllib.parse import parse_qs

import httpx
import pytest

from cf.client import CodeforcesClient
from cf.models import Config, Session
from cf.storage import Storage

HANDLE = "tourist"
PASSWORD = "secret"
CSRF_TOKEN = "abc123"

LOGGED_IN_PAGE = (
    '<html><head><script>var handle = "tourist";</script></head>'
    '<body><a href="/problemset">Problemset</a>'
    '<div class="problem-statement">A. Theatre Square</div></body></html>'
)
ANONYMOUS_PAGE = (
    '<html><body><a href="/enter?back=%2Fcontest%2F1%2Fproblem%2FA">Enter</a>'
    '<div class="problem-statement">A. Theatre Square</div></body></html>'
)
LOGIN_PAGE = (
    '<html><body><span class="csrf-token" data-csrf=\'abc123\'>&nbsp;</span>'
    '<form method="post" action="/enter"><a href="/enter">Enter</a></form></body></html>'
)
LOGIN_FAILED_PAGE = LOGIN_PAGE.replace(
    "</form>", '<span class="error for__password">Invalid handle/email or password</span></form>'
)
CHALLENGE_PAGE = (
    "<html><head><title>Just a moment...</title></head>"
    '<body><div id="challenge-platform"></div></body></html>'
)


class FakeCodeforces:
    """Minimal stand-in for codeforces.com behind httpx.MockTransport."""

    def __init__(self, handle: str = HANDLE, password: str = PASSWORD) -> None:
        self.handle = handle
        self.password = password
        self.challenge = False
        self.logged_in_page = LOGGED_IN_PAGE
        self.requests: list[httpx.Request] = []
        self.login_posts = 0
        self._lock = threading.Lock()

    def count(self, method: str, path: str) -> int:
        with self._lock:
            return sum(1 for r in self.requests if r.method == method and r.url.path == path)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)

        if self.challenge:
            return httpx.Response(403, text=CHALLENGE_PAGE)

        if request.url.path == "/enter":
            if request.method == "POST":
                return self._login(request)
            return httpx.Response(200, text=LOGIN_PAGE, headers={"Set-Cookie": "39ce7=CFxyz; Path=/"})

        if "JSESSIONID=valid" in request.headers.get("cookie", ""):
            return httpx.Response(200, text=self.logged_in_page)
        return httpx.Response(200, text=ANONYMOUS_PAGE)

    def _login(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.login_posts += 1

        form = parse_qs(request.content.decode())
        if (
            form.get("csrf_token") == [CSRF_TOKEN]
            and form.get("handleOrEmail") == [self.handle]
            and form.get("password") == [self.password]
        ):
            return httpx.Response(
                302, headers={"Location": "/", "Set-Cookie": "JSESSIONID=valid; Path=/"}
            )
        return httpx.Response(200, text=LOGIN_FAILED_PAGE)


@pytest.fixture
def fake_server() -> FakeCodeforces:
    """Returns a fake Codeforces server that accepts tourist/secret."""
    return FakeCodeforces()


@pytest.fixture
def tmp_storage(tmp_path) -> Storage:
    """Returns a Storage instance using a temporary directory."""
    return Storage(base_path=tmp_path)


@pytest.fixture
def sample_config() -> Config:
    """Returns a Config pointing at the default host with no proxy."""
    return Config(
        host="https://codeforces.com",
        proxy="",
        session_path="",
        timeout=5.0,
    )


@pytest.fixture
def make_client(tmp_storage, sample_config, fake_server):
    """Factory for clients wired to the fake server and temporary storage."""
    clients: list[CodeforcesClient] = []

    def _make(session: Session | None = None, server=None, **kwargs) -> CodeforcesClient:
        if session is None:
            session = Session(handle_or_email=HANDLE, password=PASSWORD)
        client = CodeforcesClient(
            session,
            tmp_storage,
            sample_config,
            transport=httpx.MockTransport(server or fake_server),
            **kwargs,
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
