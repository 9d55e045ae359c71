"""Codeforces client that keeps a browser-like login alive across runs."""

import logging
import threading
from typing import Any, Callable, Optional

import httpx

from cf.auth import (
    LOGIN_PATH,
    TokenExtractor,
    build_login_form,
    classify,
    extract_csrf,
    extract_login_error,
    is_challenge_page,
)
from cf.cookies import SessionCookieJar
from cf.credentials import ensure_tokens
from cf.exceptions import (
    ChallengeBlockedError,
    CodeforcesError,
    InvalidCredentialsError,
    LoginError,
    MissingCredentialsError,
    SessionExpiredError,
    SessionFileError,
)
from cf.models import Config, LastSubmission, ProbeResult, Session
from cf.probe import check_connection
from cf.storage import Storage
from cf.transport import BrowserTransport, resolve_proxy

logger = logging.getLogger(__name__)

Operation = Callable[[], httpx.Response]


class CodeforcesClient:
    """Client for interacting with Codeforces as a logged-in user.

    Every page fetched through :meth:`do` is checked for a logged-in marker.
    When the server has forgotten us the client logs in again and repeats the
    request once. Only one login runs at a time; callers that notice an
    expired session while it runs wait for it and share its outcome.
    """

    def __init__(
        self,
        session: Session,
        storage: Storage,
        config: Config,
        transport: Optional[httpx.BaseTransport] = None,
        token_extractor: TokenExtractor = extract_csrf,
    ) -> None:
        self.session = session
        self.host = config.host.rstrip("/")
        self.proxy = config.proxy
        self.timeout = config.timeout
        self.session_path = storage.session_file(config)
        self._storage = storage
        self._token_extractor = token_extractor

        self.jar = SessionCookieJar()
        self.jar.load_records(session.cookies)

        self._login_lock = threading.Lock()
        self._save_lock = threading.RLock()
        self._login_generation = 0
        self._login_error: Optional[BaseException] = None

        self._client = httpx.Client(
            base_url=self.host,
            cookies=self.jar,
            transport=BrowserTransport(transport, proxy=resolve_proxy(config.proxy, self.host)),
            timeout=self.timeout,
            follow_redirects=True,
        )

    def __enter__(self) -> "CodeforcesClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def current_handle(self) -> str:
        return self.session.handle

    def request(
        self, method: str, url: str, *, timeout: Optional[float] = None, **kwargs: Any
    ) -> httpx.Response:
        """Send a request as-is, without any login handling."""
        if timeout is not None:
            kwargs["timeout"] = timeout
        return self._client.request(method, url, **kwargs)

    def do(self, method: str, url: str, *, timeout: Optional[float] = None, **kwargs: Any) -> httpx.Response:
        """Send a request for an HTML page, logging in again if the session expired.

        POST requests change server-side state, so the session is saved after them,
        once, together with any login that happened on the way.
        Use :meth:`request` for endpoints that don't render the site header
        (JSON APIs, downloads), since those never carry a login marker.
        """
        if method.upper() != "POST":
            return self.ensure_logged_in(
                lambda: self.request(method, url, timeout=timeout, **kwargs), timeout=timeout
            )

        try:
            return self.ensure_logged_in(
                lambda: self.request(method, url, timeout=timeout, **kwargs),
                timeout=timeout,
                persist_login=False,
            )
        finally:
            self.save()

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.do("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return self.do("POST", url, **kwargs)

    def ensure_logged_in(
        self, operation: Operation, timeout: Optional[float] = None, persist_login: bool = True
    ) -> httpx.Response:
        """Run operation, and once more after a re-login if it came back anonymous.

        Server errors (5xx) are returned without a re-login for the caller to judge.
        Challenge pages raise ChallengeBlockedError.
        """
        generation = self._login_generation

        response = operation()
        if self._is_logged_in(response) or response.is_server_error:
            return response

        logger.info("Not logged in, logging in again")
        self._relogin(generation, timeout, persist_login)

        response = operation()
        if self._is_logged_in(response) or response.is_server_error:
            return response
        raise SessionExpiredError()

    def _is_logged_in(self, response: httpx.Response) -> bool:
        body = response.text
        if is_challenge_page(body):
            raise ChallengeBlockedError()
        return classify(body).authenticated

    def _relogin(self, generation: int, timeout: Optional[float], persist: bool) -> None:
        with self._login_lock:
            if generation != self._login_generation:
                logger.debug("Session was refreshed by another request, reusing that login")
                if self._login_error is not None:
                    raise self._login_error
                return
            self._login_once(timeout, persist)

    def login(self, timeout: Optional[float] = None) -> str:
        """Log in with the stored credentials. Returns the logged-in handle."""
        with self._login_lock:
            return self._login_once(timeout, persist=True)

    def login_as(self, handle_or_email: str, password: str, timeout: Optional[float] = None) -> str:
        """Log in with new credentials, keeping them only if Codeforces accepts them."""
        with self._save_lock:
            previous = (self.session.handle_or_email, self.session.password, self.session.handle)
            self.session.handle_or_email = handle_or_email
            self.session.password = password
            self.session.handle = ""

        try:
            return self.login(timeout)
        except BaseException:
            with self._save_lock:
                self.session.handle_or_email, self.session.password, self.session.handle = previous
            raise

    def _login_once(self, timeout: Optional[float], persist: bool) -> str:
        # Callers hold _login_lock.
        try:
            handle = self._login(timeout, persist)
        except (CodeforcesError, httpx.HTTPError) as e:
            self._login_error = e
            raise
        else:
            self._login_error = None
            return handle
        finally:
            self._login_generation += 1

    def _login(self, timeout: Optional[float], persist: bool) -> str:
        if not self.session.has_credentials:
            raise MissingCredentialsError()

        logger.info("Logging in as %s", self.session.handle_or_email)
        if ensure_tokens(self.session):
            logger.debug("Generated new anti-bot fingerprint tokens")

        page = self.request("GET", LOGIN_PATH, timeout=timeout)
        body = page.text
        if is_challenge_page(body):
            raise ChallengeBlockedError()
        page.raise_for_status()

        # /enter redirects home when the cookies are still good.
        status = classify(body)
        if status.authenticated:
            return self._finish_login(status.handle, persist)

        csrf_token = self._token_extractor(body)
        if not csrf_token:
            raise LoginError("Cannot find the csrf token on the login page")

        response = self.request(
            "POST",
            LOGIN_PATH,
            data=build_login_form(self.session, csrf_token),
            timeout=timeout,
        )
        body = response.text
        if is_challenge_page(body):
            raise ChallengeBlockedError()

        status = classify(body)
        if not status.authenticated:
            reason = extract_login_error(body)
            if reason:
                raise InvalidCredentialsError(f"Login as {self.session.handle_or_email} failed: {reason}")
            raise InvalidCredentialsError()

        return self._finish_login(status.handle, persist)

    def _finish_login(self, handle: str, persist: bool) -> str:
        with self._save_lock:
            self.session.handle = handle
        logger.info("Logged in as %s", handle)
        if persist:
            self.save()
        return handle

    def set_credentials(self, handle_or_email: str, password: str) -> None:
        """Replace the stored credentials. The cached handle is cleared until the next login."""
        with self._save_lock:
            self.session.handle_or_email = handle_or_email
            self.session.password = password
            self.session.handle = ""
            self.save()

    def record_submission(
        self, contest_id: str, problem_id: str, submission_id: str = "", verdict: str = ""
    ) -> None:
        with self._save_lock:
            self.session.last_submission = LastSubmission(
                contest_id=contest_id,
                problem_id=problem_id,
                submission_id=submission_id,
                verdict=verdict,
            )
            self.save()

    def save(self) -> bool:
        """Persist the session. Returns False if it could not be written."""
        with self._save_lock:
            self.session.cookies = self.jar.to_records()
            try:
                self._storage.save_session(self.session, self.session_path)
            except SessionFileError as e:
                logger.error("%s", e.message)
                return False
        logger.debug("Saved session to %s", self.session_path)
        return True

    def probe(self) -> ProbeResult:
        """Check that Codeforces is reachable and serving real pages to this session."""
        return check_connection(self)
