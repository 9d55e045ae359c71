"""Thread-safe cookie jar shared by every request of a client."""

import threading
from http.cookiejar import Cookie, CookieJar
from typing import Iterator

from cf.models import CookieRecord


def _record_to_cookie(record: CookieRecord) -> Cookie:
    return Cookie(
        version=0,
        name=record.name,
        value=record.value,
        port=None,
        port_specified=False,
        domain=record.domain,
        domain_specified=not record.host_only,
        domain_initial_dot=record.domain.startswith("."),
        path=record.path,
        path_specified=True,
        secure=record.secure,
        expires=record.expires,
        discard=record.expires is None,
        comment=None,
        comment_url=None,
        rest={},
    )


def _cookie_to_record(cookie: Cookie) -> CookieRecord:
    return CookieRecord(
        name=cookie.name,
        value=cookie.value or "",
        domain=cookie.domain,
        path=cookie.path,
        expires=int(cookie.expires) if cookie.expires is not None else None,
        secure=bool(cookie.secure),
        host_only=not cookie.domain_specified,
    )


class SessionCookieJar(CookieJar):
    """CookieJar whose reads and writes all happen under one lock.

    httpx copies the jar by iterating it before every request and writes
    Set-Cookie results back through extract_cookies, possibly from several
    threads at once, so both paths are guarded here.
    """

    def __init__(self) -> None:
        super().__init__()
        self._guard = threading.RLock()

    def set_cookie(self, cookie: Cookie) -> None:
        with self._guard:
            super().set_cookie(cookie)

    def extract_cookies(self, response, request) -> None:  # type: ignore[no-untyped-def]
        with self._guard:
            super().extract_cookies(response, request)

    def add_cookie_header(self, request) -> None:  # type: ignore[no-untyped-def]
        with self._guard:
            super().add_cookie_header(request)

    def clear(self, domain=None, path=None, name=None) -> None:  # type: ignore[no-untyped-def]
        with self._guard:
            super().clear(domain, path, name)

    def clear_expired_cookies(self) -> None:
        with self._guard:
            super().clear_expired_cookies()

    def __iter__(self) -> Iterator[Cookie]:
        with self._guard:
            snapshot = list(super().__iter__())
        return iter(snapshot)

    def __len__(self) -> int:
        with self._guard:
            return len(list(super().__iter__()))

    def load_records(self, records: list[CookieRecord]) -> None:
        """Replace the jar contents with records read from a session file."""
        with self._guard:
            super().clear()
            for record in records:
                super().set_cookie(_record_to_cookie(record))

    def to_records(self) -> list[CookieRecord]:
        """Snapshot the unexpired cookies as records, ordered by (domain, path, name)."""
        with self._guard:
            self.clear_expired_cookies()
            records = [_cookie_to_record(c) for c in super().__iter__()]
        return sorted(records, key=lambda r: (r.domain, r.path, r.name))
