"""Tests for browser header injection and proxy resolution."""

import logging

import httpx
import pytest

from cf.transport import BROWSER_HEADERS, USER_AGENT, BrowserTransport, resolve_proxy

PROXY_ENV_VARS = (
    "HTTP_PROXY",
    "HTTPS_PROXY",
    "ALL_PROXY",
    "NO_PROXY",
    "http_proxy",
    "https_proxy",
    "all_proxy",
    "no_proxy",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove any proxy settings inherited from the machine running the tests."""
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestBrowserTransport:
    """Tests for BrowserTransport.handle_request()."""

    def test_sets_browser_headers(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        transport = BrowserTransport(httpx.MockTransport(handler))
        with httpx.Client(transport=transport) as client:
            client.get("https://codeforces.com/")

        headers = captured[0].headers
        assert headers["User-Agent"] == USER_AGENT
        for name, value in BROWSER_HEADERS.items():
            assert headers[name] == value

    def test_overrides_caller_user_agent(self):
        """httpx's own User-Agent must never reach the server."""
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        transport = BrowserTransport(httpx.MockTransport(handler))
        with httpx.Client(transport=transport) as client:
            client.get("https://codeforces.com/", headers={"User-Agent": "python-httpx/0.27"})

        assert captured[0].headers["User-Agent"] == USER_AGENT

    def test_errors_propagate(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = BrowserTransport(httpx.MockTransport(handler))
        with httpx.Client(transport=transport) as client:
            with pytest.raises(httpx.ConnectError):
                client.get("https://codeforces.com/")

    def test_custom_user_agent(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        transport = BrowserTransport(httpx.MockTransport(handler), user_agent="TestBrowser/1.0")
        with httpx.Client(transport=transport) as client:
            client.get("https://codeforces.com/")

        assert captured[0].headers["User-Agent"] == "TestBrowser/1.0"


class TestResolveProxy:
    """Tests for resolve_proxy()."""

    def test_explicit_proxy(self, clean_env):
        assert resolve_proxy("http://127.0.0.1:8080", "https://codeforces.com") == "http://127.0.0.1:8080"

    def test_socks_proxy(self, clean_env):
        assert resolve_proxy("socks5://127.0.0.1:1080", "https://codeforces.com") == "socks5://127.0.0.1:1080"

    def test_empty_proxy_without_environment(self, clean_env):
        assert resolve_proxy("", "https://codeforces.com") is None

    def test_empty_proxy_uses_environment(self, clean_env):
        clean_env.setenv("HTTPS_PROXY", "http://env-proxy:3128")
        assert resolve_proxy("", "https://codeforces.com") == "http://env-proxy:3128"

    def test_invalid_proxy_falls_back_to_environment(self, clean_env, caplog):
        clean_env.setenv("HTTPS_PROXY", "http://env-proxy:3128")

        with caplog.at_level(logging.WARNING, logger="cf.transport"):
            proxy = resolve_proxy("not a proxy", "https://codeforces.com")

        assert proxy == "http://env-proxy:3128"
        assert "Invalid proxy" in caplog.text

    def test_unsupported_scheme_falls_back(self, clean_env, caplog):
        with caplog.at_level(logging.WARNING, logger="cf.transport"):
            proxy = resolve_proxy("ftp://127.0.0.1:21", "https://codeforces.com")

        assert proxy is None
        assert "Invalid proxy" in caplog.text

    def test_no_proxy_bypasses_environment(self, clean_env):
        clean_env.setenv("HTTPS_PROXY", "http://env-proxy:3128")
        clean_env.setenv("NO_PROXY", "codeforces.com")

        assert resolve_proxy("", "https://codeforces.com") is None
