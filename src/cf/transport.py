"""httpx transport that makes every request look like it came from a browser."""

import logging
import urllib.request
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/134.0.0.0 Safari/537.36"
)

BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
}

PROXY_SCHEMES = ("http", "https", "socks5")


def environment_proxy(host: str) -> Optional[str]:
    """Proxy the environment configures for host, honouring NO_PROXY."""
    url = httpx.URL(host)
    if url.host and urllib.request.proxy_bypass_environment(url.host):
        return None
    proxies = urllib.request.getproxies_environment()
    return proxies.get(url.scheme) or proxies.get("all")


def resolve_proxy(proxy: str, host: str) -> Optional[str]:
    """Pick the proxy to use for host.

    An explicit proxy wins. If it can't be parsed the environment settings are
    used instead and a warning is logged.
    """
    if proxy:
        try:
            url = httpx.URL(proxy)
        except httpx.InvalidURL as e:
            logger.warning("Invalid proxy %r (%s), using proxy from environment", proxy, e)
        else:
            if url.scheme in PROXY_SCHEMES and url.host:
                return proxy
            logger.warning("Invalid proxy %r, using proxy from environment", proxy)

    return environment_proxy(host)


class BrowserTransport(httpx.BaseTransport):
    """Wraps another transport and stamps browser headers on each request."""

    def __init__(
        self,
        transport: Optional[httpx.BaseTransport] = None,
        proxy: Optional[str] = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._transport = transport or httpx.HTTPTransport(proxy=proxy)
        self._user_agent = user_agent

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        request.headers["User-Agent"] = self._user_agent
        for name, value in BROWSER_HEADERS.items():
            request.headers[name] = value
        return self._transport.handle_request(request)

    def close(self) -> None:
        self._transport.close()
