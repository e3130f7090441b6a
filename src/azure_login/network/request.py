"""GET requests that can traverse a corporate proxy."""

from __future__ import annotations

import logging
from urllib.parse import urlsplit, urlunsplit

import httpx

from azure_login.config import get_settings
from azure_login.network.proxy import (
    DEFAULT_PORTS,
    ProxyResolution,
    create_proxy_agent,
    resolve_proxy,
)

logger = logging.getLogger(__name__)


def with_explicit_port(request_url: str) -> str:
    """Return the URL with its port spelled out (443 for https, 80 otherwise).

    Some proxies mis-route requests whose target has no explicit port.
    """
    parts = urlsplit(request_url)
    scheme = parts.scheme.lower()
    port = parts.port or DEFAULT_PORTS.get(scheme, DEFAULT_PORTS["http"])
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    userinfo, _, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}@{host}:{port}" if userinfo else f"{host}:{port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


async def fetch(
    request_url: str,
    token: str | None = None,
    proxy: ProxyResolution | None = None,
) -> httpx.Response:
    """Send a GET request, optionally with a bearer token.

    Every status code is returned to the caller; only transport failures raise.
    """
    if not urlsplit(request_url).scheme or not urlsplit(request_url).netloc:
        raise ValueError(f"Request URL must be absolute: {request_url!r}")

    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    if proxy is None:
        proxy = resolve_proxy(get_settings())

    transport = None
    target_url = request_url
    if proxy.enabled:
        agent = create_proxy_agent(request_url, proxy)
        transport = agent.transport()
        if token:
            target_url = with_explicit_port(request_url)
            # httpx drops default ports from the URL, so carry it in Host
            headers["Host"] = urlsplit(target_url).netloc.rpartition("@")[2]

    logger.info(f"Sending GET request to {target_url}")
    async with httpx.AsyncClient(transport=transport, timeout=None, trust_env=False) as client:
        response = await client.get(target_url, headers=headers)

    logger.info(f"{response.status_code}-{response.reason_phrase} response received from {target_url}")
    return response
