"""Proxy resolution and tunneling agents for outbound requests."""

from __future__ import annotations

import asyncio
import logging
import os
import ssl
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote, urlsplit

import httpcore
import httpx

from azure_login.auth.errors import ProxyConfigurationError
from azure_login.config import Settings

logger = logging.getLogger(__name__)

HTTPS_PROXY = "HTTPS_PROXY"
HTTP_PROXY = "HTTP_PROXY"

DEFAULT_PORTS = {"http": 80, "https": 443}


class ProxySource(str, Enum):
    ENV = "env"
    CONFIG = "config"
    NONE = "none"


@dataclass(frozen=True)
class ProxyResolution:
    """Where the proxy for one request comes from."""

    source: ProxySource
    url: str | None = None
    strict_ssl: bool = True

    @property
    def enabled(self) -> bool:
        return self.source is not ProxySource.NONE and bool(self.url)


NO_PROXY = ProxyResolution(source=ProxySource.NONE)


def _lookup_env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(name) or environ.get(name.lower())
    if value:
        return value
    for key, candidate in environ.items():
        if key.upper() == name and candidate:
            return candidate
    return None


def resolve_proxy(settings: Settings, environ: Mapping[str, str] | None = None) -> ProxyResolution:
    """Pick the proxy for a request.

    HTTPS_PROXY wins over HTTP_PROXY, and both win over the configured
    application proxy.
    """
    environ = os.environ if environ is None else environ
    strict_ssl = settings.http_proxy_strict_ssl

    for name in (HTTPS_PROXY, HTTP_PROXY):
        value = _lookup_env(environ, name)
        if value:
            logger.info(f"Loading proxy value from {name} environment variable")
            return ProxyResolution(source=ProxySource.ENV, url=value, strict_ssl=strict_ssl)

    if settings.http_proxy:
        logger.info("Using proxy from application configuration")
        return ProxyResolution(source=ProxySource.CONFIG, url=settings.http_proxy, strict_ssl=strict_ssl)

    logger.debug("No proxy configured")
    return ProxyResolution(source=ProxySource.NONE, strict_ssl=strict_ssl)


@dataclass(frozen=True)
class ProxyAuthority:
    scheme: str
    host: str
    port: int
    auth: str | None = None

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"

    @property
    def url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    @property
    def credentials(self) -> tuple[str, str] | None:
        if not self.auth:
            return None
        username, _, password = self.auth.partition(":")
        return username, password


def parse_proxy_authority(proxy_url: str) -> ProxyAuthority:
    """Read scheme, host, port and optional credentials from a proxy URL."""
    candidate = proxy_url.strip()
    if "://" not in candidate:
        candidate = f"http://{candidate}"

    parts = urlsplit(candidate)
    scheme = parts.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ProxyConfigurationError(f"Unsupported proxy scheme '{parts.scheme}'")

    try:
        port = parts.port
    except ValueError as e:
        raise ProxyConfigurationError("Unable to read proxy port from proxy endpoint", e) from e

    host = parts.hostname
    if not host:
        raise ProxyConfigurationError("Unable to read proxy host from proxy endpoint")
    if port is None:
        port = DEFAULT_PORTS[scheme]

    auth = None
    if parts.username:
        auth = f"{unquote(parts.username)}:{unquote(parts.password or '')}"

    return ProxyAuthority(scheme=scheme, host=host, port=port, auth=auth)


class TunnelMode(str, Enum):
    HTTPS_OVER_HTTPS = "https_over_https"
    HTTPS_OVER_HTTP = "https_over_http"
    HTTP_OVER_HTTPS = "http_over_https"
    HTTP_OVER_HTTP = "http_over_http"


def select_tunnel_mode(is_request_https: bool, is_proxy_https: bool) -> TunnelMode:
    if is_request_https and is_proxy_https:
        return TunnelMode.HTTPS_OVER_HTTPS
    if is_request_https:
        return TunnelMode.HTTPS_OVER_HTTP
    if is_proxy_https:
        return TunnelMode.HTTP_OVER_HTTPS
    return TunnelMode.HTTP_OVER_HTTP


def _ssl_context(strict_ssl: bool) -> ssl.SSLContext:
    context = ssl.create_default_context()
    if not strict_ssl:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


class AsyncPlainTunnelConnection(httpcore.AsyncConnectionInterface):
    """CONNECT tunnel to an http origin; the tunneled stream stays plaintext."""

    def __init__(
        self,
        proxy_origin: httpcore.Origin,
        remote_origin: httpcore.Origin,
        proxy_headers: list[tuple[bytes, bytes]] | None = None,
        proxy_ssl_context: ssl.SSLContext | None = None,
        keepalive_expiry: float | None = None,
        network_backend=None,
    ):
        self._proxy_origin = proxy_origin
        self._remote_origin = remote_origin
        self._proxy_headers = list(proxy_headers or [])
        self._keepalive_expiry = keepalive_expiry
        self._connection: httpcore.AsyncConnectionInterface = httpcore.AsyncHTTPConnection(
            origin=proxy_origin,
            ssl_context=proxy_ssl_context,
            keepalive_expiry=keepalive_expiry,
            network_backend=network_backend,
        )
        self._connect_lock = asyncio.Lock()
        self._connected = False

    async def handle_async_request(self, request: httpcore.Request) -> httpcore.Response:
        async with self._connect_lock:
            if not self._connected:
                await self._open_tunnel(request)
        return await self._connection.handle_async_request(request)

    async def _open_tunnel(self, request: httpcore.Request) -> None:
        target = b"%b:%d" % (self._remote_origin.host, self._remote_origin.port)
        connect_request = httpcore.Request(
            method=b"CONNECT",
            url=httpcore.URL(
                scheme=self._proxy_origin.scheme,
                host=self._proxy_origin.host,
                port=self._proxy_origin.port,
                target=target,
            ),
            headers=[(b"Host", target), (b"Accept", b"*/*"), *self._proxy_headers],
            extensions=request.extensions,
        )
        connect_response = await self._connection.handle_async_request(connect_request)

        if not 200 <= connect_response.status < 300:
            reason = connect_response.extensions.get("reason_phrase", b"").decode("ascii", errors="ignore")
            await self._connection.aclose()
            raise httpcore.ProxyError(f"{connect_response.status} {reason}".strip())

        stream = connect_response.extensions["network_stream"]
        self._connection = httpcore.AsyncHTTP11Connection(
            origin=self._remote_origin,
            stream=stream,
            keepalive_expiry=self._keepalive_expiry,
        )
        self._connected = True

    def can_handle_request(self, origin: httpcore.Origin) -> bool:
        return origin == self._remote_origin

    async def aclose(self) -> None:
        await self._connection.aclose()

    def info(self) -> str:
        return self._connection.info()

    def is_available(self) -> bool:
        return self._connection.is_available()

    def has_expired(self) -> bool:
        return self._connection.has_expired()

    def is_idle(self) -> bool:
        return self._connection.is_idle()

    def is_closed(self) -> bool:
        return self._connection.is_closed()


class TunnelingProxyPool(httpcore.AsyncHTTPProxy):
    """Proxy pool that always tunnels with CONNECT.

    TLS to the origin is negotiated inside the tunnel only when
    ``tunnel_tls`` is set; otherwise http origins are tunneled in plaintext
    instead of being forwarded.
    """

    def __init__(self, *args, tunnel_tls: bool, **kwargs):
        super().__init__(*args, **kwargs)
        self.tunnel_tls = tunnel_tls

    def create_connection(self, origin: httpcore.Origin) -> httpcore.AsyncConnectionInterface:
        if self.tunnel_tls:
            return super().create_connection(origin)
        return AsyncPlainTunnelConnection(
            proxy_origin=self._proxy_url.origin,
            remote_origin=origin,
            proxy_headers=self._proxy_headers,
            proxy_ssl_context=self._proxy_ssl_context,
            keepalive_expiry=self._keepalive_expiry,
            network_backend=self._network_backend,
        )


class TunnelingTransport(httpx.AsyncHTTPTransport):
    """httpx transport whose connection pool is a tunneling proxy pool."""

    def __init__(self, agent: TunnelingAgent):
        super().__init__(verify=agent.strict_ssl, trust_env=False)
        self._pool = TunnelingProxyPool(
            proxy_url=agent.authority.url,
            proxy_auth=agent.authority.credentials,
            ssl_context=_ssl_context(agent.strict_ssl),
            proxy_ssl_context=_ssl_context(agent.strict_ssl) if agent.proxy_is_https else None,
            tunnel_tls=agent.is_https,
        )

    @property
    def pool(self) -> TunnelingProxyPool:
        return self._pool


@dataclass(frozen=True)
class TunnelingAgent:
    """Relays requests through a proxy.

    The mode decides both sides: ``is_https`` follows the request scheme and
    ``proxy_is_https`` the proxy scheme.
    """

    mode: TunnelMode
    authority: ProxyAuthority
    strict_ssl: bool

    @property
    def is_https(self) -> bool:
        return self.mode in (TunnelMode.HTTPS_OVER_HTTPS, TunnelMode.HTTPS_OVER_HTTP)

    @property
    def proxy_is_https(self) -> bool:
        return self.mode in (TunnelMode.HTTPS_OVER_HTTPS, TunnelMode.HTTP_OVER_HTTPS)

    def transport(self) -> TunnelingTransport:
        return TunnelingTransport(self)


def create_proxy_agent(request_url: str, proxy: ProxyResolution) -> TunnelingAgent:
    """Build the tunneling agent for a request, failing before any network I/O."""
    if not proxy.url:
        raise ProxyConfigurationError("Unable to read proxy agent options to create proxy agent")

    authority = parse_proxy_authority(proxy.url)
    is_request_https = urlsplit(request_url).scheme.lower() == "https"
    mode = select_tunnel_mode(is_request_https, authority.is_https)

    logger.info(
        f"Creating {mode.value} proxy tunneling agent via {authority.url} "
        f"(proxy auth: {'yes' if authority.auth else 'no'}, strictSSL: {proxy.strict_ssl})"
    )
    return TunnelingAgent(mode=mode, authority=authority, strict_ssl=proxy.strict_ssl)
