"""Reverse proxying to the record backend and to the admin dev server."""

import logging
from typing import List, Mapping, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/admin"

# Headers that describe a single connection or the transfer encoding; the
# HTTP stack recomputes them on each side.
HOP_BY_HOP = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "content-encoding",
    "content-length",
})

# Absolute asset references emitted by the admin dev server
_ADMIN_ASSET_REWRITES = (
    ('"/@vite/', '"/admin/@vite/'),
    ('"/@react-refresh"', '"/admin/@react-refresh"'),
    ('"/src/', '"/admin/src/'),
    ('"/node_modules/', '"/admin/node_modules/'),
)


def filter_headers(headers: httpx.Headers) -> List[Tuple[str, str]]:
    """Upstream response headers minus hop-by-hop ones, repeated headers kept."""
    return [(k, v) for k, v in headers.multi_items() if k.lower() not in HOP_BY_HOP]


def request_headers(headers: Mapping[str, str], host: Optional[str] = None) -> List[Tuple[str, str]]:
    """Headers to send upstream: hop-by-hop and ``Host`` removed, *host* set when given."""
    forwarded = [(k, v) for k, v in headers.items() if k.lower() not in HOP_BY_HOP and k.lower() != "host"]
    if host:
        forwarded.append(("host", host))
    return forwarded


def with_query(path: str, query: str) -> str:
    return f"{path}?{query}" if query else path


def strip_admin_prefix(path: str) -> str:
    """``/admin/src/x.tsx`` -> ``/src/x.tsx``; ``/admin`` -> ``/``."""
    stripped = path[len(ADMIN_PREFIX):] if path.startswith(ADMIN_PREFIX) else path
    if not stripped:
        return "/"
    return stripped if stripped.startswith("/") else f"/{stripped}"


def rewrite_admin_html(html: str) -> str:
    """Point the admin SPA's absolute asset URLs back through ``/admin``."""
    for old, new in _ADMIN_ASSET_REWRITES:
        html = html.replace(old, new)
    return html


def is_html(content_type: str) -> bool:
    return "text/html" in content_type.lower()


async def forward(
    client: httpx.AsyncClient,
    method: str,
    target: str,
    headers: List[Tuple[str, str]],
    body: bytes = b"",
) -> httpx.Response:
    """Send one buffered request to *target* (relative to the client's base URL).

    Redirects are returned to the caller untouched.  Raises
    :class:`httpx.RequestError` when the origin cannot be reached.
    """
    logger.debug("Proxying %s %s to %s", method, target, client.base_url)
    return await client.request(
        method,
        target,
        headers=headers,
        content=body or None,
        follow_redirects=False,
    )


def raw_path(request: Request) -> str:
    """Request path as sent, still percent-encoded and without the query."""
    raw = request.scope.get("raw_path")
    if not raw:
        return request.url.path
    return raw.decode("latin-1").split("?", 1)[0]


def passthrough_response(upstream: httpx.Response) -> Response:
    response = Response(content=upstream.content, status_code=upstream.status_code)
    for key, value in filter_headers(upstream.headers):
        response.headers.append(key, value)
    return response


def bad_gateway(origin: str, exc: Exception) -> Response:
    logger.error("Upstream %s unreachable: %s", origin, exc)
    return PlainTextResponse("Bad Gateway", status_code=502)


async def proxy_to_backend(client: httpx.AsyncClient, request: Request) -> Response:
    """Forward *request* to the backend unchanged: same path, query, method, headers and body."""
    target = with_query(raw_path(request), request.url.query)
    body = await request.body()
    try:
        upstream = await forward(client, request.method, target, request_headers(request.headers), body)
    except httpx.RequestError as exc:
        return bad_gateway(str(client.base_url), exc)
    return passthrough_response(upstream)


async def proxy_to_admin(client: httpx.AsyncClient, request: Request, host: Optional[str] = None) -> Response:
    """Forward *request* to the admin dev server with the ``/admin`` prefix removed.

    HTML documents get their absolute asset references re-prefixed so the
    browser keeps loading the admin app through this proxy.
    """
    target = with_query(strip_admin_prefix(raw_path(request)), request.url.query)
    body = await request.body()
    try:
        upstream = await forward(client, request.method, target, request_headers(request.headers, host), body)
    except httpx.RequestError as exc:
        return bad_gateway(str(client.base_url), exc)

    if is_html(upstream.headers.get("content-type", "")):
        return HTMLResponse(rewrite_admin_html(upstream.text), status_code=upstream.status_code)
    return passthrough_response(upstream)
