"""Feeds, sitemap and robots.txt.

These walk the post collection, so they are rate limited per client.  A file
with the same name in the public directory is served instead when present.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from blogfront.config import Settings
from blogfront.routers.site import serve_public_file
from blogfront.services.feeds import (
    build_atom_feed,
    build_json_feed,
    build_robots,
    build_sitemap,
    fetch_feed_items,
)
from blogfront.services.text import normalize_base_url

logger = logging.getLogger(__name__)

FEED_RATE_LIMIT = "30/minute"

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def site_base_url(request: Request, settings: Settings) -> str:
    """Absolute site origin: ``SITE_URL`` when configured, else derived from the request."""
    configured = normalize_base_url(settings.site_url)
    if configured:
        return configured
    host = request.headers.get("host", "").strip()
    if not host:
        return ""
    scheme = request.headers.get("x-forwarded-proto", "").strip() or request.url.scheme
    return f"{scheme}://{host}"


@router.get("/feed.xml", include_in_schema=False)
@limiter.limit(FEED_RATE_LIMIT)
async def atom_feed(request: Request) -> Response:
    static = serve_public_file(request)
    if static is not None:
        return static
    settings: Settings = request.app.state.settings
    if not settings.enable_feed_xml:
        return PlainTextResponse("Not Found", status_code=404)
    items = await fetch_feed_items(settings, request.app.state.backend)
    return Response(build_atom_feed(settings, items), media_type="application/atom+xml; charset=utf-8")


@router.get("/feed.json", include_in_schema=False)
@limiter.limit(FEED_RATE_LIMIT)
async def json_feed(request: Request) -> Response:
    static = serve_public_file(request)
    if static is not None:
        return static
    settings: Settings = request.app.state.settings
    if not settings.enable_feed_json:
        return PlainTextResponse("Not Found", status_code=404)
    items = await fetch_feed_items(settings, request.app.state.backend)
    return JSONResponse(build_json_feed(settings, items).model_dump())


@router.get("/sitemap.xml", include_in_schema=False)
@limiter.limit(FEED_RATE_LIMIT)
async def sitemap(request: Request) -> Response:
    static = serve_public_file(request)
    if static is not None:
        return static
    settings: Settings = request.app.state.settings
    base_url = site_base_url(request, settings)
    if not base_url:
        return PlainTextResponse("missing site url", status_code=400)
    body = await build_sitemap(settings, request.app.state.backend, base_url)
    return Response(body, media_type="application/xml; charset=utf-8")


@router.get("/robots.txt", include_in_schema=False)
async def robots(request: Request) -> Response:
    static = serve_public_file(request)
    if static is not None:
        return static
    base_url = site_base_url(request, request.app.state.settings)
    return PlainTextResponse(build_robots(base_url))
