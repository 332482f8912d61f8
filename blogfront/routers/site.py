"""Catch-all dispatcher for everything that is not the backend API.

Order matters: uploads and files from the public directory win over the
admin proxy, which wins over rendered pages.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, Response

from blogfront.config import Settings
from blogfront.models.theme_status import ThemeStatus
from blogfront.routers.api_proxy import PROXY_METHODS
from blogfront.services.backend import UpstreamError
from blogfront.services.media import MEDIA, get_media_by_path
from blogfront.services.proxy import ADMIN_PREFIX, proxy_to_admin, raw_path
from blogfront.services.routing import classify_path
from blogfront.services.static import clean_path, find_static_file, media_type_for

logger = logging.getLogger(__name__)

UPLOADS_PREFIX = "/uploads/"
_UPLOAD_CACHE_CONTROL = "public, max-age=300"

router = APIRouter()


def serve_public_file(request: Request) -> Optional[FileResponse]:
    """Serve the file under the active public directory named by the request path, if any."""
    settings: Settings = request.app.state.settings
    file_path = find_static_file(settings.active_public_dir, request.scope["path"])
    if file_path is None:
        return None
    return FileResponse(file_path, media_type=media_type_for(file_path))


async def serve_upload(request: Request, path: str) -> Optional[Response]:
    """Proxy an ``/uploads/...`` path to the media record whose ``path`` matches it."""
    backend = request.app.state.backend
    media = await get_media_by_path(backend, path)
    if media is None or not media.file:
        return None
    try:
        upstream = await backend.get_file(MEDIA, media.id, media.file)
    except UpstreamError as exc:
        logger.warning("Fetching upload %s failed: %s", path, exc)
        return None
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        headers={
            "Content-Type": upstream.headers.get("content-type", "application/octet-stream"),
            "Cache-Control": upstream.headers.get("cache-control", _UPLOAD_CACHE_CONTROL),
        },
    )


@router.get("/theme-status", response_model=ThemeStatus, summary="Whether custom public assets are active")
async def theme_status(request: Request) -> ThemeStatus:
    return ThemeStatus(public_assets=request.app.state.settings.custom_assets)


@router.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
async def dispatch(request: Request, path: str) -> Response:
    request_path = clean_path(request.scope["path"])

    if request_path.startswith(UPLOADS_PREFIX):
        upload = await serve_upload(request, request_path)
        if upload is not None:
            return upload

    static = serve_public_file(request)
    if static is not None:
        return static

    if request_path.startswith(ADMIN_PREFIX):
        settings: Settings = request.app.state.settings
        return await proxy_to_admin(request.app.state.admin_http, request, settings.admin_host)

    route = classify_path(raw_path(request))
    theme = request.query_params.get("theme", "")
    logger.debug("Rendering %s route for %s", route.kind, route.path)
    html = await request.app.state.site.render(route, theme)
    # Missing content renders the not-found document with a 200 as well
    return HTMLResponse(html)
