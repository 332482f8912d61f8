from fastapi import APIRouter, Request
from fastapi.responses import Response

from blogfront.services.proxy import proxy_to_backend

PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

router = APIRouter()


@router.api_route(
    "/api/{path:path}",
    methods=PROXY_METHODS,
    include_in_schema=False,
)
async def backend_api(request: Request, path: str) -> Response:
    """Pass ``/api/*`` straight through to the record backend."""
    return await proxy_to_backend(request.app.state.backend.http, request)
