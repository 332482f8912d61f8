import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from blogfront.config import Settings
from blogfront.routers.api_proxy import router as api_proxy_router
from blogfront.routers.feeds import limiter, router as feeds_router
from blogfront.routers.site import router as site_router
from blogfront.services.backend import BackendClient
from blogfront.services.site import Site

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json",
                },
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )


def create_app(
    settings: Optional[Settings] = None,
    backend_transport: Optional[httpx.AsyncBaseTransport] = None,
    admin_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Build the application.

    The transports exist for tests; in production both origins are reached
    over the network.
    """
    settings = settings or Settings.from_env()
    timeout = httpx.Timeout(settings.backend_timeout)
    backend_http = httpx.AsyncClient(base_url=settings.backend_url, timeout=timeout, transport=backend_transport)
    admin_http = httpx.AsyncClient(base_url=settings.admin_url, timeout=timeout, transport=admin_transport)
    backend = BackendClient(backend_http)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "SSR server starting (backend %s, admin %s, assets %s)",
            settings.backend_url,
            settings.admin_url,
            settings.active_public_dir,
        )
        yield
        await backend_http.aclose()
        await admin_http.aclose()

    app = FastAPI(
        title="blogfront",
        description="Server-rendered blog front end with backend and admin proxies.",
        version="1.0.0",
        lifespan=lifespan,
        # every unclaimed path is a potential page URL
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.admin_http = admin_http
    app.state.site = Site(settings, backend)

    # Rate-limiting state
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.exception("Unhandled exception for %s", request.url)
        return PlainTextResponse("Internal Server Error", status_code=500)

    app.include_router(api_proxy_router)
    app.include_router(feeds_router)
    app.include_router(site_router)
    return app


_settings = Settings.from_env()
configure_logging(_settings.log_level)

app = create_app(_settings)


def run() -> None:
    uvicorn.run(app, host="0.0.0.0", port=_settings.port)
