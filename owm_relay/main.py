"""FastAPI application setup for the OpenWeather relay."""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .api import router as api_router
from .cache import FreshnessCache
from .gateway import RelayGateway
from .sessions import SessionRelay
from .upstream import UpstreamClient
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="relay/main")


async def _bad_request(request: Request, exc: RequestValidationError):
    """Malformed request bodies get the same `{error}` shape as other client errors."""
    errors = exc.errors()
    message = errors[0].get("msg", "bad request") if errors else "bad request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


async def _server_error(request: Request, exc: Exception):
    logger.exception("Unhandled error serving %s", request.url.path)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "server error"})


def create_app(
    settings: config.Settings | None = None,
    upstream: UpstreamClient | None = None,
    cache: FreshnessCache | None = None,
) -> FastAPI:
    """Build the app with its own cache, gateway, and session relay."""
    settings = settings or config.settings
    upstream = upstream or UpstreamClient(timeout=settings.upstream_timeout_seconds)

    app = FastAPI(title="OpenWeather Relay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.gateway = RelayGateway.from_settings(settings, upstream=upstream, cache=cache)
    app.state.session_relay = SessionRelay.from_settings(settings, upstream=upstream)

    if not settings.has_credential:
        logger.warning("OPENWEATHER_KEY is not set; every relayed request will fail with 500")

    app.add_exception_handler(RequestValidationError, _bad_request)
    app.add_exception_handler(Exception, _server_error)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()
