"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from starlette.middleware.base import RequestResponseEndpoint

from api.dependencies import parse_request_body
from api.middleware import ErrorHandlerMiddleware
from api.routers import bookmarks, health, users
from core.config import Settings, get_settings
from db.session import build_engine, build_session_factory

logger = logging.getLogger(__name__)

ROOT_REDIRECT = "/api/bookmarks"

# Controllers mounted under a path prefix, matched in order (first prefix wins)
CONTROLLERS: list[tuple[str, APIRouter]] = [
    ("/api/bookmarks", bookmarks.router),
    ("/api/users", users.router),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings: Settings = app.state.settings
    logger.info("Bookmarks API listening on port %s", app_settings.port)

    yield

    # Shutdown: release pooled database connections
    await app.state.engine.dispose()
    logger.info("Bookmarks API on port %s stopped", app_settings.port)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the application from explicit settings."""
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title="Bookmarks API",
        description="REST endpoints for bookmarks and the users who own them.",
        version="0.1.0",
        lifespan=lifespan,
        # Body parsing runs for every routed request, ahead of the handler
        dependencies=[Depends(parse_request_body)],
    )
    app.state.settings = app_settings
    app.state.engine = build_engine(app_settings.database_url)
    app.state.session_factory = build_session_factory(app.state.engine)

    # Error handler sits inside CORS so error responses carry CORS headers too
    app.add_middleware(ErrorHandlerMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if "*" in app_settings.cors_origins:

        @app.middleware("http")
        async def allow_any_origin(
            request: Request, call_next: RequestResponseEndpoint,
        ) -> Response:
            """Send the wildcard allow-origin header even when the request has no Origin."""
            response = await call_next(request)
            response.headers.setdefault("access-control-allow-origin", "*")
            return response

    @app.get("/", include_in_schema=False)
    async def redirect_root() -> RedirectResponse:
        """Send the bare root to the bookmarks collection."""
        return RedirectResponse(ROOT_REDIRECT, status_code=302)

    app.include_router(health.router)
    for prefix, router in CONTROLLERS:
        app.include_router(router, prefix=prefix)

    return app

