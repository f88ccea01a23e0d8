"""FastAPI application entry point.

Offer Desk - buyer price offers with admin moderation, discount codes and
draft-order checkout on Shopify.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator, Awaitable, Callable
import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from offerdesk.routes import api_router
from offerdesk.schemas import ErrorDetail, ErrorResponse
from offerdesk.settings import get_settings
from offerdesk.stores.postgres import init_db, close_db, ping_db
from offerdesk.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    settings = get_settings()

    # Initialize database (skip in tests if no DB available)
    try:
        await init_db(settings)
        await ping_db()
        logger.info("Database connected")
    except Exception:
        logger.exception("Database init failed")

    # Initialize Redis (rate limiting is skipped without it)
    try:
        await init_redis(settings)
    except Exception:
        logger.exception("Redis init failed")

    yield

    # Shutdown
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Buyer price offers with admin moderation",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware: only allow-listed storefront origins get CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def security_headers(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # Admin pages answer 403/404/400 as plain text, without detail
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
        if request.url.path.startswith("/admin"):
            return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = ErrorResponse(
            error=ErrorDetail(
                code="INTERNAL_ERROR",
                message=str(exc) if settings.debug else "Internal server error",
            )
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    @app.get("/", response_class=HTMLResponse, include_in_schema=False)
    async def index() -> HTMLResponse:
        return HTMLResponse(
            '<!doctype html><meta charset="utf-8"><title>Offer Service</title>'
            "<style>body{font:14px system-ui;margin:40px;line-height:1.5}</style>"
            "<h2>Offer service is running</h2>"
            '<p>Health: <a href="/health">/health</a></p>'
            '<p>Admin: <a href="/admin/offers">/admin/offers</a> (needs ?key=)</p>'
        )

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "offerdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
