import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .config import Settings
from .errors import GatewayError
from .gateway import Gateway
from .log import configure_logging
from .providers import Provider, build_provider
from .routes import health_router, router

logger = logging.getLogger(__name__)


async def gateway_error_handler(request: Request, exc: GatewayError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {message}"})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None,
               provider: Optional[Provider] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    provider = provider or build_provider(settings)

    app = FastAPI(
        title="YouTube Downloader API",
        description="Fetch YouTube video info and stream video or audio downloads",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.gateway = Gateway(provider, settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    app.include_router(health_router)

    index_file = settings.static_dir / "index.html"
    if index_file.is_file():
        app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")

        @app.get("/", include_in_schema=False)
        async def root():
            return FileResponse(index_file)
    else:
        @app.get("/", include_in_schema=False)
        async def root():
            """Redirect to docs"""
            return RedirectResponse(url="/docs")

    logger.info("Using %s provider", getattr(provider, "name", type(provider).__name__))
    return app
