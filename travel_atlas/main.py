"""
FastAPI Application Entry Point.
"""
import logging
import socket
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router
from .config import Settings, settings as default_settings
from .errors import TravelAtlasError
from .models.activity_catalog import validate_catalog
from .services import Services, build_services

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(config: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use; defaults to the environment-loaded settings
        services: Pre-built services (tests); otherwise built in the lifespan
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        validate_catalog()
        if not config.google_places_api_key:
            logger.warning("Google Places API key is not configured; place endpoints will fail")
        if not config.llm_api_key:
            logger.warning("OpenAI API key is not configured; ai-recommend will fail")

        owned = services is None
        app.state.services = services or build_services(config)
        try:
            yield
        finally:
            if owned:
                await app.state.services.aclose()

    app = FastAPI(
        title="Travel Atlas",
        description="Place search and AI travel recommendations for the travel atlas front-end",
        version="1.0.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "places_configured": bool(config.google_places_api_key),
            "llm_configured": bool(config.llm_api_key),
        }

    # Serve the built front-end if it exists
    frontend_dir = Path(config.frontend_dir)
    if frontend_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(frontend_dir), html=True), name="frontend")

    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Translate errors into ``{error, details?}`` bodies."""

    @app.exception_handler(TravelAtlasError)
    async def travel_atlas_error(request: Request, exc: TravelAtlasError):
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(status_code=500, content={"error": "Something broke!"})


def find_available_port(host: str, start_port: int, attempts: int) -> int:
    """First port from ``start_port`` that can be bound, trying ``attempts`` ports."""
    for port in range(start_port, start_port + max(attempts, 1)):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                logger.warning(f"Port {port} is in use, trying {port + 1}")
                continue
            return port
    raise RuntimeError(f"No free port in {start_port}-{start_port + attempts - 1}")


app = create_app()


def main() -> None:
    import uvicorn

    configure_logging(default_settings)
    port = find_available_port(
        default_settings.host, default_settings.port, default_settings.port_retry_attempts
    )
    logger.info(f"Server is running on port {port}")
    uvicorn.run(
        "travel_atlas.main:app",
        host=default_settings.host,
        port=port,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    main()
