"""FastAPI main application."""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import os
import logging
import traceback

from media_relay.config import Config
from media_relay.container import Container, build_container
from media_relay.core.exceptions import InvalidTransitionError, RequestNotFoundError
from media_relay.db.database import get_session_factory, init_db
from media_relay.db.seed import sync_from_config
from media_relay.api.routes import router

# Setup logging (will be configured from config after init)
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def find_config_path() -> str:
    """Support both /config/config.yaml (Docker) and ./config/config.yaml (local dev)."""
    config_path = os.getenv("CONFIG_PATH", "/config/config.yaml")
    possible_paths = [
        config_path,
        "/config/config.yaml",
        "./config/config.yaml",
        os.path.join(os.path.dirname(__file__), "..", "config", "config.yaml"),
    ]

    for path in possible_paths:
        if os.path.exists(path):
            return path

    error_msg = f"""
ERROR: Configuration file not found!

Tried the following paths:
{chr(10).join(f'  - {p}' for p in possible_paths)}

Please ensure:
1. The config directory is mounted in Docker: -v ./config:/config:ro
2. The file config/config.yaml exists (copy from config.example.yaml)
3. The CONFIG_PATH environment variable points to the correct file
"""
    logger.error(error_msg)
    raise FileNotFoundError(error_msg)


def create_app(container: Container) -> FastAPI:
    """Construit l'application autour d'un container déjà assemblé."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if container.config.monitoring.enabled:
            container.scheduler.start()
        else:
            logger.info("Monitoring is disabled")
        yield
        container.scheduler.stop()

    app = FastAPI(title="Media Relay", version="1.0.0", lifespan=lifespan)
    app.state.container = container
    app.include_router(router)

    @app.exception_handler(RequestNotFoundError)
    async def not_found_handler(request: Request, exc: RequestNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    # Global exception handler for unhandled exceptions
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions with detailed logging."""
        logger.exception(f"Unhandled exception in {request.method} {request.url}")
        return JSONResponse(
            status_code=500,
            content={
                "error": str(exc),
                "type": exc.__class__.__name__,
                "message": f"Internal server error: {str(exc)}",
                "path": str(request.url),
                "method": request.method,
                "traceback": traceback.format_exc()
            }
        )

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "Media Relay API"}

    return app


def bootstrap() -> FastAPI:
    """Point d'entrée uvicorn (--factory): config, base, synchro des services."""
    config_path = find_config_path()
    logger.info(f"Loading configuration from: {config_path}")
    config = Config.load_from_yaml(config_path)
    logging.getLogger().setLevel(config.app.log_level.upper())

    try:
        init_db(config.app.data_dir, config.app.database_url)
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.error(f"Data directory: {config.app.data_dir}")
        logger.error("Please ensure:")
        logger.error("1. The data volume is mounted: -v ./data:/data")
        logger.error("2. The directory has write permissions")
        logger.error("3. The DATA_DIR environment variable points to a writable path")
        raise

    session_factory = get_session_factory()
    container = build_container(config, session_factory)
    sync_from_config(session_factory, config, container.encryption)
    return create_app(container)
