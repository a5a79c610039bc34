from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from adaptonia.api.errors import error_response, http_exception_handler, validation_exception_handler
from adaptonia.api.v1.api import api_router
from adaptonia.core.config import settings
from adaptonia.core.database_utils import check_database, get_db_session
from adaptonia.db.base import init_db
from adaptonia.db.session import engine

handlers = [logging.StreamHandler(sys.stdout)]
if settings.LOG_FILE:
    handlers.append(logging.FileHandler(settings.LOG_FILE))

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=handlers,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting up {settings.PROJECT_NAME} ({settings.ENVIRONMENT.value})...")
    try:
        init_db(engine)
        logger.info("Database tables verified")
    except Exception as e:
        logger.error(f"Could not initialize database tables: {e}")
        raise

    if not settings.CRON_SECRET:
        logger.warning("CRON_SECRET is not set; scheduled email runs will be skipped")

    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}...")


async def general_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled exceptions"""
    logger.error(f"Unhandled exception: {exc} - {request.url}")
    return error_response(500, "Internal server error", str(exc))


def create_application() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Adaptonia - goal reminder scheduling and email delivery",
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )
    logger.info(f"CORS configured for {settings.ENVIRONMENT.value} environment with origins: {settings.allowed_cors_origins}")

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    if settings.METRICS_ENABLED:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
        logger.info("Prometheus metrics exposed at /metrics")

    @app.get("/health", tags=["Health Check"])
    async def health_check():
        """Health check endpoint"""
        with get_db_session() as db:
            db_status = "healthy" if check_database(db) else "unhealthy"
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "project": settings.PROJECT_NAME,
            "database": db_status,
        }

    return app


# Create the FastAPI app instance
app = create_application()


if __name__ == "__main__":
    uvicorn.run(
        "adaptonia.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
