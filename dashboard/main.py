from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dashboard.core.logging import setup_logging
from dashboard.core.config import get_settings
from dashboard.core.exceptions import AppException, app_exception_handler
from dashboard.infrastructure.db.connection import database_manager
from dashboard.interfaces.http.routes import api_router
from dashboard.schemas.base import HealthCheckSchema
from dashboard.utils.logger import get_logger

import uvicorn


settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.project_name} {settings.version}")

    try:
        database_manager.connect()
        logger.info("Database connection established")

        yield

    finally:
        # Shutdown
        logger.info("Shutting down...")
        database_manager.disconnect()
        logger.info("Database connection closed")


def create_application() -> FastAPI:
    app = FastAPI(
        title=settings.project_name,
        description="Bulk upload ingestion and export API",
        version=settings.version,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(AppException, app_exception_handler)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle general exceptions."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_SERVER_ERROR",
                    "message": str(exc) if settings.debug else "Internal server error occurred",
                }
            },
        )

    # Health check endpoint
    @app.get("/health", response_model=HealthCheckSchema)
    async def health_check() -> HealthCheckSchema:
        """Health check endpoint."""
        state = "healthy" if database_manager.health_check() else "unhealthy"
        return HealthCheckSchema(status=state, version=settings.version, database=state)

    app.include_router(api_router)

    return app


app = create_application()


def main():
    uvicorn.run(
        "dashboard.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
        access_log=True,
        server_header=False,
        date_header=False,
    )


if __name__ == "__main__":
    main()
