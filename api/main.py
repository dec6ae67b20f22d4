"""
FastAPI application initialization and configuration.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import Settings, settings
from database.engine import Database
from api.routes import health
from api.routes.v1 import applications, jobs, users
from api.services.recruitment import RecruitmentService

from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    AuthenticationMiddleware,
)

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        config: Settings to use (defaults to the global settings)
        database: Storage handle to use instead of one built from
            ``DATABASE_URL``

    Returns:
        Configured FastAPI application
    """
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create the shared storage handle and service object."""
        logger.info(f"Starting {config.app_name} in {config.app_env} environment")

        db = database or Database(config=config)
        # Startup continues when the database is down; /ready reports it
        await db.connect()
        app.state.database = db
        app.state.service = RecruitmentService(db)

        yield

        logger.info(f"Shutting down {config.app_name}")
        await db.close()

    app = FastAPI(
        title=config.app_name,
        description="Recruitment API: applications, decisions and job listings",
        version="0.1.0",
        docs_url="/docs" if config.debug else None,
        redoc_url="/redoc" if config.debug else None,
        lifespan=lifespan,
    )

    setup_error_handlers(app)

    # Middleware executes in reverse order of registration
    # 1. Structured logging (innermost, sees the caller identity)
    app.add_middleware(
        StructuredLoggingMiddleware,
        log_request_body=config.log_request_body,
        log_response_body=config.log_response_body,
        max_body_size=config.log_max_body_size,
    )

    # 2. Authentication (rejects protected requests without a valid token)
    app.add_middleware(
        AuthenticationMiddleware,
        jwt_secret=config.jwt_secret,
        jwt_algorithm=config.jwt_algorithm,
        cookie_name=config.auth_cookie_name,
    )

    # 3. Error handling (catches everything raised below it)
    app.add_middleware(
        ErrorHandlingMiddleware,
        debug=config.debug,
    )

    # 4. CORS (outermost, so error responses carry CORS headers too)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # API v1 routes
    app.include_router(users.router, prefix=config.api_v1_prefix)
    app.include_router(jobs.router, prefix=config.api_v1_prefix)
    app.include_router(applications.router, prefix=config.api_v1_prefix)

    return app


# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
