"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hr_payroll import __version__
from hr_payroll.api.routes import (
    audit_logs_router,
    health_router,
    payrolls_router,
    roles_router,
    salary_structures_router,
)
from hr_payroll.config import Settings, get_settings
from hr_payroll.database import create_schema, dispose_db, init_db
from hr_payroll.errors import (
    Forbidden,
    InvalidState,
    NotFound,
    PayrollError,
    Unauthorized,
    ValidationError,
)
from hr_payroll.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS: dict[type[PayrollError], int] = {
    Unauthorized: status.HTTP_401_UNAUTHORIZED,
    Forbidden: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InvalidState: status.HTTP_409_CONFLICT,
}


def status_for(exc: PayrollError) -> int:
    """HTTP status for a domain error, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        engine, _ = init_db()
        if settings.create_tables:
            await create_schema(engine)
        yield
        await dispose_db()

    app = FastAPI(
        title="HR Payroll API",
        description="Salary structures, payroll processing and approvals",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Render domain errors with their stable code."""
        return JSONResponse(
            status_code=status_for(exc),
            content={
                "detail": exc.message,
                "code": exc.code,
                "context": exc.context or None,
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(roles_router, prefix="/api/v1")
    app.include_router(salary_structures_router, prefix="/api/v1")
    app.include_router(payrolls_router, prefix="/api/v1")
    app.include_router(audit_logs_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
