"""
Main FastAPI application.

WHY: This is the entry point for the application. It configures middleware,
routes, exception handlers, and other application-level concerns.
"""

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from support_api.core.config import settings
from support_api.core.exceptions import AppException
from support_api.core.exception_handlers import (
    app_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)
from support_api.db.session import dispose_engine
from support_api.db.ticket_store import TicketStore, get_ticket_store
from support_api.middleware import RequestContextMiddleware
from support_api.api import tickets, updates


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    WHY: Factory pattern allows easier testing with different configurations.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Support ticket intake, notification and status updates",
        version=settings.VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Register exception handlers
    # WHY: JSON endpoints answer failures with {"success": false, ...}
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # Request ids and access logging for every request
    app.add_middleware(RequestContextMiddleware)

    # Configure CORS
    # WHY: The support widget is embedded on other sites and posts tickets here
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check(store: TicketStore = Depends(get_ticket_store)) -> dict:
        """
        Health check endpoint.

        Reports which ticket store is active, so a fall back to memory is
        visible to monitoring.
        """
        return {
            "status": "healthy",
            "version": settings.VERSION,
            "storage": store.name,
            "external_store": "enabled" if settings.external_store_enabled else "disabled",
        }

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close pooled connections to the external database."""
        await dispose_engine()

    # Root endpoint
    @app.get("/", tags=["root"])
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "status": "PUREIOT Support API is running",
            "version": settings.VERSION,
            "endpoints": {
                "submitTicket": "POST /api/submit-ticket",
                "getTickets": "GET /api/tickets/:userId",
                "updateTicket": "GET /update/:ticketId",
                "health": "GET /health",
            },
        }

    app.include_router(tickets.router, prefix="/api")
    app.include_router(updates.router)

    return app


# Create app instance
# WHY: Creating the app instance here allows it to be imported by uvicorn
app = create_app()


if __name__ == "__main__":
    import uvicorn

    # WHY: This allows running the app directly with `python -m support_api.main`
    # for development. In production, use `uvicorn support_api.main:app` directly.
    uvicorn.run(
        "support_api.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )
