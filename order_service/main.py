"""
FastAPI Application Entry Point - Order Service
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from order_service.config import settings
from order_service.database import init_db
from order_service.exceptions import format_validation_errors
from order_service.logging_config import configure_logging
from order_service.api import orders, health

configure_logging()
logger = structlog.get_logger(__name__)


def create_application() -> FastAPI:
    """Build the Order Service application"""
    app = FastAPI(
        title="Order Service",
        description="Order creation, order aggregates and order status management",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        # Malformed requests are client errors with a single message
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": format_validation_errors(exc.errors())},
        )

    # Include routers
    app.include_router(health.router)
    app.include_router(orders.router)

    # Prometheus metrics
    Instrumentator().instrument(app).expose(app)

    @app.on_event("startup")
    def startup_event():
        """Initialize database on startup"""
        logger.info("Starting service", service=settings.SERVICE_NAME, port=settings.SERVICE_PORT)
        init_db()
        logger.info("Database initialized")

    @app.on_event("shutdown")
    def shutdown_event():
        """Cleanup on shutdown"""
        logger.info("Shutting down service", service=settings.SERVICE_NAME)

    return app


app = create_application()
