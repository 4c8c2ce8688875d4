"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from banksim.api.middleware import MetricsMiddleware, RequestIDMiddleware
from banksim.api.v1 import catalog, clients, operations, slots
from banksim.config import settings
from banksim.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Bank Simulation",
        description="Time-driven banking simulation: game clock, payroll, rent, spending and reconciliation",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(slots.router, prefix="/v1", tags=["slots"])
    app.include_router(clients.router, prefix="/v1", tags=["clients"])
    app.include_router(operations.router, prefix="/v1", tags=["operations"])
    app.include_router(catalog.router, prefix="/v1", tags=["catalog"])

    return app


app = create_app()
