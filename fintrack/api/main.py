"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from fintrack.api.middleware import RequestIDMiddleware, MetricsMiddleware
from fintrack.api.v1 import budgets, fraud, goals, insights, transactions, users
from fintrack.infrastructure.database.models import Base
from fintrack.infrastructure.database.session import engine
from fintrack.infrastructure.datasets.loader import DatasetPatternStore, initialize_dataset_patterns
from fintrack.infrastructure.observability.logging import setup_logging
from fintrack.infrastructure.observability.metrics import dataset_patterns_gauge
from fintrack.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and warm the dataset pattern cache before serving"""
    Base.metadata.create_all(bind=engine)

    store: DatasetPatternStore = app.state.dataset_store
    if not store.loaded:
        try:
            initialize_dataset_patterns(store)
        except Exception as e:
            # Startup continues without dataset patterns
            logging.error(f"Dataset pattern initialization failed: {e}", extra={"step": "dataset_init"})

    patterns = store.get()
    dataset_patterns_gauge.set(len(patterns.patterns) if patterns else 0)
    yield


def create_app(dataset_store: Optional[DatasetPatternStore] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinTrack",
        description="Personal finance tracking with fraud detection and financial health scoring",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.dataset_store = dataset_store or DatasetPatternStore()

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
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(budgets.router, prefix="/v1", tags=["budgets"])
    app.include_router(goals.router, prefix="/v1", tags=["goals"])
    app.include_router(insights.router, prefix="/v1", tags=["insights"])
    app.include_router(fraud.router, prefix="/v1", tags=["fraud"])

    return app


app = create_app()
