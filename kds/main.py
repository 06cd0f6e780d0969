"""
FastAPI Application Entry Point

Kitchen Display System - order lifecycle backend.

Endpoints:
    - GET /api/meta: Store name and today's business date
    - POST /api/orders: Create an order (front of house)
    - GET /api/orders: List orders, newest first, filtered by date/status
    - GET /api/orders/{id}: Get a single order
    - PATCH /api/orders/{id}: Apply a kitchen action (ACCEPT, DONE, CANCEL)
    - GET /api/summary: Daily summary for a business date
    - GET /api/export.csv: Daily CSV export
    - GET /health: System health check

Run:
    kds-server  (or: uvicorn kds.main:app --port 5050)

Version: 1.0.0
"""

import logging
import os
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from kds.core.config import Settings, get_settings, setup_logging
from kds.core.exceptions import NotFoundError, OrderError
from kds.models import Order
from kds.schemas import (
    ErrorResponse,
    HealthResponse,
    MetaResponse,
    OrderActionRequest,
    OrderActionResponse,
    OrderCreate,
    OrderCreateResponse,
    SummaryReport,
)
from kds.services import lifecycle, reporting
from kds.services.business_date import business_date
from kds.services.order_store import OrderStore

setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# DEPENDENCIES
# =============================================================================

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> OrderStore:
    return request.app.state.store


def order_id_param(order_id: str) -> int:
    """Path id as an integer; an id that is not a number matches no order."""
    try:
        return int(order_id)
    except ValueError:
        raise NotFoundError(f"Order #{order_id} not found")


def today(store: OrderStore) -> str:
    """Business date of the store clock's current instant."""
    return business_date(store.clock(), store.tz)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

router = APIRouter()


@router.get("/", tags=["Root"])
def root(settings: Settings = Depends(get_app_settings)) -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🌮 Welcome to {settings.restaurant_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "health": "/health",
    }


@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
def health_check(store: OrderStore = Depends(get_store)) -> HealthResponse:
    """Verify the data directory is writable and report the loaded order count."""
    data_dir = store.path.parent
    if data_dir.is_dir() and os.access(data_dir, os.W_OK):
        storage_status = "healthy"
    else:
        storage_status = f"unhealthy: {data_dir} is not writable"
        logger.error(f"Storage health check failed: {data_dir} is not writable")

    return HealthResponse(
        status="operational" if storage_status == "healthy" else "degraded",
        storage=storage_status,
        orders_loaded=len(store),
        data_file=str(store.path),
        timestamp=datetime.now(),
    )


@router.get("/api/meta", response_model=MetaResponse, tags=["Meta"])
def meta(
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_store),
) -> MetaResponse:
    """Store name and today's business date."""
    return MetaResponse(store_name=settings.restaurant_name, business_date_today=today(store))


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@router.post(
    "/api/orders",
    status_code=201,
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Create Order",
)
def create_order(
    order_data: OrderCreate,
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_store),
) -> OrderCreateResponse:
    """Create a NEW order from the front-of-house screen."""
    order = store.create(
        created_by=order_data.created_by or settings.default_created_by,
        order_type=order_data.order_type or settings.default_order_type,
        notes=order_data.notes or "",
        items=[item.model_dump() for item in order_data.items],
    )
    return OrderCreateResponse(id=order.id, status=order.status)


@router.get(
    "/api/orders",
    response_model=list[Order],
    tags=["Orders"],
    summary="List Orders",
)
def list_orders(
    date: Optional[str] = Query(None, description="Business date YYYY-MM-DD"),
    status: Optional[str] = Query(None, description="NEW, IN_PROGRESS, COMPLETED or CANCELED"),
    store: OrderStore = Depends(get_store),
) -> list[Order]:
    """Orders matching the filters, newest id first."""
    return store.list_orders(date=date, status=status)


@router.get(
    "/api/orders/{order_id}",
    response_model=Order,
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
def get_order(
    order_id: int = Depends(order_id_param),
    store: OrderStore = Depends(get_store),
) -> Order:
    """Get a specific order by ID."""
    return store.find_by_id(order_id)


@router.patch(
    "/api/orders/{order_id}",
    response_model=OrderActionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Advance Order Status",
)
def update_order_status(
    body: OrderActionRequest,
    order_id: int = Depends(order_id_param),
    store: OrderStore = Depends(get_store),
) -> OrderActionResponse:
    """Apply ACCEPT, DONE or CANCEL to an order."""
    status = lifecycle.apply_action(store, order_id, body.action)
    return OrderActionResponse(ok=True, status=status)


# =============================================================================
# REPORTING ENDPOINTS
# =============================================================================

@router.get("/api/summary", response_model=SummaryReport, tags=["Reports"])
def daily_summary(
    date: Optional[str] = Query(None, description="Business date, defaults to today"),
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_store),
) -> SummaryReport:
    """Counts, average prep time and money totals for one business date."""
    date = date or today(store)
    return reporting.summary(store.snapshot(), date, settings.tax_rate)


@router.get("/api/export.csv", tags=["Reports"], response_class=Response)
def export_csv(
    date: Optional[str] = Query(None, description="Business date, defaults to today"),
    settings: Settings = Depends(get_app_settings),
    store: OrderStore = Depends(get_store),
) -> Response:
    """Download the orders of one business date as CSV."""
    date = date or today(store)
    content = reporting.export_csv(store.snapshot(), date, settings.tax_rate)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="{reporting.export_filename(date)}"'
        },
    )


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(settings: Optional[Settings] = None, store: Optional[OrderStore] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (cached environment settings by default)
        store: Pre-built order store; built from settings at startup when omitted

    Returns:
        Configured FastAPI instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application startup and shutdown events.
        """
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {settings.app_name}")
        logger.info(f"   Version: {settings.app_version}")
        logger.info(f"   Environment: {settings.env_mode.value}")
        logger.info(f"   Debug: {settings.debug}")
        logger.info("=" * 60)

        app.state.store = store or OrderStore.from_settings(settings)
        logger.info(f"✅ Order store ready: {len(app.state.store)} orders ({app.state.store.path})")

        yield  # Application runs

        logger.info("Shutting down...")
        app.state.store.close()
        logger.info("✅ Cleanup complete")

    app = FastAPI(
        title=settings.app_name,
        description="Order lifecycle backend for a single-location restaurant kitchen display.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    register_exception_handlers(app, settings)
    return app


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _error(status_code: int, error: str, detail: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail).model_dump(by_alias=True),
    )


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Map the order error taxonomy and request validation onto JSON errors."""

    @app.exception_handler(OrderError)
    async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = []
        for err in exc.errors():
            location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
            messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
        logger.info(f"{request.method} {request.url.path} invalid request: {messages}")
        return _error(400, "Invalid request", "; ".join(messages))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return _error(
            500,
            "Internal Server Error",
            str(exc) if settings.debug else "An unexpected error occurred",
        )


app = create_app()


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run("kds.main:app", host=settings.api_host, port=settings.api_port, reload=settings.debug)


if __name__ == "__main__":
    run()
