"""
FastAPI application factory and API package.

Run with:
    uvicorn rice_storefront.api:app --reload --port 8000

Or via the CLI:
    python -m rice_storefront serve
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from rice_storefront.config import get_settings
from rice_storefront.api.routes import (
    admin_router,
    cart_router,
    catalog_router,
    discount_router,
    health_router,
    order_router,
    pricing_router,
)
from rice_storefront.persistence import DocumentNotFound, DocumentStore, InMemoryDocumentStore
from rice_storefront.pricing import PricingValidationError
from rice_storefront.services import (
    AuditService,
    DiscountCodeError,
    InvalidStatusTransition,
    LoyaltyService,
    OrderService,
)

logger = logging.getLogger(__name__)


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """Application factory — create and configure the FastAPI instance."""
    settings = get_settings()

    application = FastAPI(
        title="Rice Storefront API",
        description="Tiered pricing, checkout and order management for the rice storefront",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One service graph per app; tests pass their own store
    store = store or InMemoryDocumentStore()
    loyalty = LoyaltyService(store, settings)
    application.state.store = store
    application.state.order_service = OrderService(store, AuditService(settings.audit_max_entries), loyalty)

    application.include_router(health_router, tags=["Health"])
    application.include_router(catalog_router, prefix="/api/products", tags=["Catalog"])
    application.include_router(pricing_router, prefix="/api/pricing", tags=["Pricing"])
    application.include_router(cart_router, prefix="/api/cart", tags=["Cart"])
    application.include_router(order_router, prefix="/api/orders", tags=["Orders"])
    application.include_router(discount_router, prefix="/api/discounts", tags=["Discounts"])
    application.include_router(admin_router, prefix="/api/admin", tags=["Admin"])

    _register_error_handlers(application)

    logger.info(f"{settings.app_name} API ready")
    return application


def _register_error_handlers(application: FastAPI) -> None:
    @application.exception_handler(PricingValidationError)
    async def pricing_validation_error(request: Request, exc: PricingValidationError):
        return JSONResponse(status_code=422, content={"error": exc.kind, "message": exc.message})

    @application.exception_handler(InvalidStatusTransition)
    async def invalid_transition(request: Request, exc: InvalidStatusTransition):
        return JSONResponse(
            status_code=422,
            content={"error": "invalid_status_transition", "message": str(exc)},
        )

    @application.exception_handler(DiscountCodeError)
    async def discount_code_error(request: Request, exc: DiscountCodeError):
        return JSONResponse(status_code=422, content={"error": "invalid_discount_code", "message": str(exc)})

    @application.exception_handler(DocumentNotFound)
    async def not_found(request: Request, exc: DocumentNotFound):
        return JSONResponse(
            status_code=404,
            content={"error": "not_found", "message": f"{exc.collection} {exc.doc_id} not found"},
        )


# Module-level instance for `uvicorn rice_storefront.api:app`
app = create_app()
