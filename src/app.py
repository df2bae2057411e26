"""Poster Parlor order and review API.

Every collaborator is built explicitly by ``build_services`` and handed to
``create_app``; nothing is constructed at import time.

Usage:
    uvicorn app:application --factory --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from catalogue import Catalog, SqlCatalog, build_catalog
from inventory.ledger import InventoryLedger
from media import FakeMediaStore, MediaStore, ResourceCompensationSaga
from ordering.domain import ordering
from ordering.order.customers import CustomerDirectory, InMemoryCustomerDirectory
from ordering.order.placement import OrderCommitCoordinator
from ordering.order.pricing import PricingCalculator, PricingPolicy
from ordering.order.store import OrderStore, ProteanOrderStore
from ordering.order.validation import CatalogSnapshotValidator
from reviews.domain import reviews
from reviews.review.service import ReviewService
from reviews.review.store import ProteanReviewStore
from shared.config import Settings
from shared.logging import configure_logging, get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------
@dataclass
class Services:
    settings: Settings
    catalog: Catalog
    media: MediaStore
    saga: ResourceCompensationSaga
    orders: OrderCommitCoordinator
    reviews: ReviewService

    def close(self) -> None:
        self.saga.close()
        self.catalog.close()


def build_services(
    settings: Settings,
    catalog: Catalog | None = None,
    media: MediaStore | None = None,
    order_store: OrderStore | None = None,
    customers: CustomerDirectory | None = None,
) -> Services:
    """Wire the placement and review flows. Any collaborator can be supplied."""
    catalog = catalog if catalog is not None else build_catalog(settings.catalog_database_uri)
    media = media if media is not None else FakeMediaStore(folder=settings.media_folder)
    saga = ResourceCompensationSaga(media, max_workers=settings.upload_workers)

    coordinator = OrderCommitCoordinator(
        domain=ordering,
        validator=CatalogSnapshotValidator(catalog),
        pricing=PricingCalculator(PricingPolicy.from_settings(settings)),
        ledger=InventoryLedger(catalog),
        orders=order_store if order_store is not None else ProteanOrderStore(ordering),
        saga=saga,
        customers=customers if customers is not None else InMemoryCustomerDirectory(),
    )
    review_service = ReviewService(
        domain=reviews,
        reviews=ProteanReviewStore(reviews),
        saga=saga,
        catalog=catalog,
    )

    return Services(
        settings=settings,
        catalog=catalog,
        media=media,
        saga=saga,
        orders=coordinator,
        reviews=review_service,
    )


# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/reviews": reviews,
    "/products": reviews,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
def create_app(services: Services) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        services.close()
        logger.info("Services closed")

    app = FastAPI(
        title="Poster Parlor API",
        description="Order placement with inventory consistency, and product reviews",
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the correct Protean domain context for each request."""
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                response = await call_next(request)
            return response
        # No domain match: pass through (health check, docs)
        return await call_next(request)

    from ordering.api.routes import order_router
    from reviews.api.routes import product_review_router, review_router

    app.include_router(order_router)
    app.include_router(review_router)
    app.include_router(product_review_router)
    register_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(
            content={
                "status": "ok",
                "environment": services.settings.environment,
                "domains": {
                    "ordering": {"name": ordering.name},
                    "reviews": {"name": reviews.name},
                },
            }
        )

    return app


def application() -> FastAPI:
    """Factory for uvicorn: read settings, initialize the domains, build the app."""
    settings = Settings.from_env()
    configure_logging()

    ordering.init()
    reviews.init()

    catalog = build_catalog(settings.catalog_database_uri)
    if isinstance(catalog, SqlCatalog):
        catalog.create_schema()

    logger.info("Starting API", environment=settings.environment)
    return create_app(build_services(settings, catalog=catalog))
