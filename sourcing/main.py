# sourcing/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from sourcing.core.config import get_settings
from sourcing.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from sourcing.models import company as _company_models  # noqa: F401
from sourcing.models import product as _product_models  # noqa: F401
from sourcing.models import cart as _cart_models  # noqa: F401
from sourcing.models import address as _address_models  # noqa: F401
from sourcing.models import quotation as _quotation_models  # noqa: F401
from sourcing.models import order as _order_models  # noqa: F401
from sourcing.models import payment as _payment_models  # noqa: F401
from sourcing.models import shipment as _shipment_models  # noqa: F401
from sourcing.models import magic_link as _magic_link_models  # noqa: F401

# Routers
from sourcing.routers.products import router as products_router
from sourcing.routers.cart import router as cart_router
from sourcing.routers.addresses import router as addresses_router
from sourcing.routers import orders, payments, profiles, quotations, shipments
from sourcing.routers.magic_links import router as magic_links_router
from sourcing.routers.portal import router as portal_router

settings = get_settings()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to Supabase Postgres...")
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error(f"Startup: DB connection FAILED: {e}")
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed-in profile: /api/me
app.include_router(profiles.me_router, prefix=settings.API_V1_STR)

# Public catalog: /api/shop/{slug}/products
app.include_router(products_router, prefix=settings.API_V1_STR)

# Client storefront: /api/client/{slug}/...
app.include_router(cart_router, prefix=settings.API_V1_STR)
app.include_router(addresses_router, prefix=settings.API_V1_STR)
app.include_router(orders.client_router, prefix=settings.API_V1_STR)
app.include_router(quotations.client_router, prefix=settings.API_V1_STR)
app.include_router(payments.client_router, prefix=settings.API_V1_STR)
app.include_router(shipments.client_router, prefix=settings.API_V1_STR)

# Staff back office: /api/store/{slug}/...
app.include_router(orders.store_router, prefix=settings.API_V1_STR)
app.include_router(quotations.store_router, prefix=settings.API_V1_STR)
app.include_router(payments.store_router, prefix=settings.API_V1_STR)
app.include_router(shipments.store_router, prefix=settings.API_V1_STR)
app.include_router(magic_links_router, prefix=settings.API_V1_STR)
app.include_router(profiles.store_router, prefix=settings.API_V1_STR)

# Magic-link portal: /api/c/{token}/...
app.include_router(portal_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "sourcing-backend"}
