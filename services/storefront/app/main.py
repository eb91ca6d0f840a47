from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging

from app.config import settings
from app.db.database import init_db
from app.db.legacy import dispose_legacy_engine
from app.api import categories, checkout, coupons, health, inventory_sync, tax

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Storefront Service...")
    await init_db()
    if settings.legacy_database_url:
        logger.info("Legacy inventory source configured")
    else:
        logger.warning("LEGACY_DATABASE_URL not set; inventory sync will fail until it is configured")
    logger.info("Storefront Service started successfully")
    yield
    # Shutdown
    logger.info("Shutting down Storefront Service...")
    dispose_legacy_engine()


app = FastAPI(
    title="Storefront Service",
    description="""
    Storefront back office and checkout pricing.

    **Features:**
    - Legacy inventory sync (sites, categories, products, stock) with streamed progress
    - Category item counts
    - Coupon validation and redemption
    - Default tax rate and tax calculation
    - Checkout quotes and order placement
    """,
    version=health.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# Allowed origins for CORS
ALLOWED_ORIGINS = [
    "https://admin.local",
    "https://shop.local",
    "http://admin.local",
    "http://shop.local",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
    max_age=3600,
)


# Global exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them properly"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_type": type(exc).__name__,
            "message": str(exc)
        }
    )


# Validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    logger.warning(
        f"Validation error: {exc.errors()}",
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())}
    )


# Include routers
app.include_router(health.router)
app.include_router(inventory_sync.router, prefix="/api/storefront")
app.include_router(categories.router, prefix="/api/storefront")
app.include_router(coupons.router, prefix="/api/storefront")
app.include_router(tax.router, prefix="/api/storefront")
app.include_router(checkout.router, prefix="/api/storefront")


@app.get("/")
async def root():
    return {"service": settings.app_name, "version": health.SERVICE_VERSION}
