from contextlib import asynccontextmanager
import logging
import traceback

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from billbook.config import settings
from billbook.api.v1.router import api_router
from billbook.core.exceptions import (
    BillbookError,
    ChallanLockedError,
    NotAuthenticatedError,
    NotFoundError,
    ValidationError,
)
from billbook.database import init_db, async_session_factory


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create missing tables
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    yield

    logger.info("Shutting down...")


# OpenAPI Tags with detailed descriptions
OPENAPI_TAGS = [
    {"name": "Customers", "description": "Customer records, carried-forward balance and ledger"},
    {"name": "Items", "description": "Item catalog with HSN codes and default rates"},
    {"name": "Delivery Challans", "description": "Goods dispatched ahead of billing"},
    {"name": "Bills", "description": "Bills converted from challans, with flat-rate GST and round-off"},
    {"name": "Invoices", "description": "GST tax invoices with per-line CGST/SGST"},
    {"name": "Document Sequences", "description": "Financial-year document numbering checks"},
]

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Delivery challans, bills and GST invoices for a small trading business.",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


def error_status_code(exc: BillbookError) -> int:
    if isinstance(exc, ChallanLockedError):
        return 409
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, NotAuthenticatedError):
        return 401
    return 500


def error_response(request: Request, status_code: int, content: dict) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)

    # Add CORS headers if origin is allowed
    origin = request.headers.get("origin", "")
    if origin in settings.cors_origins_list or "*" in settings.cors_origins_list:
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = "*"
        response.headers["Access-Control-Allow-Headers"] = "*"

    return response


@app.exception_handler(BillbookError)
async def billbook_exception_handler(request: Request, exc: BillbookError):
    """Map billing core errors to HTTP status codes."""
    status_code = error_status_code(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.error_code} {exc.message}")

    return error_response(request, status_code, {
        "error": exc.message,
        "error_code": exc.error_code,
        "type": type(exc).__name__,
        "path": str(request.url.path),
        "method": request.method,
        "details": exc.details,
    })


# Global exception handler for anything the services did not classify
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    # Preserve HTTP status code for HTTPException, default to 500 for others
    if isinstance(exc, HTTPException):
        status_code = exc.status_code
        error_message = exc.detail
    else:
        status_code = 500
        error_message = str(exc)
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")

    error_detail = {
        "error": error_message,
        "type": type(exc).__name__,
        "path": str(request.url.path),
        "method": request.method,
    }
    if settings.DEBUG:
        error_detail["traceback"] = traceback.format_exc()

    return error_response(request, status_code, error_detail)


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    from sqlalchemy import text
    from datetime import datetime, timezone

    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    # Check database connectivity
    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except Exception as e:
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status
