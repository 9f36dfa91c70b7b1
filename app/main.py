from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.api.v1.router import api_router
from app.core.exceptions import WarehouseError, ConflictError, ValidationError
from app.database import init_db, async_session_factory


logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup creates any missing tables; there is nothing to release on shutdown
    beyond the engine's pool.
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    yield

    logger.info("Shutting down...")


OPENAPI_TAGS = [
    {"name": "Inbound", "description": "Goods receipt notes and dock slots"},
    {"name": "Outbound", "description": "Picklists, pickers, batches, consolidated picks and routes"},
    {"name": "Inventory", "description": "Stock ledger, alerts, locations, cycle counts, bin moves and reorders"},
    {"name": "Transfers", "description": "Site-to-site transfers with tracking telemetry"},
    {"name": "Quality Control", "description": "Inspections, temperature, samples, rejections and compliance"},
    {"name": "Workforce", "description": "Staff, shift schedules, attendance, leave and training"},
    {"name": "Exceptions", "description": "Operational exceptions and their resolution"},
    {"name": "Equipment", "description": "Handheld devices and machinery"},
    {"name": "Utilities", "description": "Zones, access logs, SKU upload and overview metrics"},
]

API_DESCRIPTION = """
## Warehouse Operations API

Every JSON response is wrapped as `{"success": true, "data": ...}`.

### Concurrency

Mutating endpoints accept `If-Match: <version>`. A stale version is rejected
with **409 Conflict**. Stock adjustments also accept `Idempotency-Key`.

### Error Codes

| Code | Type |
|------|------|
| 400 | ValidationError |
| 401 | Invalid or expired token |
| 404 | NotFound |
| 409 | Conflict |
| 422 | InvalidTransition |
| 500 | Internal Server Error |
"""

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


def _error_response(request: Request, exc: WarehouseError) -> JSONResponse:
    content = exc.to_dict()
    content["path"] = str(request.url.path)
    content["method"] = request.method
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(WarehouseError)
async def warehouse_error_handler(request: Request, exc: WarehouseError):
    logger.warning(f"{request.method} {request.url.path} rejected: {exc.kind}: {exc.message}")
    return _error_response(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters share the ValidationError shape."""
    errors = exc.errors()
    fields = [".".join(str(p) for p in err.get("loc", ()) if p != "body") for err in errors]
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.warning(f"{request.method} {request.url.path} rejected: ValidationError: {message}")
    return _error_response(
        request,
        ValidationError(message, {"fields": [f for f in fields if f], "errors": len(errors)}),
    )


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    """A concurrent writer bumped the version between our read and our flush."""
    return _error_response(request, ConflictError("Entity was modified concurrently, reload and retry"))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """A concurrent writer inserted the same unique value (business number, key) first."""
    logger.warning(f"{request.method} {request.url.path} rejected: unique constraint: {exc.orig}")
    return _error_response(request, ConflictError("Record was created concurrently, reload and retry"))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "type": "InternalError",
            "path": str(request.url.path),
            "method": request.method,
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except Exception as e:
        logger.warning(f"Health check database probe failed: {e}")
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
    }
