"""
FastAPI application initialization for the Supply Chain Partners API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from supply_chain_partners.api.routes import router
from supply_chain_partners.config import get_settings
from supply_chain_partners.domain.errors import (
    ConflictError,
    DomainError,
    ResourceNotFound,
    ServiceUnavailable,
    StorageError,
    ValidationFailed,
)
from supply_chain_partners.observability.middleware import RequestIdAndTimingMiddleware
from supply_chain_partners.observability.rate_limiter import setup_rate_limiter
from supply_chain_partners.services.reconciliation import ReconciliationService
from supply_chain_partners.services.relationship_service import RelationshipService
from supply_chain_partners.services.security import validate_request_size
from supply_chain_partners.store.arango import connect_database
from supply_chain_partners.store.company_directory import ArangoCompanyDirectory
from supply_chain_partners.store.relationship_store import ArangoRelationshipStore
from supply_chain_partners.utils.logging import setup_logging

app_logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_dir)
    app_logger.info("Starting Supply Chain Partners API (lifespan init)")
    db = connect_database(settings)
    store = ArangoRelationshipStore(db, settings.partners_collection)
    store.ensure_schema()
    directory = ArangoCompanyDirectory(db, settings.companies_collection)

    app.state.settings = settings
    app.state.relationship_service = RelationshipService(store, directory)
    app.state.reconciliation_service = ReconciliationService(store, directory)
    try:
        yield
    finally:
        app_logger.info("Shutting down Supply Chain Partners API (lifespan cleanup)")


app = FastAPI(
    title=settings.app_name,
    description="Bidirectional business-partner relationships between supply-chain companies",
    version="1.0.0",
    lifespan=lifespan,
)

cors_origins = (
    settings.cors_allowed_origins
    if settings.production_mode and settings.cors_allowed_origins
    else settings.cors_allow_origins
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_rate_limiter(app)

app.include_router(router)

app.add_middleware(RequestIdAndTimingMiddleware)


@app.middleware("http")
async def validate_request_size_middleware(request: Request, call_next):
    """Validate request body size before processing."""
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            validate_request_size(int(content_length), settings.max_request_size_mb)
        except ValueError as e:
            request_id = getattr(request.state, "request_id", "unknown")
            app_logger.warning(f"Request too large: {e}", extra={"request_id": request_id})
            return JSONResponse(
                status_code=413,
                content={
                    "error": f"Request body too large. Maximum size: {settings.max_request_size_mb}MB",
                    "request_id": request_id,
                },
            )
    return await call_next(request)


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")
    return JSONResponse(status_code=status_code, content={"error": message, "request_id": request_id})


# Domain exception handlers -> HTTP mapping
@app.exception_handler(ResourceNotFound)
async def handle_not_found(request: Request, exc: ResourceNotFound):
    app_logger.info(f"Resource not found: {exc}", extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 404, str(exc) or "The requested resource was not found.")


@app.exception_handler(ValidationFailed)
async def handle_validation(request: Request, exc: ValidationFailed):
    app_logger.warning(f"Validation failed: {exc}", extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 422, str(exc) or "The request data is invalid. Please check your input.")


@app.exception_handler(RequestValidationError)
async def handle_request_validation(request: Request, exc: RequestValidationError):
    """Malformed bodies and query strings get the same error shape as domain validation."""
    problems = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())[1:]) or "request"
        problems.append(f"{field}: {err.get('msg')}")
    app_logger.warning(f"Request validation failed: {problems}", extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 422, "; ".join(problems) or "The request data is invalid. Please check your input.")


@app.exception_handler(ConflictError)
async def handle_conflict(request: Request, exc: ConflictError):
    app_logger.warning(f"Conflict: {exc}", extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 409, str(exc) or "A conflict occurred while processing your request.")


@app.exception_handler(ServiceUnavailable)
async def handle_service_unavailable(request: Request, exc: ServiceUnavailable):
    app_logger.error(f"Service unavailable: {exc}", exc_info=True, extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 503, "Service temporarily unavailable. Please try again later.")


@app.exception_handler(StorageError)
async def handle_storage_error(request: Request, exc: StorageError):
    app_logger.error(f"Storage error: {exc}", exc_info=True, extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 500, "An unexpected error occurred. Please try again later.")


@app.exception_handler(DomainError)
async def handle_domain_error(request: Request, exc: DomainError):
    app_logger.error(f"Domain error: {exc}", exc_info=True, extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 400, "An error occurred while processing your request.")


@app.exception_handler(ValueError)
async def handle_value_error(request: Request, exc: ValueError):
    """Handle ValueError (e.g., from input validation)."""
    app_logger.warning(f"Value error: {exc}", extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 400, str(exc) or "Invalid input provided. Please check your request.")


@app.exception_handler(Exception)
async def handle_generic_exception(request: Request, exc: Exception):
    """Handle all other exceptions with user-friendly message."""
    app_logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"request_id": getattr(request.state, "request_id", "-")})
    return _error_response(request, 500, "An unexpected error occurred. Please try again later.")


@app.get("/api/_healthz")
async def _healthz(request: Request):
    return {"status": "ok", "has_service": hasattr(request.app.state, "relationship_service")}
