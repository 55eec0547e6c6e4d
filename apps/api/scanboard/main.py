"""FastAPI application entrypoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse

from scanboard.adapters.vendor import FakeVendorClient, KiriVendorClient, VendorClient
from scanboard.core.config import Settings, get_settings
from scanboard.errors import ApiError
from scanboard.repositories.base import JobRecordStore, StoreError
from scanboard.repositories.memory import InMemoryJobStore
from scanboard.repositories.mongo import MongoJobStore
from scanboard.routes import health_router, jobs_router, vendor_router, webhooks_router
from scanboard.schemas.error import ErrorResponse

logger = logging.getLogger(__name__)

_OPENAPI_RESPONSE_CODES: dict[str, dict[str, set[str]]] = {
    "/api/v1/jobs": {"get": {"200", "401"}, "post": {"201", "400", "401", "422", "500", "502"}},
    "/api/v1/jobs/{jobId}": {"get": {"200", "401", "404", "500", "502"}},
    "/api/v1/jobs/{jobId}/download-link": {"get": {"200", "401", "404", "409", "502"}},
    "/api/v1/vendor/balance": {"get": {"200", "401", "422", "502"}},
    "/api/v1/webhooks/vendor": {"post": {"200", "400", "403", "500", "503"}},
}

_UPLOAD_VALIDATION_PATHS: set[tuple[str, str]] = {
    ("POST", "/api/v1/jobs"),
}


def _apply_contract_response_codes(schema: dict) -> None:
    """Limit documented response codes to the ones each endpoint can actually return."""
    for path, methods in _OPENAPI_RESPONSE_CODES.items():
        path_item = schema.get("paths", {}).get(path)
        if not path_item:
            continue

        for method, allowed_codes in methods.items():
            operation = path_item.get(method)
            if not operation:
                continue

            responses = operation.setdefault("responses", {})
            for status_code in list(responses.keys()):
                if status_code not in allowed_codes:
                    responses.pop(status_code, None)

            for status_code in sorted(allowed_codes):
                responses.setdefault(status_code, {"description": "See API contract"})


def build_store(settings: Settings) -> JobRecordStore:
    if settings.store_backend == "mongo":
        return MongoJobStore.from_uri(
            settings.mongo_uri,
            database=settings.mongo_database,
            collection=settings.mongo_collection,
        )
    return InMemoryJobStore()


def build_vendor_client(settings: Settings) -> VendorClient:
    if settings.vendor_provider == "fake":
        return FakeVendorClient()
    if not settings.vendor_api_key:
        logger.error("startup.vendor_api_key_missing provider=%s", settings.vendor_provider)
    return KiriVendorClient(
        base_url=settings.vendor_api_base_url,
        api_key=settings.vendor_api_key or "",
        timeout_seconds=settings.vendor_timeout_seconds,
    )


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    ensure_indexes = getattr(app.state.store, "ensure_indexes", None)
    if callable(ensure_indexes):
        ensure_indexes()
    if not get_settings().webhook_signing_secret:
        logger.warning("startup.webhook_secret_missing webhooks_disabled=true")
    try:
        yield
    finally:
        app.state.vendor_client.close()


def create_app(
    *,
    store: JobRecordStore | None = None,
    vendor_client: VendorClient | None = None,
) -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Scanboard API", version="1.0.0", lifespan=_lifespan)
    app.state.store = store if store is not None else build_store(settings)
    app.state.vendor_client = vendor_client if vendor_client is not None else build_vendor_client(settings)

    @app.exception_handler(ApiError)
    async def handle_api_error(_, exc: ApiError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload.model_dump(mode="json", exclude_none=True),
        )

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("store.unavailable method=%s path=%s reason=%s", request.method, request.url.path, exc)
        payload = ErrorResponse(code="STORE_UNAVAILABLE", message="Job store is unavailable")
        return JSONResponse(status_code=503, content=payload.model_dump(exclude_none=True))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        # The mounted router prefix is only present on the request URL, not on the route.
        route_key = (request.method.upper(), request.url.path.rstrip("/") or "/")
        if route_key in _UPLOAD_VALIDATION_PATHS:
            fields = sorted({str(error["loc"][-1]) for error in exc.errors() if error.get("loc")})
            payload = ErrorResponse(
                code="VALIDATION_ERROR",
                message="A video file and a model title are required.",
                details={"fields": fields},
            )
            return JSONResponse(status_code=400, content=payload.model_dump())

        return await request_validation_exception_handler(request, exc)

    api_prefix = "/api/v1"
    app.include_router(health_router, prefix=api_prefix)
    app.include_router(jobs_router, prefix=api_prefix)
    app.include_router(vendor_router, prefix=api_prefix)
    app.include_router(webhooks_router, prefix=api_prefix)

    def custom_openapi() -> dict:
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            description=app.description,
            routes=app.routes,
        )
        _apply_contract_response_codes(schema)
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi

    return app


app = create_app()
