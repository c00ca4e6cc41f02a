import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from unpack.api.endpoints import router
from unpack.core.config import settings
from unpack.core.tracing import DEFAULT_SERVICE_NAME, instrument_app, setup_tracing, shutdown_tracing
from unpack.shared.correlation import CorrelationMiddleware
from unpack.shared.errors import (
    UnpackError,
    domain_error_response,
    get_correlation_id,
    internal_error,
    validation_error,
)
from unpack.shared.logging_config import setup_logging

setup_logging(DEFAULT_SERVICE_NAME)
logger = logging.getLogger("Unpack.Main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        f"Starting {DEFAULT_SERVICE_NAME} "
        f"(store={settings.STORE_BACKEND}, responder={settings.RESPONDER_MODE})"
    )
    yield
    shutdown_tracing()


app = FastAPI(
    title="Unpack Journal Service",
    description="Handwritten journal capture, tangent discovery and companion chat",
    version="1.0.0",
    lifespan=lifespan,
)

setup_tracing()
instrument_app(app)
app.add_middleware(CorrelationMiddleware)


@app.exception_handler(UnpackError)
async def unpack_error_handler(request: Request, exc: UnpackError):
    correlation_id = get_correlation_id(request)
    if exc.status_code >= 500:
        logger.error(f"{exc.code.value} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code.value} on {request.url.path}: {exc.message}")
    return domain_error_response(exc, correlation_id=correlation_id)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.url.path}: {len(exc.errors())} errors")
    return validation_error(
        "Invalid request format. Please check your request and try again.",
        details={"invalid_fields": [str(err["loc"][-1]) for err in exc.errors()]},
        correlation_id=get_correlation_id(request),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}")
    return internal_error(correlation_id=get_correlation_id(request))


app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    return {"message": "Unpack Journal Service Running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
