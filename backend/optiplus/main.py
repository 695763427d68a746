from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from optiplus.api.deps import get_dataset_store
from optiplus.api.routes.datasets import router as datasets_router
from optiplus.core.config import get_settings
from optiplus.core.logging import LOGGER_NAME, setup_logging
from optiplus.schemas.dataset import ErrorResponse
from optiplus.services.errors import DatasetError

settings = get_settings()
setup_logging(settings.log_level, settings.log_file)

logger = logging.getLogger(LOGGER_NAME)

app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="Opti-Plus dataset upload, browsing and export API",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(datasets_router)

# Raw uploads are served as-is, which is what the upload response's filePath points at.
app.mount(
    settings.public_upload_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
    )


@app.exception_handler(DatasetError)
async def dataset_error_handler(request: Request, exc: DatasetError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return _error_response(400, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error_response(500, str(exc) or "Unknown error occurred")


@app.on_event("startup")
def on_startup():
    get_dataset_store().ensure_dir()
    logger.info("Serving datasets from %s", settings.upload_dir)


@app.get("/health")
def health() -> dict[str, str]:
    logger.info("Health check requested")
    return {"status": "ok"}
