"""
FastAPI Middleware

- SyncRequestMiddleware: correlation id לכל בקשה, קישור store_id מה-URL
  ללוגים, ולוג סיום עם משך זמן.
- Exception handlers: AppException → JSON לפי ErrorCode.
"""
import re
import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mailjet_sync.core.exceptions import AppException
from mailjet_sync.core.logging import (
    bind_store,
    get_logger,
    set_correlation_id,
    get_correlation_id
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# /api/admin/mailjet/stores/{store_id}/...
_STORE_PATH_RE = re.compile(r"/stores/(\d+)(?:/|$)")


def _store_id_from_path(path: str) -> int | None:
    match = _STORE_PATH_RE.search(path)
    return int(match.group(1)) if match else None


class SyncRequestMiddleware(BaseHTTPMiddleware):
    """correlation id + store_id לכל הלוגים של בקשת סנכרון"""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))
        request.state.correlation_id = correlation_id
        path = request.url.path
        started = time.monotonic()

        with bind_store(_store_id_from_path(path)):
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Request failed: {request.method} {path}",
                    extra_data={
                        "duration_seconds": round(time.monotonic() - started, 3),
                        "error": str(e),
                    },
                    exc_info=True
                )
                raise

            log = logger.info if response.status_code < 400 else logger.warning
            log(
                f"{request.method} {path} -> {response.status_code}",
                extra_data={"duration_seconds": round(time.monotonic() - started, 3)}
            )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response


async def app_exception_handler(
    request: Request,
    exc: AppException
) -> JSONResponse:
    """AppException → JSON עם קוד השגיאה והסטטוס שלה"""
    logger.warning(
        f"Application exception: {exc.error_code.value}",
        extra_data={
            "error_code": exc.error_code.value,
            "message": exc.message,
            "details": exc.details,
            "path": request.url.path,
        }
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers={CORRELATION_HEADER: get_correlation_id()}
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        extra_data={"message": str(exc), "path": request.url.path},
        exc_info=True
    )
    return JSONResponse(
        status_code=500,
        content=AppException("An unexpected error occurred").to_dict(),
        headers={CORRELATION_HEADER: get_correlation_id()}
    )


def setup_middleware(app: FastAPI) -> None:
    app.add_middleware(SyncRequestMiddleware)


def setup_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
