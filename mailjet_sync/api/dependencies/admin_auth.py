"""
Admin API key for the manual sync triggers.

    @router.post("/sync")
    async def sync(_: None = Depends(require_admin_api_key)):
        ...
"""
import hmac

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from mailjet_sync.core.config import settings
from mailjet_sync.core.logging import get_logger, mask_secret

logger = get_logger(__name__)

ADMIN_API_KEY_HEADER = "X-Admin-API-Key"

_api_key_header = APIKeyHeader(name=ADMIN_API_KEY_HEADER, auto_error=False)


def _reject(request: Request, status_code: int, detail: str, api_key: str | None = None) -> HTTPException:
    logger.warning(
        "בקשת סנכרון ידני נדחתה",
        extra_data={
            "path": request.url.path,
            "status_code": status_code,
            "api_key": mask_secret(api_key),
        },
    )
    return HTTPException(status_code=status_code, detail=detail)


async def require_admin_api_key(
    request: Request,
    api_key: str | None = Depends(_api_key_header),
) -> None:
    """
    401 כשה-header חסר, 403 כשהמפתח שגוי.

    ADMIN_API_KEY ריק בסביבה חוסם את כל ה-endpoints (403), גם עם header.
    """
    if not settings.ADMIN_API_KEY:
        raise _reject(request, status.HTTP_403_FORBIDDEN, "ADMIN_API_KEY is not configured")

    if not api_key:
        raise _reject(
            request,
            status.HTTP_401_UNAUTHORIZED,
            f"Missing API key, {ADMIN_API_KEY_HEADER} header required",
        )

    if not hmac.compare_digest(api_key.encode(), settings.ADMIN_API_KEY.encode()):
        raise _reject(request, status.HTTP_403_FORBIDDEN, "Invalid API key", api_key)
