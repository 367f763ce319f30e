"""
Mailjet Sync - Main FastAPI Application
"""
from fastapi import FastAPI

from mailjet_sync.core.config import settings
from mailjet_sync.core.logging import setup_logging, get_logger
from mailjet_sync.core.middleware import setup_middleware, setup_exception_handlers
from mailjet_sync.api.routes import router as api_router

# Setup logging before anything else
setup_logging(
    level="DEBUG" if settings.DEBUG else "INFO",
    json_format=not settings.DEBUG,
    app_name=settings.APP_NAME
)

logger = get_logger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description=(
        "סנכרון הגדרות חנות (webhooks, contact properties, segments, תבניות) "
        "מול Mailjet REST API."
    ),
)

setup_middleware(app)
setup_exception_handlers(app)

app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["health"])
async def health() -> dict:
    """בדיקת חיות בסיסית"""
    return {"status": "ok", "app": settings.APP_NAME}
