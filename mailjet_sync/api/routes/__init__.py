"""
API Routes
"""
from fastapi import APIRouter

from mailjet_sync.api.routes.sync import router as sync_router

router = APIRouter()

router.include_router(sync_router, prefix="/admin/mailjet", tags=["mailjet"])
