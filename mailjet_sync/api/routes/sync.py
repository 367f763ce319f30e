"""
Mailjet Sync Endpoints - הפעלה ידנית של הסנכרון מממשק הניהול.

כל בקשה מקבלת ConnectionProvider חדש (דרך ReconciliationService),
כך שחיבורי Mailjet לא משותפים בין בקשות.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from mailjet_sync.api.dependencies.admin_auth import require_admin_api_key
from mailjet_sync.core.exceptions import ErrorCode, NotFoundException
from mailjet_sync.core.logging import get_logger
from mailjet_sync.db.database import get_db
from mailjet_sync.domain.services.reconciliation_service import ReconciliationService, SyncReport

logger = get_logger(__name__)

router = APIRouter()


# ─── Pydantic models ────────────────────────────────────────────────────────

class SyncReportResponse(BaseModel):
    """תוצאת פעולת סנכרון בודדת"""
    configs: int
    created: int
    updated: int
    deleted: int
    writes: int
    store_ids: list[int]

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncReportResponse":
        return cls(**report.to_dict())


class FullSyncResponse(BaseModel):
    """תוצאת סנכרון מלא"""
    events: SyncReportResponse
    properties: SyncReportResponse
    segments: SyncReportResponse
    templates: SyncReportResponse


# ─── Dependencies ───────────────────────────────────────────────────────────

async def get_reconciliation_service(
    db: AsyncSession = Depends(get_db),
) -> ReconciliationService:
    return ReconciliationService(db)


_AUTH_RESPONSES = {
    401: {"description": "חסר מפתח API"},
    403: {"description": "מפתח API שגוי"},
}


# ─── Endpoints ──────────────────────────────────────────────────────────────

@router.post(
    "/sync",
    response_model=FullSyncResponse,
    summary="סנכרון מלא לכל החנויות",
    description="webhooks, contact properties, segments ותבניות לכל ה-configs הייחודיים.",
    responses=_AUTH_RESPONSES,
)
async def sync_all(
    _: None = Depends(require_admin_api_key),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> FullSyncResponse:
    reports = await service.sync_all()
    return FullSyncResponse(
        **{name: SyncReportResponse.from_report(report) for name, report in reports.items()}
    )


@router.post(
    "/stores/{store_id}/setup",
    response_model=FullSyncResponse,
    summary="סנכרון מלא לחנות אחת",
    responses={**_AUTH_RESPONSES, 404: {"description": "אין הגדרות Mailjet לחנות"}},
)
async def setup_store(
    store_id: int,
    _: None = Depends(require_admin_api_key),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> FullSyncResponse:
    config = await service.repository.get_by_store_id(store_id)
    if config is None:
        raise NotFoundException("Mailjet config", store_id, ErrorCode.STORE_CONFIG_NOT_FOUND)

    return FullSyncResponse(
        events=SyncReportResponse.from_report(await service.setup_events(config)),
        properties=SyncReportResponse.from_report(await service.setup_properties(config)),
        segments=SyncReportResponse.from_report(await service.setup_segments(config)),
        templates=SyncReportResponse.from_report(await service.setup_templates(config)),
    )


@router.post(
    "/stores/{store_id}/templates/import",
    response_model=SyncReportResponse,
    summary="דחיפת תבניות ברירת המחדל ל-Mailjet",
    responses=_AUTH_RESPONSES,
)
async def import_templates(
    store_id: int,
    _: None = Depends(require_admin_api_key),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SyncReportResponse:
    return SyncReportResponse.from_report(await service.import_templates(store_id))


@router.post(
    "/stores/{store_id}/templates/save-default",
    response_model=SyncReportResponse,
    summary="שמירת התבניות מ-Mailjet כברירת מחדל מקומית",
    responses={**_AUTH_RESPONSES, 500: {"description": "קובץ תבנית מקומי חסר"}},
)
async def save_as_default_templates(
    store_id: int,
    _: None = Depends(require_admin_api_key),
    service: ReconciliationService = Depends(get_reconciliation_service),
) -> SyncReportResponse:
    return SyncReportResponse.from_report(await service.save_as_default_templates(store_id))
