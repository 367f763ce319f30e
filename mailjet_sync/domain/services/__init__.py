"""
Domain Services
"""
from mailjet_sync.domain.services.config_service import ScopeConfigService
from mailjet_sync.domain.services.config_repository import ConfigRepository
from mailjet_sync.domain.services.reconciliation_service import ReconciliationService, SyncReport
from mailjet_sync.domain.services.template_assets import TemplateAssetProvisioner

__all__ = [
    "ScopeConfigService",
    "ConfigRepository",
    "ReconciliationService",
    "SyncReport",
    "TemplateAssetProvisioner",
]
