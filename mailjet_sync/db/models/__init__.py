"""
Database Models
"""
from mailjet_sync.db.models.store_config import MailjetConfig
from mailjet_sync.db.models.config_value import ConfigValue

__all__ = [
    "MailjetConfig",
    "ConfigValue",
]
