"""
Connection Provider - פתרון credentials ויצירת לקוח Mailjet לכל זוג מפתחות.

ה-cache שייך ל-instance של ה-provider ולא למודול: יוצרים provider אחד
לכל בקשה/משימה ומעבירים אותו במפורש לשירותים שצריכים חיבור. כך
credentials לא "דולפים" בין הרצות שאינן קשורות.
"""
from __future__ import annotations

import hashlib
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from mailjet_sync.core.config import settings
from mailjet_sync.core.logging import get_logger, mask_secret
from mailjet_sync.db.models.store_config import MailjetConfig
from mailjet_sync.domain.services.config_repository import ConfigRepository
from mailjet_sync.domain.services.config_service import ScopeConfigService
from mailjet_sync.domain.services.mailjet.base_client import BaseMailjetClient
from mailjet_sync.domain.services.mailjet.rest_client import MailjetRestClient

logger = get_logger(__name__)

ClientFactory = Callable[[str, str], BaseMailjetClient]


def connection_key(api_key: str, secret_key: str) -> str:
    """מפתח cache דטרמיניסטי לזוג credentials"""
    return hashlib.sha256(f"{api_key}{secret_key}".encode()).hexdigest()


class ConnectionProvider:
    """
    מחזיר לקוח Mailjet אחד לכל זוג (api_key, secret_key) לאורך חיי ה-instance.

    Credentials חסרים אינם שגיאה בשכבה הזו: מתקבל לקוח עם credentials
    ריקים שכל קריאה מרוחקת שלו תיכשל.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        config_service: ScopeConfigService | None = None,
        repository: ConfigRepository | None = None,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self.db = db
        self.config_service = config_service or ScopeConfigService(db)
        self.repository = repository or ConfigRepository(db)
        self._client_factory = client_factory or MailjetRestClient
        self._connections: dict[str, BaseMailjetClient] = {}

    async def get_connection(
        self,
        config: MailjetConfig | None = None,
        api_key: str | None = None,
        secret_key: str | None = None,
        store_id: int | None = None,
    ) -> BaseMailjetClient:
        if not (api_key and secret_key):
            store_id = store_id if store_id is not None else settings.DEFAULT_STORE_ID
            if config is None:
                config = await self.repository.get_by_store_id(store_id)
            else:
                store_id = config.store_id
            api_key, secret_key = await self.config_service.resolve_credentials(store_id, config)

        if not api_key or not secret_key:
            logger.warning(
                "לא נמצאו credentials של Mailjet - החיבור ייכשל בקריאות מרוחקות",
                extra_data={"store_id": store_id},
            )
            api_key = ""
            secret_key = ""

        key = connection_key(api_key, secret_key)
        connection = self._connections.get(key)
        if connection is None:
            connection = self._client_factory(api_key, secret_key)
            self._connections[key] = connection
            logger.debug(
                "חיבור Mailjet נוצר",
                extra_data={"api_key": mask_secret(api_key)},
            )
        return connection

    def clear(self) -> None:
        """שחרור כל החיבורים השמורים"""
        self._connections.clear()
