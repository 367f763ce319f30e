"""
Store Config Repository - שליפת הגדרות Mailjet של חנויות.

"ייחודי" = רשומה אחת לכל API key (החנות עם ה-store_id הנמוך ביותר),
כדי שחשבון Mailjet שמשותף לכמה חנויות יסונכרן פעם אחת בלבד.
"""
from __future__ import annotations

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mailjet_sync.db.models.store_config import MailjetConfig


class ConfigRepository:
    """גישה לטבלת mailjet_config"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_store_id(self, store_id: int) -> MailjetConfig | None:
        result = await self.db.execute(
            select(MailjetConfig).where(MailjetConfig.store_id == store_id)
        )
        return result.scalar_one_or_none()

    async def get_unique_event_configs(self) -> List[MailjetConfig]:
        """רשומה אחת לכל API key מבין החנויות הפעילות"""
        result = await self.db.execute(
            select(MailjetConfig)
            .where(MailjetConfig.enabled.is_(True))
            .order_by(MailjetConfig.store_id)
        )
        return self._unique_by_api_key(result.scalars().all())

    async def get_unique_ecommerce_configs(self) -> List[MailjetConfig]:
        """רשומה אחת לכל API key מבין החנויות עם ecommerce_data"""
        result = await self.db.execute(
            select(MailjetConfig)
            .where(
                MailjetConfig.enabled.is_(True),
                MailjetConfig.ecommerce_data.is_(True),
            )
            .order_by(MailjetConfig.store_id)
        )
        return self._unique_by_api_key(result.scalars().all())

    @staticmethod
    def _unique_by_api_key(configs) -> List[MailjetConfig]:
        seen: set[str] = set()
        unique: List[MailjetConfig] = []
        for config in configs:
            if not config.api_key or config.api_key in seen:
                continue
            seen.add(config.api_key)
            unique.append(config)
        return unique
