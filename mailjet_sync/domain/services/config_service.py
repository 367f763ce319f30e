"""
Scope Config Service - קריאה וכתיבה של הגדרות המארח לפי scope.

סדר הפתרון: scope של החנות → scope ברירת מחדל (scope_id=0) → ערך
ברירת המחדל מהקטלוג.
"""
from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mailjet_sync.core.config import settings, VALID_SMTP_SSL_VALUES
from mailjet_sync.core.encryption import Encryptor
from mailjet_sync.core.logging import get_logger
from mailjet_sync.db.models.config_value import ConfigValue, SCOPE_DEFAULT, SCOPE_STORES
from mailjet_sync.db.models.store_config import MailjetConfig
from mailjet_sync.domain import catalog
from mailjet_sync.domain.catalog import ReturnPathPolicy
from mailjet_sync.domain.services.config_repository import ConfigRepository
from mailjet_sync.domain.services.mail.smtp_transport import SmtpConfig

logger = get_logger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ScopeConfigService:
    """גישה ל-core_config_data עם פתרון scope"""

    def __init__(self, db: AsyncSession, encryptor: Encryptor | None = None):
        self.db = db
        self.encryptor = encryptor or Encryptor()

    async def _get_scoped(self, path: str, scope: str, scope_id: int) -> ConfigValue | None:
        result = await self.db.execute(
            select(ConfigValue).where(
                ConfigValue.scope == scope,
                ConfigValue.scope_id == scope_id,
                ConfigValue.path == path,
            )
        )
        return result.scalar_one_or_none()

    async def get_config_value(self, path: str, store_id: int | None = None) -> str | None:
        if store_id:
            row = await self._get_scoped(path, SCOPE_STORES, store_id)
            if row is not None:
                return row.value
        row = await self._get_scoped(path, SCOPE_DEFAULT, 0)
        if row is not None:
            return row.value
        return catalog.DEFAULT_CONFIG_VALUES.get(path)

    async def get_flag(self, path: str, store_id: int | None = None) -> bool:
        value = await self.get_config_value(path, store_id)
        return str(value).strip().lower() in _TRUE_VALUES if value is not None else False

    async def save_config_value(
        self,
        path: str,
        value: str | int | None,
        scope_id: int = 0,
        scope: str = SCOPE_STORES,
    ) -> None:
        """upsert של ערך הגדרה. scope_id=0 נשמר תמיד ב-scope ברירת המחדל."""
        if scope_id == 0:
            scope = SCOPE_DEFAULT
        stored = None if value is None else str(value)

        row = await self._get_scoped(path, scope, scope_id)
        if row is None:
            self.db.add(ConfigValue(scope=scope, scope_id=scope_id, path=path, value=stored))
        else:
            row.value = stored
        await self.db.commit()

        logger.debug(
            "ערך הגדרה נשמר",
            extra_data={"path": path, "scope": scope, "scope_id": scope_id},
        )

    # ── הגדרות ספציפיות ──

    async def get_event_status(self, config: MailjetConfig, event_type: str) -> bool:
        """האם אירוע ה-webhook מופעל עבור החנות של ה-config"""
        return await self.get_flag(catalog.event_config_path(event_type), config.store_id)

    @staticmethod
    def get_rest_api_url(event_type: str) -> str:
        """URL ה-callback הקנוני שאליו Mailjet שולח אירוע מסוג זה"""
        return f"{settings.CALLBACK_BASE_URL}/rest/V1/mailjet/events/{event_type}"

    async def get_template_id(self, template: catalog.TemplateDefinition, store_id: int) -> str | None:
        value = await self.get_config_value(template.config_path, store_id)
        return value or None

    async def save_template_id(
        self,
        template: catalog.TemplateDefinition,
        template_id: str | int,
        store_id: int,
    ) -> None:
        """שמירת מזהה התבנית גם ב-scope החנות וגם ב-scope ברירת המחדל"""
        await self.save_config_value(template.config_path, template_id, store_id, SCOPE_STORES)
        await self.save_config_value(template.config_path, template_id, 0, SCOPE_DEFAULT)

    async def resolve_credentials(
        self,
        store_id: int,
        config: MailjetConfig | None = None,
    ) -> tuple[str, str]:
        """API key + secret מפוענח: מרשומת החנות, או מהגדרות ה-scope"""
        if config is not None and config.id:
            return config.api_key or "", self.encryptor.decrypt(config.secret_key)

        api_key = await self.get_config_value(catalog.CONFIG_PATH_ACCOUNT_API_KEY, store_id)
        secret = await self.get_config_value(catalog.CONFIG_PATH_ACCOUNT_SECRET_KEY, store_id)
        return api_key or "", self.encryptor.decrypt(secret)

    async def get_smtp_configs(
        self,
        store_id: int,
        config: MailjetConfig | None = None,
    ) -> SmtpConfig:
        """הגדרות SMTP לחנות. שם משתמש/סיסמה הם ה-API key/secret של Mailjet."""
        if config is None:
            config = await ConfigRepository(self.db).get_by_store_id(store_id)
        username, password = await self.resolve_credentials(store_id, config)
        host = await self.get_config_value(catalog.CONFIG_PATH_SMTP_HOST, store_id)
        port = await self.get_config_value(catalog.CONFIG_PATH_SMTP_PORT, store_id)
        ssl = (await self.get_config_value(catalog.CONFIG_PATH_SMTP_SSL, store_id) or "").strip().lower()

        if ssl not in VALID_SMTP_SSL_VALUES:
            logger.warning(
                "ערך ssl לא מוכר בהגדרות SMTP - ממשיכים ללא הצפנה",
                extra_data={"store_id": store_id, "ssl": ssl},
            )
            ssl = ""

        return SmtpConfig(
            host=host or "",
            port=int(port) if port else 587,
            username=username,
            password=password,
            ssl=ssl,
        )

    async def get_return_path(self, store_id: int) -> tuple[ReturnPathPolicy, str | None]:
        raw_policy = await self.get_config_value(catalog.CONFIG_PATH_SENDING_SET_RETURN_PATH, store_id)
        try:
            policy = ReturnPathPolicy(int(raw_policy or 0))
        except ValueError:
            policy = ReturnPathPolicy.NONE
        address = await self.get_config_value(catalog.CONFIG_PATH_SENDING_RETURN_PATH_EMAIL, store_id)
        return policy, address or None
