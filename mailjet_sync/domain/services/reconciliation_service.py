"""
Reconciliation Service - סנכרון הקטלוגים הקבועים מול חשבונות Mailjet.

כל פעולה:
1. קובעת את רשימת ה-configs היעד (config מפורש, או כל ה-configs הייחודיים)
2. שולפת את המצב המרוחק
3. מחשבת diff דרך reconcile() ומבצעת את הקריאות

אין retry ואין rollback: שגיאה מרוחקת נזרקת לקורא, ופריטים שכבר
סונכרנו לפני השגיאה נשארים מסונכרנים.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List

from sqlalchemy.ext.asyncio import AsyncSession

from mailjet_sync.core.logging import bind_store, get_logger, log_async_operation
from mailjet_sync.db.models.store_config import MailjetConfig
from mailjet_sync.domain import catalog
from mailjet_sync.domain.catalog import TemplateDefinition
from mailjet_sync.domain.services.config_repository import ConfigRepository
from mailjet_sync.domain.services.config_service import ScopeConfigService
from mailjet_sync.domain.services.mailjet import base_client as mj
from mailjet_sync.domain.services.mailjet.base_client import BaseMailjetClient, Record
from mailjet_sync.domain.services.mailjet.connection import ConnectionProvider
from mailjet_sync.domain.services.reconcile import reconcile
from mailjet_sync.domain.services.template_assets import TemplateAssetProvisioner

logger = get_logger(__name__)


@dataclass
class SyncReport:
    """ספירת הכתיבות המרוחקות שבוצעו בפעולת סנכרון"""

    configs: int = 0
    created: int = 0
    updated: int = 0
    deleted: int = 0
    store_ids: list[int] = field(default_factory=list)

    def add_config(self, config: MailjetConfig) -> None:
        self.configs += 1
        self.store_ids.append(config.store_id)

    @property
    def writes(self) -> int:
        return self.created + self.updated + self.deleted

    def to_dict(self) -> dict[str, Any]:
        return {
            "configs": self.configs,
            "created": self.created,
            "updated": self.updated,
            "deleted": self.deleted,
            "writes": self.writes,
            "store_ids": self.store_ids,
        }


class ReconciliationService:
    """סנכרון webhooks, contact properties, segments ותבניות"""

    def __init__(
        self,
        db: AsyncSession,
        connections: ConnectionProvider | None = None,
        *,
        config_service: ScopeConfigService | None = None,
        repository: ConfigRepository | None = None,
        provisioner: TemplateAssetProvisioner | None = None,
    ) -> None:
        self.db = db
        self.config_service = config_service or ScopeConfigService(db)
        self.repository = repository or ConfigRepository(db)
        self.connections = connections or ConnectionProvider(
            db, config_service=self.config_service, repository=self.repository
        )
        self.provisioner = provisioner or TemplateAssetProvisioner()

    # ── Webhooks ──

    @log_async_operation("setup_events")
    async def setup_events(self, config: MailjetConfig | None = None) -> SyncReport:
        """webhook אחד חי לכל אירוע מופעל, עם ה-URL הקנוני"""
        configs = [config] if config is not None else await self.repository.get_unique_event_configs()
        report = SyncReport()

        for config in configs:
            report.add_config(config)
            with bind_store(config.store_id):
                await self._sync_webhooks(config, report)

        return report

    async def _sync_webhooks(self, config: MailjetConfig, report: SyncReport) -> None:
        connection = await self.connections.get_connection(config)
        webhooks = await connection.get_webhooks()

        desired: dict[str, str] = {}
        for event_type in catalog.REST_API_EVENTS:
            if await self.config_service.get_event_status(config, event_type):
                desired[event_type] = self.config_service.get_rest_api_url(event_type)

        plan = reconcile(
            desired,
            webhooks,
            key=lambda webhook: webhook.get(mj.EVENT_TYPE),
            managed=catalog.REST_API_EVENTS,
            is_stale=lambda webhook, url: webhook.get(mj.URL) != url,
        )

        for webhook in plan.to_delete:
            await connection.delete_webhook(webhook[mj.ID])
            report.deleted += 1

        for webhook, url in plan.to_update:
            await connection.update_webhook(webhook[mj.ID], _webhook_payload(webhook[mj.EVENT_TYPE], url))
            report.updated += 1

        for event_type, url in plan.to_create:
            await connection.create_webhook(_webhook_payload(event_type, url))
            report.created += 1

        logger.info(
            "webhooks סונכרנו",
            extra_data={
                "created": len(plan.to_create),
                "updated": len(plan.to_update),
                "deleted": len(plan.to_delete),
            },
        )

    # ── Contact properties / segments ──

    @log_async_operation("setup_properties")
    async def setup_properties(self, config: MailjetConfig | None = None) -> SyncReport:
        """יצירת contact properties חסרים (לפי Name). לעולם לא מעדכן או מוחק."""
        return await self._sync_additive(
            config,
            catalog.REST_API_CONTACT_PROPERTIES,
            key_field=mj.NAME,
            list_remote=lambda connection: connection.get_properties(),
            create=lambda connection, data: connection.create_property(data),
        )

    @log_async_operation("setup_segments")
    async def setup_segments(self, config: MailjetConfig | None = None) -> SyncReport:
        """יצירת סגמנטים חסרים (לפי Expression). לעולם לא מעדכן או מוחק."""
        return await self._sync_additive(
            config,
            catalog.REST_API_SEGMENTS,
            key_field=mj.EXPRESSION,
            list_remote=lambda connection: connection.get_segments(),
            create=lambda connection, data: connection.create_segment(data),
        )

    async def _sync_additive(
        self,
        config: MailjetConfig | None,
        items: Iterable[Record],
        *,
        key_field: str,
        list_remote: Callable[[BaseMailjetClient], Awaitable[list[Record]]],
        create: Callable[[BaseMailjetClient, Record], Awaitable[list[Record]]],
    ) -> SyncReport:
        """קטלוג additive-only: רק configs עם ecommerce_data, רק יצירה"""
        configs = [config] if config is not None else await self.repository.get_unique_ecommerce_configs()
        report = SyncReport()

        for config in configs:
            if not config.ecommerce_data:
                continue
            report.add_config(config)

            with bind_store(config.store_id):
                connection = await self.connections.get_connection(config)
                plan = reconcile(
                    {item[key_field]: item for item in items},
                    await list_remote(connection),
                    key=lambda record: record.get(key_field),
                    additive_only=True,
                )
                for _, item in plan.to_create:
                    await create(connection, dict(item))
                    report.created += 1

        return report

    # ── Templates ──

    async def _resolve_template_configs(
        self,
        config: MailjetConfig | None,
        store_id: int | None,
    ) -> List[MailjetConfig]:
        if config is not None:
            return [config]
        if store_id:
            store_config = await self.repository.get_by_store_id(store_id)
            return [store_config] if store_config is not None else []
        return await self.repository.get_unique_ecommerce_configs()

    async def _create_template(
        self,
        connection: BaseMailjetClient,
        template: TemplateDefinition,
    ) -> Record | None:
        created = await connection.create_template(
            self.provisioner.build_template_payload(template)
        )
        return created[0] if created else None

    @log_async_operation("setup_templates")
    async def setup_templates(
        self,
        config: MailjetConfig | None = None,
        store_id: int | None = None,
    ) -> SyncReport:
        """
        יצירת תבניות ברירת המחדל שחסרות ב-Mailjet.

        תבנית נחשבת חסרה אם אין מזהה שמור לחנות, או שהמזהה השמור כבר
        לא קיים בצד Mailjet. המזהה החדש נשמר רק אחרי שהתוכן נדחף
        (כלומר רק כשיש לחשבון לפחות שולח אחד).
        """
        report = SyncReport()

        for config in await self._resolve_template_configs(config, store_id):
            report.add_config(config)
            with bind_store(config.store_id):
                await self._provision_templates(config, report)

        return report

    async def _provision_templates(self, config: MailjetConfig, report: SyncReport) -> None:
        connection = await self.connections.get_connection(config)

        for template in catalog.REST_API_TEMPLATES:
            template_id = await self.config_service.get_template_id(template, config.store_id)
            if template_id and await connection.get_template(template_id):
                continue

            mj_template = await self._create_template(connection, template)
            if not mj_template:
                logger.warning(
                    "יצירת תבנית ב-Mailjet לא החזירה רשומה",
                    extra_data={"template": template.key},
                )
                continue

            report.created += 1
            senders = await connection.get_senders()
            if not senders:
                logger.warning(
                    "תבנית נוצרה ללא תוכן - אין שולח בחשבון",
                    extra_data={"template": template.key},
                )
                continue

            content = self.provisioner.build_content(template, senders[0])
            await connection.add_template_content(mj_template[mj.ID], content)
            await self.config_service.save_template_id(template, mj_template[mj.ID], config.store_id)

    @log_async_operation("import_templates")
    async def import_templates(self, store_id: int) -> SyncReport:
        """דחיפת תוכן התבניות המקומיות ל-Mailjet עבור חנות אחת.

        תבנית קיימת מקבלת עדכון תוכן; תבנית חסרה נוצרת ומקבלת תוכן.
        """
        report = SyncReport(configs=1, store_ids=[store_id])

        with bind_store(store_id):
            config = await self.repository.get_by_store_id(store_id)
            connection = await self.connections.get_connection(config, store_id=store_id)

            for template in catalog.REST_API_TEMPLATES:
                template_id = await self.config_service.get_template_id(template, store_id)
                existing = await connection.get_template(template_id) if template_id else []
                update = bool(existing)

                mj_template = existing[0] if update else await self._create_template(connection, template)
                if not mj_template:
                    logger.warning(
                        "יצירת תבנית ב-Mailjet לא החזירה רשומה",
                        extra_data={"template": template.key},
                    )
                    continue

                senders = await connection.get_senders()
                if not senders:
                    logger.warning(
                        "תוכן תבנית לא נדחף - אין שולח בחשבון",
                        extra_data={"template": template.key},
                    )
                    continue

                content = self.provisioner.build_content(template, senders[0])
                if update:
                    await connection.update_template_content(mj_template[mj.ID], content)
                    report.updated += 1
                else:
                    await connection.add_template_content(mj_template[mj.ID], content)
                    await self.config_service.save_template_id(template, mj_template[mj.ID], store_id)
                    report.created += 1

        return report

    @log_async_operation("save_as_default_templates")
    async def save_as_default_templates(self, store_id: int) -> SyncReport:
        """כתיבת תוכן התבניות מ-Mailjet לקבצים המקומיים (ייצוא עריכות)"""
        report = SyncReport(configs=1, store_ids=[store_id])

        with bind_store(store_id):
            config = await self.repository.get_by_store_id(store_id)
            connection = await self.connections.get_connection(config, store_id=store_id)

            for template in catalog.REST_API_TEMPLATES:
                template_id = await self.config_service.get_template_id(template, store_id)
                if not template_id:
                    continue

                content = await connection.get_template_content(template_id)
                if not content:
                    continue

                self.provisioner.export_content(template, content[0])
                report.updated += 1

        return report

    # ── הכל ──

    async def sync_all(self) -> dict[str, SyncReport]:
        """webhooks, properties, segments ותבניות לכל ה-configs, בסדר הזה"""
        return {
            "events": await self.setup_events(),
            "properties": await self.setup_properties(),
            "segments": await self.setup_segments(),
            "templates": await self.setup_templates(),
        }


def _webhook_payload(event_type: str, url: str) -> Record:
    return {
        mj.EVENT_TYPE: event_type,
        mj.STATUS: catalog.WEBHOOK_STATUS_ALIVE,
        mj.URL: url,
    }
