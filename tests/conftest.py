"""
Pytest Configuration and Fixtures

Provides fixtures for:
- Database sessions (async, SQLite in memory)
- In-memory Mailjet client
- Store config factories
"""
# משתני סביבה לפני ייבוא החבילה - ה-Settings נטענים בזמן ייבוא
import os
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
# מפתח Fernet תקין (32 בתים ב-base64) לבדיקות בלבד
os.environ.setdefault("ENCRYPTION_KEY", "MDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDAwMDA=")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("CALLBACK_BASE_URL", "https://shop.example.com")

import shutil
from itertools import count
from pathlib import Path
from typing import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from mailjet_sync.core.encryption import Encryptor
from mailjet_sync.db.database import Base, get_db
from mailjet_sync.db.models.store_config import MailjetConfig
from mailjet_sync.domain.services.config_service import ScopeConfigService
from mailjet_sync.domain.services.mailjet import base_client as mj
from mailjet_sync.domain.services.mailjet.base_client import BaseMailjetClient, Record
from mailjet_sync.domain.services.mailjet.connection import ConnectionProvider
from mailjet_sync.domain.services.reconciliation_service import ReconciliationService
from mailjet_sync.domain.services.template_assets import TemplateAssetProvisioner

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PACKAGE_ASSETS_DIR = Path(__file__).resolve().parents[1] / "mailjet_sync" / "assets"


@pytest.fixture(scope="function")
async def async_engine():
    """Create async test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async database session for tests"""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Mailjet in-memory
# ============================================================================

class FakeMailjetClient(BaseMailjetClient):
    """
    חשבון Mailjet בזיכרון.

    שומר את המצב המרוחק ורושם כל קריאה ב-calls, כדי שבדיקות יוכלו
    לוודא אילו כתיבות בוצעו (ובאיזה סדר).
    """

    def __init__(self, api_key: str = "", secret_key: str = "") -> None:
        self.api_key = api_key
        self.secret_key = secret_key
        self.webhooks: list[Record] = []
        self.properties: list[Record] = []
        self.segments: list[Record] = []
        self.templates: dict[int, Record] = {}
        self.contents: dict[int, Record] = {}
        self.senders: list[Record] = []
        self.calls: list[tuple] = []
        self._ids = count(1000)

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if not call[0].startswith("get_")]

    def _new_id(self) -> int:
        return next(self._ids)

    async def get_webhooks(self) -> list[Record]:
        self.calls.append(("get_webhooks",))
        return [dict(webhook) for webhook in self.webhooks]

    async def create_webhook(self, data: Record) -> list[Record]:
        self.calls.append(("create_webhook", data))
        record = {mj.ID: self._new_id(), **data}
        self.webhooks.append(record)
        return [dict(record)]

    async def update_webhook(self, webhook_id: int, data: Record) -> list[Record]:
        self.calls.append(("update_webhook", webhook_id, data))
        for webhook in self.webhooks:
            if webhook[mj.ID] == webhook_id:
                webhook.update(data)
                return [dict(webhook)]
        return []

    async def delete_webhook(self, webhook_id: int) -> None:
        self.calls.append(("delete_webhook", webhook_id))
        self.webhooks = [w for w in self.webhooks if w[mj.ID] != webhook_id]

    async def get_properties(self) -> list[Record]:
        self.calls.append(("get_properties",))
        return [dict(prop) for prop in self.properties]

    async def create_property(self, data: Record) -> list[Record]:
        self.calls.append(("create_property", data))
        record = {mj.ID: self._new_id(), **data}
        self.properties.append(record)
        return [dict(record)]

    async def get_segments(self) -> list[Record]:
        self.calls.append(("get_segments",))
        return [dict(segment) for segment in self.segments]

    async def create_segment(self, data: Record) -> list[Record]:
        self.calls.append(("create_segment", data))
        record = {mj.ID: self._new_id(), **data}
        self.segments.append(record)
        return [dict(record)]

    async def get_templates(self) -> list[Record]:
        self.calls.append(("get_templates",))
        return [dict(template) for template in self.templates.values()]

    async def get_template(self, template_id: int | str) -> list[Record]:
        self.calls.append(("get_template", template_id))
        template = self.templates.get(int(template_id)) if template_id else None
        return [dict(template)] if template else []

    async def create_template(self, data: Record) -> list[Record]:
        self.calls.append(("create_template", data))
        record = {mj.ID: self._new_id(), **data}
        self.templates[record[mj.ID]] = record
        return [dict(record)]

    async def add_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        self.calls.append(("add_template_content", template_id, content))
        self.contents[int(template_id)] = content
        return [content]

    async def update_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        self.calls.append(("update_template_content", template_id, content))
        self.contents[int(template_id)] = content
        return [content]

    async def get_template_content(self, template_id: int | str) -> list[Record]:
        self.calls.append(("get_template_content", template_id))
        content = self.contents.get(int(template_id))
        return [content] if content else []

    async def get_senders(self) -> list[Record]:
        self.calls.append(("get_senders",))
        return [dict(sender) for sender in self.senders]


class FakeClientFactory:
    """client_factory ל-ConnectionProvider: חשבון in-memory אחד לכל API key"""

    def __init__(self) -> None:
        self.accounts: dict[str, FakeMailjetClient] = {}
        self.created: list[tuple[str, str]] = []

    def __call__(self, api_key: str, secret_key: str) -> FakeMailjetClient:
        self.created.append((api_key, secret_key))
        account = self.accounts.get(api_key)
        if account is None:
            account = FakeMailjetClient(api_key, secret_key)
            self.accounts[api_key] = account
        return account

    def account(self, api_key: str) -> FakeMailjetClient:
        """החשבון המרוחק של API key (נוצר מראש כדי לזרוע מצב)"""
        if api_key not in self.accounts:
            self.accounts[api_key] = FakeMailjetClient(api_key)
        return self.accounts[api_key]


@pytest.fixture
def client_factory() -> FakeClientFactory:
    return FakeClientFactory()


# ============================================================================
# Services
# ============================================================================

@pytest.fixture
def encryptor() -> Encryptor:
    return Encryptor()


@pytest.fixture
def config_service(db_session: AsyncSession, encryptor: Encryptor) -> ScopeConfigService:
    return ScopeConfigService(db_session, encryptor)


@pytest.fixture
def connections(
    db_session: AsyncSession,
    config_service: ScopeConfigService,
    client_factory: FakeClientFactory,
) -> ConnectionProvider:
    return ConnectionProvider(
        db_session, config_service=config_service, client_factory=client_factory
    )


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """עותק של קבצי התבניות, כדי שבדיקות כתיבה לא ייגעו בחבילה"""
    target = tmp_path / "assets"
    shutil.copytree(PACKAGE_ASSETS_DIR, target)
    return target


@pytest.fixture
def provisioner(assets_dir: Path) -> TemplateAssetProvisioner:
    return TemplateAssetProvisioner(assets_dir)


@pytest.fixture
def service(
    db_session: AsyncSession,
    connections: ConnectionProvider,
    config_service: ScopeConfigService,
    provisioner: TemplateAssetProvisioner,
) -> ReconciliationService:
    return ReconciliationService(
        db_session,
        connections,
        config_service=config_service,
        provisioner=provisioner,
    )


# ============================================================================
# Test Data Factories
# ============================================================================

@pytest.fixture
def config_factory(db_session: AsyncSession, encryptor: Encryptor):
    """Factory for creating store Mailjet configs"""
    async def _create_config(
        store_id: int = 1,
        api_key: str | None = "public-key-1",
        secret: str | None = "secret-1",
        enabled: bool = True,
        ecommerce_data: bool = True,
    ) -> MailjetConfig:
        config = MailjetConfig(
            store_id=store_id,
            api_key=api_key,
            secret_key=encryptor.encrypt(secret) if secret else None,
            enabled=enabled,
            ecommerce_data=ecommerce_data,
        )
        db_session.add(config)
        await db_session.commit()
        await db_session.refresh(config)
        return config

    return _create_config


# ============================================================================
# API
# ============================================================================

@pytest.fixture(scope="function")
async def test_client(db_session: AsyncSession, service: ReconciliationService):
    """Create test client with database and service overrides"""
    from httpx import AsyncClient, ASGITransport

    from mailjet_sync.api.routes.sync import get_reconciliation_service
    from mailjet_sync.main import app

    async def override_get_db():
        yield db_session

    async def override_get_service():
        return service

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reconciliation_service] = override_get_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-API-Key": os.environ["ADMIN_API_KEY"]}
