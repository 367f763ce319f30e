"""
בדיקות לתבניות: setup_templates, import_templates, save_as_default_templates.
"""
import json

import pytest

from mailjet_sync.core.exceptions import FileMissingError
from mailjet_sync.db.models.config_value import SCOPE_DEFAULT
from mailjet_sync.domain import catalog

TEMPLATE_COUNT = len(catalog.REST_API_TEMPLATES)
SENDER = {"ID": 1, "Name": "Shop", "Email": "shop@example.com"}


def _calls(account, name: str) -> list[tuple]:
    return [call for call in account.calls if call[0] == name]


class TestSetupTemplates:

    @pytest.mark.unit
    async def test_creates_templates_and_pushes_content(
        self, service, client_factory, config_factory, config_service, provisioner
    ):
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))

        report = await service.setup_templates(config)

        assert len(_calls(account, "create_template")) == TEMPLATE_COUNT
        assert len(_calls(account, "add_template_content")) == TEMPLATE_COUNT
        assert report.created == TEMPLATE_COUNT

        for template in catalog.REST_API_TEMPLATES:
            template_id = await config_service.get_template_id(template, 1)
            assert template_id is not None
            assert account.contents[int(template_id)] == provisioner.build_content(template, SENDER)

    @pytest.mark.unit
    async def test_template_id_saved_in_store_and_default_scope(
        self, service, client_factory, config_factory, config_service
    ):
        config = await config_factory(store_id=4, api_key="pub-4")
        client_factory.account("pub-4").senders.append(dict(SENDER))

        await service.setup_templates(config)

        template = catalog.REST_API_TEMPLATES[0]
        row = await config_service._get_scoped(template.config_path, SCOPE_DEFAULT, 0)
        assert row is not None
        assert row.value == await config_service.get_template_id(template, 4)

    @pytest.mark.unit
    async def test_create_payload(self, service, client_factory, config_factory):
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))

        await service.setup_templates(config)

        payload = _calls(account, "create_template")[0][1]
        template = catalog.REST_API_TEMPLATES[0]
        assert payload["Name"] == template.name
        assert payload["Purposes"] == [template.purpose]
        assert payload["Author"] == catalog.TEMPLATE_AUTHOR
        assert payload["OwnerType"] == "apikey"
        assert payload["EditMode"] == 1

    @pytest.mark.unit
    async def test_second_run_makes_no_writes(self, service, client_factory, config_factory):
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))
        await service.setup_templates(config)
        writes_before = len(account.writes())

        report = await service.setup_templates(config)

        assert len(account.writes()) == writes_before
        assert report.created == 0

    @pytest.mark.unit
    async def test_no_sender_creates_without_content(
        self, service, client_factory, config_factory, config_service
    ):
        """אין שולח בחשבון - התבנית נוצרת, תוכן לא נדחף, המזהה לא נשמר"""
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")

        report = await service.setup_templates(config)

        assert len(_calls(account, "create_template")) == TEMPLATE_COUNT
        assert _calls(account, "add_template_content") == []
        assert report.created == TEMPLATE_COUNT
        for template in catalog.REST_API_TEMPLATES:
            assert await config_service.get_template_id(template, 1) is None

    @pytest.mark.unit
    async def test_empty_create_response_skips_senders_and_content(
        self, service, client_factory, config_factory, config_service
    ):
        """Mailjet לא החזיר רשומה ליצירה - לא פונים לשולחים ולא דוחפים תוכן"""
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))

        async def empty_create(data):
            account.calls.append(("create_template", data))
            return []

        account.create_template = empty_create

        report = await service.setup_templates(config)

        assert len(_calls(account, "create_template")) == TEMPLATE_COUNT
        assert _calls(account, "get_senders") == []
        assert _calls(account, "add_template_content") == []
        assert report.created == 0
        for template in catalog.REST_API_TEMPLATES:
            assert await config_service.get_template_id(template, 1) is None

    @pytest.mark.unit
    async def test_stale_template_id_is_recreated(
        self, service, client_factory, config_factory, config_service
    ):
        """מזהה שמור שכבר לא קיים ב-Mailjet - תבנית חדשה נוצרת והמזהה מוחלף"""
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))
        template = catalog.REST_API_TEMPLATES[0]
        await config_service.save_template_id(template, 999, 1)

        await service.setup_templates(config)

        assert ("get_template", "999") in account.calls
        new_id = await config_service.get_template_id(template, 1)
        assert new_id != "999"
        assert int(new_id) in account.templates

    @pytest.mark.unit
    async def test_sender_without_name_uses_subject(
        self, service, client_factory, config_factory
    ):
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append({"ID": 1, "Name": "", "Email": "noreply@example.com"})

        await service.setup_templates(config)

        template = catalog.REST_API_TEMPLATES[0]
        headers = _calls(account, "add_template_content")[0][2]["Headers"]
        assert headers["SenderName"] == template.subject
        assert headers["SenderEmail"] == "noreply@example.com"
        assert headers["From"] == "noreply@example.com"
        assert headers["Reply-To"] == "noreply@example.com"
        assert headers["Subject"] == template.subject

    @pytest.mark.unit
    async def test_by_store_id_without_config_does_nothing(self, service, client_factory):
        report = await service.setup_templates(store_id=42)

        assert report.configs == 0
        assert client_factory.created == []


class TestImportTemplates:

    @pytest.mark.unit
    async def test_existing_templates_get_content_update(
        self, service, client_factory, config_factory
    ):
        config = await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))
        await service.setup_templates(config)

        report = await service.import_templates(1)

        assert len(_calls(account, "update_template_content")) == TEMPLATE_COUNT
        assert len(_calls(account, "create_template")) == TEMPLATE_COUNT
        assert report.updated == TEMPLATE_COUNT
        assert report.created == 0

    @pytest.mark.unit
    async def test_empty_create_response_skips_senders(
        self, service, client_factory, config_factory
    ):
        await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))

        async def empty_create(data):
            account.calls.append(("create_template", data))
            return []

        account.create_template = empty_create

        report = await service.import_templates(1)

        assert _calls(account, "get_senders") == []
        assert _calls(account, "add_template_content") == []
        assert report.created == 0

    @pytest.mark.unit
    async def test_missing_templates_are_created_and_saved(
        self, service, client_factory, config_factory, config_service
    ):
        await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        account.senders.append(dict(SENDER))

        report = await service.import_templates(1)

        assert len(_calls(account, "create_template")) == TEMPLATE_COUNT
        assert len(_calls(account, "add_template_content")) == TEMPLATE_COUNT
        assert _calls(account, "update_template_content") == []
        assert report.created == TEMPLATE_COUNT
        for template in catalog.REST_API_TEMPLATES:
            assert await config_service.get_template_id(template, 1) is not None

    @pytest.mark.unit
    async def test_no_sender_pushes_nothing(self, service, client_factory, config_factory):
        await config_factory(store_id=1, api_key="pub-1")

        report = await service.import_templates(1)

        account = client_factory.account("pub-1")
        assert _calls(account, "add_template_content") == []
        assert _calls(account, "update_template_content") == []
        assert report.updated == 0


class TestSaveAsDefaultTemplates:

    @pytest.mark.unit
    async def test_remote_content_written_to_local_files(
        self, service, client_factory, config_factory, config_service, assets_dir
    ):
        await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        template = catalog.REST_API_TEMPLATES[0]
        account.templates[500] = {"ID": 500, "Name": template.name}
        account.contents[500] = {
            "MJMLContent": {"tagName": "mjml", "children": []},
            "Html-part": "<p>edited</p>",
        }
        await config_service.save_template_id(template, 500, 1)

        report = await service.save_as_default_templates(1)

        assert report.updated == 1
        assert (assets_dir / template.html_file).read_text(encoding="utf-8") == "<p>edited</p>"
        assert json.loads((assets_dir / template.json_file).read_text(encoding="utf-8")) == {
            "tagName": "mjml",
            "children": [],
        }

    @pytest.mark.unit
    async def test_templates_without_id_are_skipped(
        self, service, client_factory, config_factory, assets_dir
    ):
        await config_factory(store_id=1, api_key="pub-1")
        template = catalog.REST_API_TEMPLATES[0]
        original = (assets_dir / template.html_file).read_text(encoding="utf-8")

        report = await service.save_as_default_templates(1)

        assert report.updated == 0
        assert _calls(client_factory.account("pub-1"), "get_template_content") == []
        assert (assets_dir / template.html_file).read_text(encoding="utf-8") == original

    @pytest.mark.unit
    async def test_missing_local_file_raises(
        self, service, client_factory, config_factory, config_service, assets_dir
    ):
        """קובץ HTML חסר - FileMissingError, וה-JSON לא נכתב"""
        await config_factory(store_id=1, api_key="pub-1")
        account = client_factory.account("pub-1")
        template = catalog.REST_API_TEMPLATES[0]
        account.contents[500] = {"MJMLContent": {"tagName": "mjml"}, "Html-part": "<p>x</p>"}
        await config_service.save_template_id(template, 500, 1)
        json_before = (assets_dir / template.json_file).read_text(encoding="utf-8")
        (assets_dir / template.html_file).unlink()

        with pytest.raises(FileMissingError) as exc_info:
            await service.save_as_default_templates(1)

        assert exc_info.value.details["path"] == template.html_file
        assert (assets_dir / template.json_file).read_text(encoding="utf-8") == json_before


class TestSyncAll:

    @pytest.mark.unit
    async def test_runs_every_catalog(self, service, client_factory, config_factory):
        await config_factory(store_id=1, api_key="pub-1")
        client_factory.account("pub-1").senders.append(dict(SENDER))

        reports = await service.sync_all()

        assert list(reports) == ["events", "properties", "segments", "templates"]
        assert reports["events"].created == 4
        assert reports["properties"].created == len(catalog.REST_API_CONTACT_PROPERTIES)
        assert reports["segments"].created == len(catalog.REST_API_SEGMENTS)
        assert reports["templates"].created == TEMPLATE_COUNT
