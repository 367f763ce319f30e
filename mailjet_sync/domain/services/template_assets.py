"""
Template Asset Provisioner - קבצי התבניות המקומיים (MJML כ-JSON + HTML).

אחראי על:
- קריאת הקבצים ובניית תוכן לדחיפה ל-Mailjet (כולל headers מהשולח)
- בניית המטא-דאטה ליצירת תבנית חדשה
- כתיבה חזרה לקבצים של תוכן שנערך ב-Mailjet ("שמירה כברירת מחדל")
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from mailjet_sync.core.config import settings
from mailjet_sync.core.exceptions import FileMissingError
from mailjet_sync.core.logging import get_logger
from mailjet_sync.domain import catalog
from mailjet_sync.domain.catalog import TemplateDefinition
from mailjet_sync.domain.services.mailjet import base_client as mj

logger = get_logger(__name__)

_PACKAGE_ASSETS_DIR = Path(__file__).resolve().parents[2] / "assets"


class TemplateAssetProvisioner:
    """גישה לקבצי התבניות תחת תיקיית ה-assets"""

    def __init__(self, assets_dir: str | Path | None = None) -> None:
        if assets_dir is None:
            assets_dir = settings.TEMPLATE_ASSETS_DIR or _PACKAGE_ASSETS_DIR
        self.assets_dir = Path(assets_dir)

    def resolve_source(self, relative_path: str) -> Path:
        """נתיב מלא לקובץ asset קיים. זורק FileMissingError אם הקובץ לא נמצא."""
        path = self.assets_dir / relative_path
        if not path.is_file():
            raise FileMissingError(relative_path)
        return path

    def read_mjml(self, template: TemplateDefinition) -> Any:
        return json.loads(self.resolve_source(template.json_file).read_text(encoding="utf-8"))

    def read_html(self, template: TemplateDefinition) -> str:
        return self.resolve_source(template.html_file).read_text(encoding="utf-8")

    @staticmethod
    def build_template_payload(template: TemplateDefinition) -> dict[str, Any]:
        """מטא-דאטה קבועה ליצירת תבנית ב-Mailjet"""
        return {
            "Author": catalog.TEMPLATE_AUTHOR,
            "Categories": [catalog.TEMPLATE_CATEGORY],
            "Copyright": "",
            "Description": "",
            "EditMode": catalog.TEMPLATE_EDIT_MODE_DRAG_AND_DROP,
            "IsStarred": False,
            "IsTextPartGenerationEnabled": True,
            "Locale": catalog.TEMPLATE_LOCALE,
            "Name": template.name,
            "OwnerType": catalog.TEMPLATE_OWNER_TYPE_APIKEY,
            "Presets": "",
            "Purposes": [template.purpose],
        }

    @staticmethod
    def build_headers(template: TemplateDefinition, sender: dict[str, Any]) -> dict[str, Any]:
        """headers מהשולח. שם שולח ריק → נושא התבנית כשם שולח."""
        email = sender.get(mj.EMAIL) or ""
        return {
            mj.SENDER_NAME: sender.get(mj.NAME) or template.subject,
            mj.SENDER_EMAIL: email,
            mj.FROM: email,
            mj.SUBJECT: template.subject,
            mj.REPLY_TO: email,
        }

    def build_content(self, template: TemplateDefinition, sender: dict[str, Any]) -> dict[str, Any]:
        return {
            mj.HEADERS: self.build_headers(template, sender),
            mj.HTML_PART: self.read_html(template),
            mj.MJML_CONTENT: self.read_mjml(template),
            mj.TEXT_PART: "",
        }

    def export_content(self, template: TemplateDefinition, content: dict[str, Any]) -> None:
        """דריסת קבצי ה-MJML וה-HTML המקומיים בתוכן שהגיע מ-Mailjet.

        שני הנתיבים נבדקים לפני כתיבה כלשהי.
        """
        json_path = self.resolve_source(template.json_file)
        html_path = self.resolve_source(template.html_file)

        json_path.write_text(json.dumps(content.get(mj.MJML_CONTENT)), encoding="utf-8")
        html_path.write_text(content.get(mj.HTML_PART) or "", encoding="utf-8")

        logger.info(
            "תבנית נשמרה כברירת מחדל מקומית",
            extra_data={"template": template.key, "json_file": template.json_file},
        )
