"""
ממשק בסיסי ללקוח Mailjet - Dependency Inversion.

שירות הסנכרון תלוי רק בממשק הזה; המימוש מעל HTTP נמצא ב-rest_client,
והבדיקות משתמשות במימוש in-memory.

כל הפעולות מחזירות את מערך ה-Data של Mailjet (רשימת dicts עם מפתחות
PascalCase כמו ב-API עצמו).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# מפתחות שדות כפי שהם מופיעים בתשובות Mailjet
ID = "ID"
NAME = "Name"
EMAIL = "Email"
EVENT_TYPE = "EventType"
STATUS = "Status"
URL = "Url"
EXPRESSION = "Expression"
HEADERS = "Headers"
HTML_PART = "Html-part"
TEXT_PART = "Text-part"
MJML_CONTENT = "MJMLContent"
SENDER_NAME = "SenderName"
SENDER_EMAIL = "SenderEmail"
FROM = "From"
SUBJECT = "Subject"
REPLY_TO = "Reply-To"

Record = dict[str, Any]


class BaseMailjetClient(ABC):
    """
    ממשק אחיד לפעולות Mailjet שהסנכרון צורך.

    Raises (בכל הפעולות):
        MailjetApiError: תשובת שגיאה מה-API או שגיאת רשת.
        ServiceTimeoutError: חריגה מזמן ההמתנה.
    """

    # ── Webhooks ──

    @abstractmethod
    async def get_webhooks(self) -> list[Record]:
        """כל ה-webhooks של החשבון."""

    @abstractmethod
    async def create_webhook(self, data: Record) -> list[Record]:
        """יצירת webhook. data: EventType, Status, Url."""

    @abstractmethod
    async def update_webhook(self, webhook_id: int, data: Record) -> list[Record]:
        """עדכון webhook קיים לפי ID."""

    @abstractmethod
    async def delete_webhook(self, webhook_id: int) -> None:
        """מחיקת webhook לפי ID."""

    # ── Contact properties ──

    @abstractmethod
    async def get_properties(self) -> list[Record]:
        """כל ה-contact properties (contactmetadata)."""

    @abstractmethod
    async def create_property(self, data: Record) -> list[Record]:
        """יצירת contact property. data: Name, Datatype, NameSpace."""

    # ── Segments ──

    @abstractmethod
    async def get_segments(self) -> list[Record]:
        """כל הסגמנטים (contactfilter)."""

    @abstractmethod
    async def create_segment(self, data: Record) -> list[Record]:
        """יצירת סגמנט. data: Name, Expression, Description."""

    # ── Templates ──

    @abstractmethod
    async def get_templates(self) -> list[Record]:
        """כל התבניות בבעלות ה-API key."""

    @abstractmethod
    async def get_template(self, template_id: int | str) -> list[Record]:
        """תבנית לפי ID. רשימה ריקה אם לא קיימת."""

    @abstractmethod
    async def create_template(self, data: Record) -> list[Record]:
        """יצירת תבנית (מטא-דאטה בלבד, בלי תוכן)."""

    @abstractmethod
    async def add_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        """הוספת תוכן לתבנית חדשה."""

    @abstractmethod
    async def update_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        """עדכון תוכן של תבנית קיימת."""

    @abstractmethod
    async def get_template_content(self, template_id: int | str) -> list[Record]:
        """תוכן תבנית (Headers, Html-part, MJMLContent). רשימה ריקה אם לא קיים."""

    # ── Senders ──

    @abstractmethod
    async def get_senders(self) -> list[Record]:
        """כל כתובות השולח של החשבון."""
