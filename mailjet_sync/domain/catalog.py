"""
Fixed catalogs synchronized to every Mailjet account, plus the host
configuration paths the sync code reads and writes.

הקטלוגים קבועים: מה שמופיע כאן הוא המצב הרצוי בצד Mailjet.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


# ── נתיבי הגדרות אצל המארח ──

CONFIG_PATH_ACCOUNT_ACTIVE = "mailjet/account/active"
CONFIG_PATH_ACCOUNT_API_KEY = "mailjet/account/api_key"
CONFIG_PATH_ACCOUNT_SECRET_KEY = "mailjet/account/secret_key"
CONFIG_PATH_ACCOUNT_SMTP_ACTIVE = "mailjet/account/smtp_active"

CONFIG_PATH_SMTP_HOST = "mailjet/smtp/host"
CONFIG_PATH_SMTP_PORT = "mailjet/smtp/port"
CONFIG_PATH_SMTP_SSL = "mailjet/smtp/ssl"

CONFIG_PATH_EVENT_PREFIX = "mailjet/events/"
CONFIG_PATH_TEMPLATE_PREFIX = "mailjet/templates/"

# נתיבי return-path של שכבת הדואר של המארח
CONFIG_PATH_SENDING_SET_RETURN_PATH = "system/smtp/set_return_path"
CONFIG_PATH_SENDING_RETURN_PATH_EMAIL = "system/smtp/return_path_email"


class ReturnPathPolicy(IntEnum):
    """מדיניות envelope sender"""
    NONE = 0
    USE_FROM = 1
    SPECIFIED = 2


# ── Webhooks ──

WEBHOOK_STATUS_ALIVE = "alive"

REST_API_EVENTS: tuple[str, ...] = (
    "open",
    "click",
    "bounce",
    "spam",
    "blocked",
    "unsub",
)


def event_config_path(event_type: str) -> str:
    return f"{CONFIG_PATH_EVENT_PREFIX}{event_type}"


# ── Contact properties ──

REST_API_CONTACT_PROPERTIES: tuple[dict[str, str], ...] = (
    {"Name": "firstname", "Datatype": "str", "NameSpace": "static"},
    {"Name": "lastname", "Datatype": "str", "NameSpace": "static"},
    {"Name": "customer_group", "Datatype": "str", "NameSpace": "static"},
    {"Name": "total_orders_count", "Datatype": "int", "NameSpace": "static"},
    {"Name": "total_spent", "Datatype": "float", "NameSpace": "static"},
    {"Name": "last_order_date", "Datatype": "datetime", "NameSpace": "static"},
    {"Name": "account_creation_date", "Datatype": "datetime", "NameSpace": "static"},
)


# ── Segments ──

REST_API_SEGMENTS: tuple[dict[str, str], ...] = (
    {
        "Name": "Customers",
        "Expression": "(total_orders_count>=1)",
        "Description": "Contacts with at least one order",
    },
    {
        "Name": "Prospects",
        "Expression": "(total_orders_count=0)",
        "Description": "Contacts who never ordered",
    },
    {
        "Name": "Repeat customers",
        "Expression": "(total_orders_count>=2)",
        "Description": "Contacts with two or more orders",
    },
    {
        "Name": "Big spenders",
        "Expression": "(total_spent>=500)",
        "Description": "Contacts who spent 500 or more",
    },
)


# ── Templates ──

TEMPLATE_AUTHOR = "Magento 2 default templates"
TEMPLATE_CATEGORY = "basic"
TEMPLATE_LOCALE = "en_US"
TEMPLATE_EDIT_MODE_DRAG_AND_DROP = 1
TEMPLATE_OWNER_TYPE_APIKEY = "apikey"


@dataclass(frozen=True)
class TemplateDefinition:
    """תבנית ברירת מחדל שנשמרת מקומית כקבצי MJML (JSON) ו-HTML"""

    key: str
    name: str
    purpose: str
    json_file: str
    html_file: str
    subject: str

    @property
    def config_path(self) -> str:
        """נתיב ההגדרה שבו נשמר מזהה התבנית המרוחקת"""
        return f"{CONFIG_PATH_TEMPLATE_PREFIX}{self.key}"


REST_API_TEMPLATES: tuple[TemplateDefinition, ...] = (
    TemplateDefinition(
        key="abandoned_cart",
        name="Abandoned cart",
        purpose="automation",
        json_file="templates/abandoned_cart.json",
        html_file="templates/abandoned_cart.html",
        subject="You left something in your cart",
    ),
    TemplateDefinition(
        key="order_confirmation",
        name="Order confirmation",
        purpose="transactional",
        json_file="templates/order_confirmation.json",
        html_file="templates/order_confirmation.html",
        subject="Thank you for your order",
    ),
    TemplateDefinition(
        key="shipping_confirmation",
        name="Shipping confirmation",
        purpose="transactional",
        json_file="templates/shipping_confirmation.json",
        html_file="templates/shipping_confirmation.html",
        subject="Your order is on its way",
    ),
)


# ── ערכי ברירת מחדל (כשאין ערך לא ב-store ולא ב-default scope) ──

DEFAULT_CONFIG_VALUES: dict[str, str] = {
    CONFIG_PATH_ACCOUNT_ACTIVE: "0",
    CONFIG_PATH_ACCOUNT_SMTP_ACTIVE: "0",
    CONFIG_PATH_SMTP_HOST: "in-v3.mailjet.com",
    CONFIG_PATH_SMTP_PORT: "587",
    CONFIG_PATH_SMTP_SSL: "tls",
    CONFIG_PATH_SENDING_SET_RETURN_PATH: "0",
    event_config_path("open"): "0",
    event_config_path("click"): "0",
    event_config_path("bounce"): "1",
    event_config_path("spam"): "1",
    event_config_path("blocked"): "1",
    event_config_path("unsub"): "1",
}
