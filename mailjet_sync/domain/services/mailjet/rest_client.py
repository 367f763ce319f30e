"""
Mailjet REST Client - מימוש BaseMailjetClient מעל Mailjet REST API v3.

אימות Basic (API key + secret). ללא retry: כל כשלון נזרק מיד לקורא.
"""
from __future__ import annotations

from typing import Any

import httpx

from mailjet_sync.core.config import settings
from mailjet_sync.core.exceptions import MailjetApiError, ServiceTimeoutError
from mailjet_sync.core.logging import get_logger, mask_secret
from mailjet_sync.domain.services.mailjet.base_client import BaseMailjetClient, Record

logger = get_logger(__name__)

# Mailjet מחזיר עד 10 רשומות כברירת מחדל
_LIST_LIMIT = 1000


class MailjetRestClient(BaseMailjetClient):
    """
    לקוח HTTP ל-Mailjet.

    Args:
        api_key: מפתח API (public).
        secret_key: מפתח סודי מפוענח.
        base_url: כתובת ה-REST API (ברירת מחדל מההגדרות).
        timeout: זמן המתנה לבקשה בשניות.
        transport: transport חלופי ל-httpx (לבדיקות).
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self._secret_key = secret_key
        self._base_url = (base_url or settings.MAILJET_API_URL).rstrip("/")
        self._timeout = timeout or settings.MAILJET_TIMEOUT_SECONDS
        self._transport = transport

    def __repr__(self) -> str:
        return f"<MailjetRestClient api_key={mask_secret(self.api_key)}>"

    # ── HTTP helper פנימי ──

    async def _request(
        self,
        method: str,
        resource: str,
        *,
        json: Record | None = None,
        params: dict[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> list[Record]:
        """שליחת בקשה אחת והחזרת מערך ה-Data.

        allow_not_found: 404 מחזיר רשימה ריקה במקום לזרוק.
        """
        url = f"{self._base_url}/{resource}"

        async with httpx.AsyncClient(
            auth=(self.api_key, self._secret_key),
            timeout=self._timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(method, url, json=json, params=params)
            except httpx.TimeoutException:
                raise ServiceTimeoutError("mailjet", self._timeout)
            except httpx.RequestError as exc:
                raise MailjetApiError(
                    message=f"{method} {resource} network error: {str(exc)}",
                    details={"network_error": True, "operation": resource},
                )

        if allow_not_found and response.status_code == 404:
            return []

        if response.status_code >= 400:
            logger.warning(
                "Mailjet API החזיר שגיאה",
                extra_data={
                    "method": method,
                    "resource": resource,
                    "status_code": response.status_code,
                    "api_key": mask_secret(self.api_key),
                },
            )
            raise MailjetApiError.from_response(f"{method} {resource}", response)

        if response.status_code == 204 or not response.content:
            return []

        return response.json().get("Data", [])

    # ── Webhooks ──

    async def get_webhooks(self) -> list[Record]:
        return await self._request("GET", "eventcallbackurl", params={"Limit": _LIST_LIMIT})

    async def create_webhook(self, data: Record) -> list[Record]:
        return await self._request("POST", "eventcallbackurl", json=data)

    async def update_webhook(self, webhook_id: int, data: Record) -> list[Record]:
        return await self._request("PUT", f"eventcallbackurl/{webhook_id}", json=data)

    async def delete_webhook(self, webhook_id: int) -> None:
        await self._request("DELETE", f"eventcallbackurl/{webhook_id}")

    # ── Contact properties ──

    async def get_properties(self) -> list[Record]:
        return await self._request("GET", "contactmetadata", params={"Limit": _LIST_LIMIT})

    async def create_property(self, data: Record) -> list[Record]:
        return await self._request("POST", "contactmetadata", json=data)

    # ── Segments ──

    async def get_segments(self) -> list[Record]:
        return await self._request("GET", "contactfilter", params={"Limit": _LIST_LIMIT})

    async def create_segment(self, data: Record) -> list[Record]:
        return await self._request("POST", "contactfilter", json=data)

    # ── Templates ──

    async def get_templates(self) -> list[Record]:
        return await self._request(
            "GET", "template", params={"OwnerType": "apikey", "Limit": _LIST_LIMIT}
        )

    async def get_template(self, template_id: int | str) -> list[Record]:
        if not template_id:
            return []
        return await self._request("GET", f"template/{template_id}", allow_not_found=True)

    async def create_template(self, data: Record) -> list[Record]:
        return await self._request("POST", "template", json=data)

    async def add_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        return await self._request("POST", f"template/{template_id}/detailcontent", json=content)

    async def update_template_content(self, template_id: int | str, content: Record) -> list[Record]:
        return await self._request("PUT", f"template/{template_id}/detailcontent", json=content)

    async def get_template_content(self, template_id: int | str) -> list[Record]:
        if not template_id:
            return []
        return await self._request(
            "GET", f"template/{template_id}/detailcontent", allow_not_found=True
        )

    # ── Senders ──

    async def get_senders(self) -> list[Record]:
        return await self._request("GET", "sender", params={"Limit": _LIST_LIMIT})
