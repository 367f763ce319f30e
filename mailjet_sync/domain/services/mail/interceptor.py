"""
Mail-Send Interceptor - עוטף את שליחת הדואר של המארח.

אם Mailjet SMTP פעיל לחנות (וגם המודול פעיל) - ההודעה נשלחת דרך
SmtpTransport. אחרת נקרא מסלול השליחה המקורי, פעם אחת, בלי שינוי.
"""
from __future__ import annotations

from email import message_from_bytes, message_from_string, policy
from email.message import EmailMessage
from email.utils import getaddresses
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from mailjet_sync.core.config import settings
from mailjet_sync.core.exceptions import MailException
from mailjet_sync.core.logging import get_logger
from mailjet_sync.domain import catalog
from mailjet_sync.domain.catalog import ReturnPathPolicy
from mailjet_sync.domain.services.mail.smtp_transport import SmtpTransport

if TYPE_CHECKING:
    from mailjet_sync.domain.services.config_service import ScopeConfigService

logger = get_logger(__name__)

TransportFactory = Callable[[], SmtpTransport]


def _parse_utf8(message: Any) -> EmailMessage:
    """פענוח מחדש של ההודעה הגולמית עם policy של UTF-8"""
    utf8_policy = policy.SMTPUTF8
    if hasattr(message, "get_raw_message"):
        message = message.get_raw_message()
    if isinstance(message, EmailMessage):
        message = message.as_bytes(policy=utf8_policy)
    if isinstance(message, bytes):
        return message_from_bytes(message, policy=utf8_policy)
    if isinstance(message, str):
        return message_from_string(message, policy=utf8_policy)
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


def apply_return_path(
    message: EmailMessage,
    return_path_policy: ReturnPathPolicy,
    return_path_email: str | None,
) -> EmailMessage:
    """קביעת header ה-Sender (envelope sender) לפי מדיניות ה-return path"""
    sender: str | None = None

    if return_path_policy == ReturnPathPolicy.SPECIFIED and return_path_email:
        sender = return_path_email
    elif return_path_policy == ReturnPathPolicy.USE_FROM:
        addresses = [addr for _, addr in getaddresses(message.get_all("From", [])) if addr]
        if addresses:
            sender = addresses[0]

    if sender:
        del message["Sender"]
        message["Sender"] = sender
    return message


class MailSendInterceptor:
    """around-plugin לשליחת הודעה"""

    def __init__(
        self,
        config_service: "ScopeConfigService",
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self.config_service = config_service
        self._transport_factory = transport_factory or SmtpTransport

    async def is_mailjet_smtp_active(self, store_id: int) -> bool:
        return (
            await self.config_service.get_flag(catalog.CONFIG_PATH_ACCOUNT_SMTP_ACTIVE, store_id)
            and await self.config_service.get_flag(catalog.CONFIG_PATH_ACCOUNT_ACTIVE, store_id)
        )

    async def around_send_message(
        self,
        message: Any,
        proceed: Callable[[], Awaitable[Any]],
        store_id: int | None = None,
    ) -> Any:
        """
        Args:
            message: ההודעה היוצאת (EmailMessage, bytes/str, או אובייקט עם get_raw_message()).
            proceed: מסלול השליחה המקורי של המארח.
            store_id: החנות הנוכחית (ברירת מחדל מההגדרות).

        Raises:
            MailException: כל כשלון במסלול Mailjet.
        """
        store_id = store_id if store_id is not None else settings.DEFAULT_STORE_ID

        if not await self.is_mailjet_smtp_active(store_id):
            return await proceed()

        try:
            smtp = self._transport_factory()
            config = await self.config_service.get_smtp_configs(store_id)
            return_path_policy, return_path_email = await self.config_service.get_return_path(store_id)

            message_object = apply_return_path(
                _parse_utf8(message), return_path_policy, return_path_email
            )
            return await smtp.send_smtp_message(message_object, config)
        except Exception as exc:
            logger.error(
                "שליחה דרך Mailjet SMTP נכשלה",
                extra_data={"store_id": store_id, "error": str(exc)},
            )
            raise MailException(str(exc)) from exc
