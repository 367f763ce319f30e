"""
SMTP Transport - שליחת הודעה אחת דרך ה-SMTP relay של Mailjet.

ניסיון שליחה אחד לכל קריאה: ללא retry וללא תור. כל שגיאה של שכבת
ה-SMTP הופכת ל-MailException עם הטקסט של השגיאה המקורית.
"""
from __future__ import annotations

from dataclasses import dataclass
from email import message_from_bytes, message_from_string, policy
from email.message import EmailMessage
from typing import Any

import aiosmtplib

from mailjet_sync.core.config import settings
from mailjet_sync.core.exceptions import MailException
from mailjet_sync.core.logging import get_logger, mask_secret

logger = get_logger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    """הגדרות SMTP של חנות. ssl: "" | "ssl" (TLS מיידי) | "tls" (STARTTLS)"""

    host: str
    port: int
    username: str
    password: str
    ssl: str = "tls"

    def __repr__(self) -> str:
        return (
            f"SmtpConfig(host={self.host!r}, port={self.port}, "
            f"username={mask_secret(self.username)!r}, ssl={self.ssl!r})"
        )


def to_email_message(message: Any) -> EmailMessage:
    """נרמול הודעה ל-EmailMessage.

    מקבל EmailMessage, bytes/str גולמיים, או אובייקט עם get_raw_message().
    """
    if isinstance(message, EmailMessage):
        return message
    if hasattr(message, "get_raw_message"):
        message = message.get_raw_message()
    if isinstance(message, bytes):
        return message_from_bytes(message, policy=policy.SMTP)
    if isinstance(message, str):
        return message_from_string(message, policy=policy.SMTP)
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


class SmtpTransport:
    """שליחה סינכרונית (await) של הודעה בודדת עם AUTH LOGIN"""

    def __init__(self, timeout: float | None = None) -> None:
        self._timeout = timeout or settings.SMTP_TIMEOUT_SECONDS

    async def send_smtp_message(self, message: Any, config: SmtpConfig) -> bool:
        """
        שליחת הודעה.

        Returns:
            True בהצלחה.

        Raises:
            MailException: בכל כשלון (חיבור, אימות, שליחה, הודעה לא תקינה).
        """
        try:
            email_message = to_email_message(message)
            smtp = aiosmtplib.SMTP(
                hostname=config.host,
                port=config.port,
                use_tls=config.ssl == "ssl",
                start_tls=config.ssl == "tls",
                timeout=self._timeout,
            )
            await smtp.connect()
            try:
                await smtp.auth_login(config.username, config.password)
                await smtp.send_message(email_message)
                await smtp.quit()
            finally:
                if smtp.is_connected:
                    smtp.close()
        except Exception as exc:
            logger.warning(
                "שליחת SMTP נכשלה",
                extra_data={"host": config.host, "port": config.port, "error": str(exc)},
            )
            raise MailException(str(exc), details={"host": config.host}) from exc

        logger.info(
            "הודעה נשלחה דרך Mailjet SMTP",
            extra_data={"host": config.host, "port": config.port},
        )
        return True
