"""
Mail transport - SMTP relay של Mailjet ו-interceptor לשליחת הדואר של המארח.
"""
from mailjet_sync.domain.services.mail.smtp_transport import SmtpConfig, SmtpTransport
from mailjet_sync.domain.services.mail.interceptor import MailSendInterceptor

__all__ = [
    "SmtpConfig",
    "SmtpTransport",
    "MailSendInterceptor",
]
