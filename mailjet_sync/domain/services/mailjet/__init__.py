"""
Mailjet REST API - ממשק הלקוח, מימוש HTTP ו-connection provider.
"""
from mailjet_sync.domain.services.mailjet.base_client import BaseMailjetClient
from mailjet_sync.domain.services.mailjet.rest_client import MailjetRestClient
from mailjet_sync.domain.services.mailjet.connection import ConnectionProvider, connection_key

__all__ = [
    "BaseMailjetClient",
    "MailjetRestClient",
    "ConnectionProvider",
    "connection_key",
]
