"""
Secret decryption for credentials stored in the host configuration.

API secrets are stored Fernet-encrypted. A value that cannot be decrypted, or
a missing key, yields an empty string, which downstream turns into a degraded
connection.
"""
from cryptography.fernet import Fernet, InvalidToken

from mailjet_sync.core.config import settings
from mailjet_sync.core.exceptions import ConfigurationError
from mailjet_sync.core.logging import get_logger

logger = get_logger(__name__)


class Encryptor:
    """עטיפה דקה סביב Fernet להצפנה/פענוח של סודות שמורים"""

    def __init__(self, key: str | None = None) -> None:
        self._key = key if key is not None else settings.ENCRYPTION_KEY
        self._fernet: Fernet | None = None

    def _get_fernet(self) -> Fernet:
        if self._fernet is None:
            if not self._key:
                raise ConfigurationError("ENCRYPTION_KEY is not configured")
            try:
                self._fernet = Fernet(self._key.encode())
            except ValueError as exc:
                raise ConfigurationError(
                    "ENCRYPTION_KEY is not a valid Fernet key",
                    details={"error": str(exc)},
                ) from exc
        return self._fernet

    def encrypt(self, value: str) -> str:
        return self._get_fernet().encrypt(value.encode()).decode()

    def decrypt(self, value: str | None) -> str:
        """פענוח ערך שמור. ערך ריק, מפתח חסר או טוקן לא תקין מחזירים מחרוזת ריקה."""
        if not value:
            return ""
        try:
            return self._get_fernet().decrypt(value.encode()).decode()
        except ConfigurationError as exc:
            logger.warning(
                "אין מפתח הצפנה תקין - הסוד השמור לא פוענח",
                extra_data={"error": exc.message},
            )
            return ""
        except InvalidToken:
            logger.warning("פענוח סוד שמור נכשל - משתמשים בערך ריק")
            return ""
