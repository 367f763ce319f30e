"""
Mailjet Store Config Model - הגדרות חשבון Mailjet לכל חנות

הרשומה נוצרת ונערכת דרך ממשק הניהול של אפליקציית המארח.
קוד הסנכרון קורא אותה בלבד.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime

from mailjet_sync.db.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MailjetConfig(Base):
    """הגדרות Mailjet של חנות בודדת"""

    __tablename__ = "mailjet_config"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, nullable=False, unique=True, index=True)

    api_key = Column(String(100), nullable=True, index=True)
    secret_key = Column(String(500), nullable=True)  # מוצפן (Fernet)

    enabled = Column(Boolean, default=True, nullable=False)
    # סנכרון נתוני e-commerce (properties, segments, templates)
    ecommerce_data = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<MailjetConfig store_id={self.store_id} ecommerce_data={self.ecommerce_data}>"
