"""
Config Value Model - טבלת ההגדרות של אפליקציית המארח (path/value לפי scope).

ערך ב-scope של חנות גובר על ערך ב-scope ברירת המחדל (scope_id=0).
"""
from sqlalchemy import Column, Integer, String, Text, UniqueConstraint

from mailjet_sync.db.database import Base

SCOPE_DEFAULT = "default"
SCOPE_STORES = "stores"


class ConfigValue(Base):
    """ערך הגדרה בודד"""

    __tablename__ = "core_config_data"

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(String(8), nullable=False, default=SCOPE_DEFAULT)
    scope_id = Column(Integer, nullable=False, default=0)
    path = Column(String(255), nullable=False, index=True)
    value = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("scope", "scope_id", "path", name="uq_core_config_data_scope_path"),
    )
