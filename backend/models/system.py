"""Key/value system configuration model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, Session, mapped_column

from database import Base

SETUP_COMPLETE_KEY = "setup_complete"


class SystemConfig(Base):
    __tablename__ = "system_config"

    id: Mapped[int] = mapped_column(primary_key=True)
    key: Mapped[str] = mapped_column(String(255), unique=True)
    value: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @classmethod
    def get_value(cls, db: Session, key: str, default: str | None = None) -> str | None:
        obj = db.query(cls).filter_by(key=key).first()
        return obj.value if obj else default

    @classmethod
    def set_value(cls, db: Session, key: str, value: str) -> SystemConfig:
        """Insert or update *key*. Caller commits."""
        obj = db.query(cls).filter_by(key=key).first()
        if obj:
            obj.value = value
        else:
            obj = cls(key=key, value=value)
            db.add(obj)
        db.flush()
        return obj

    @classmethod
    def delete_value(cls, db: Session, key: str) -> bool:
        deleted = db.query(cls).filter_by(key=key).delete()
        return bool(deleted)

    def __repr__(self):
        return f"<SystemConfig {self.key}>"
