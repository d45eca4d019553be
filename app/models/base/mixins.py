from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import declared_attr


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    # Python-side defaults so values are populated on flush without a refresh
    created_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        onupdate=utcnow
    )


class AuditMixin:
    @declared_attr
    def created_by_id(cls):
        return Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    @declared_attr
    def updated_by_id(cls):
        return Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
