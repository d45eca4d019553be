from sqlalchemy import Column, String, JSON
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class SnapshotCollection(Base, TimestampMixin):
    """Snapshot collections carried verbatim (vehicle reminders, car assignments, maintenances)."""

    __tablename__ = "snapshot_collections"

    name = Column(String(64), primary_key=True)
    payload = Column(JSON, nullable=False, default=list)

    def __repr__(self):
        return f"<SnapshotCollection name={self.name}>"
