from sqlalchemy import Column, String, ForeignKey
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin


class Vehicle(Base, TimestampMixin, AuditMixin):
    __tablename__ = "vehicles"

    id = Column(String(64), primary_key=True)
    plate = Column(String(32), unique=True, nullable=False, index=True)
    name = Column(String(150), nullable=True)
    branch_id = Column(String(64), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    def __repr__(self):
        return f"<Vehicle id={self.id} plate={self.plate}>"
