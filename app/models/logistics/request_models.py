from sqlalchemy import Column, String, Integer, Enum, DateTime, ForeignKey, CheckConstraint, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin
from app.models.enums.request_status import RequestStatus
from app.models.enums.request_priority import RequestPriority


class TransferRequest(Base, TimestampMixin):
    """Transfer order from main storage to the requesting branch. pending -> assigned -> delivered."""

    __tablename__ = "requests"

    id = Column(String(64), primary_key=True)
    item_id = Column(String(64), nullable=False, index=True)
    qty = Column(Integer, nullable=False)
    from_branch_id = Column(String(64), ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False, index=True)
    to_branch_id = Column(String(64), ForeignKey("branches.id", ondelete="RESTRICT"), nullable=False, index=True)

    created_by_user_id = Column(String(64), nullable=False, index=True)
    note = Column(String, nullable=False, default="")
    priority = Column(Enum(RequestPriority, native_enum=False, length=10), nullable=False, default=RequestPriority.normal)
    urgent_note = Column(String, nullable=True)
    image_url = Column(String, nullable=True)

    status = Column(Enum(RequestStatus, native_enum=False, length=12), nullable=False, default=RequestStatus.pending, index=True)

    driver_user_id = Column(String(64), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    assigned_by_user_id = Column(String(64), nullable=True)
    delivery_eta = Column(DateTime(timezone=True), nullable=True)
    delivery_eta_label = Column(String(120), nullable=True)

    delivered_at = Column(DateTime(timezone=True), nullable=True)
    received_by_user_id = Column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_request_qty_positive"),
        Index("ix_request_status_to_branch", "status", "to_branch_id"),
    )

    def __repr__(self):
        return f"<TransferRequest id={self.id} item={self.item_id} {self.from_branch_id}->{self.to_branch_id} qty={self.qty} status={self.status}>"
