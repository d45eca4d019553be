from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, CheckConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin


class Item(Base, TimestampMixin, AuditMixin):
    """Stock record of one item at one branch. The same item id may exist at several branches."""

    __tablename__ = "items"

    id = Column(String(64), primary_key=True)
    branch_id = Column(String(64), ForeignKey("branches.id", ondelete="RESTRICT"), primary_key=True)

    name = Column(String(255), nullable=False)
    name_en = Column(String(255), nullable=True)
    name_ar = Column(String(255), nullable=True)

    min_qty = Column(Integer, nullable=False, default=0)
    base_qty = Column(Integer, nullable=False, default=0)
    unit_cost = Column(Numeric(12, 2), nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("base_qty >= 0", name="ck_item_base_qty_non_negative"),
        CheckConstraint("min_qty >= 0", name="ck_item_min_qty_non_negative"),
        CheckConstraint("unit_cost >= 0", name="ck_item_unit_cost_non_negative"),
    )

    def __repr__(self):
        return f"<Item id={self.id} branch_id={self.branch_id} qty={self.base_qty}>"
