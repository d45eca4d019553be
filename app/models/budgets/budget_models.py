from sqlalchemy import Column, String, Numeric, ForeignKey, CheckConstraint, UniqueConstraint
from app.core.db import Base
from app.models.base.mixins import TimestampMixin, AuditMixin


class Budget(Base, TimestampMixin, AuditMixin):
    __tablename__ = "budgets"

    id = Column(String(64), primary_key=True)
    branch_id = Column(String(64), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    month = Column(String(7), nullable=False)  # YYYY-MM
    planned = Column(Numeric(14, 2), nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("branch_id", "month", name="uq_budget_branch_month"),
        CheckConstraint("planned >= 0", name="ck_budget_planned_non_negative"),
    )

    def __repr__(self):
        return f"<Budget id={self.id} branch_id={self.branch_id} month={self.month} planned={self.planned}>"
