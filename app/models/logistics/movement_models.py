from sqlalchemy import Column, String, Integer, Enum, CheckConstraint, Index, event
from app.core.db import Base
from app.core.exceptions import ConflictError
from app.constants.error_codes import ErrorCode
from app.models.base.mixins import TimestampMixin
from app.models.enums.movement_type import MovementType


class Movement(Base, TimestampMixin):
    """Stock ledger entry. APPEND-ONLY. Never updated, never deleted."""

    __tablename__ = "movements"

    id = Column(String(64), primary_key=True)
    item_id = Column(String(64), nullable=False, index=True)
    branch_id = Column(String(64), nullable=False, index=True)
    type = Column(Enum(MovementType, native_enum=False, length=8), nullable=False)
    qty = Column(Integer, nullable=False)
    # Snapshot of the actor id; survives user deletion
    user_id = Column(String(64), nullable=True, index=True)
    note = Column(String, nullable=False, default="")
    reference_type = Column(String(20), nullable=False)
    reference_id = Column(String(64), nullable=True)

    __table_args__ = (
        CheckConstraint("qty > 0", name="ck_movement_qty_positive"),
        Index("ix_movement_item_branch", "item_id", "branch_id"),
        Index("ix_movement_reference", "reference_type", "reference_id"),
    )

    @property
    def signed_qty(self) -> int:
        return self.qty if self.type == MovementType.IN else -self.qty

    def __repr__(self):
        return f"<Movement id={self.id} {self.type} item={self.item_id}@{self.branch_id} qty={self.qty} ref={self.reference_type}:{self.reference_id}>"


class LedgerImmutableError(ConflictError):
    def __init__(self, movement_id: str, operation: str):
        super().__init__(
            f"Movement {movement_id} is immutable and cannot be {operation}",
            ErrorCode.MOVEMENT_IMMUTABLE,
        )


@event.listens_for(Movement, "before_update")
def _block_movement_update(mapper, connection, target):
    raise LedgerImmutableError(target.id, "updated")


@event.listens_for(Movement, "before_delete")
def _block_movement_delete(mapper, connection, target):
    raise LedgerImmutableError(target.id, "deleted")
