from sqlalchemy import Column, String, ForeignKey, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(150), nullable=False)
    # Lower-cased name; login and uniqueness are case-insensitive
    name_key = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(20), nullable=False)
    branch_id = Column(String(64), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    created_by_admin_id = Column(String(64), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    __table_args__ = (Index("ix_users_role_branch", "role", "branch_id"),)

    def __repr__(self):
        return f"<User id={self.id} name={self.name} role={self.role} branch_id={self.branch_id}>"
