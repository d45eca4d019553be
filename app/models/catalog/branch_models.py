from sqlalchemy import Column, String
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class Branch(Base, TimestampMixin):
    __tablename__ = "branches"

    id = Column(String(64), primary_key=True)
    name = Column(String(150), nullable=False)

    def __repr__(self):
        return f"<Branch id={self.id} name={self.name}>"
