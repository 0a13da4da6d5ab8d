"""Department ORM — owns the head who approves members' custody requests."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from custody.db.base import Base


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(191), nullable=False, unique=True)
    # Contact address of the approving authority
    head: Mapped[str] = mapped_column(String(191), nullable=False)

    members: Mapped[list["User"]] = relationship(
        "User", back_populates="department", lazy="selectin",
    )
