from __future__ import annotations
from typing import List

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base, CreatedAt
from segment_data_client.models.user import UserInDB
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from ..segments.segments import SegmentORM
    from .user_segment import UserSegmentORM


class UserORM(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    firstname: Mapped[str] = mapped_column(String(128), nullable=False)
    lastname: Mapped[str] = mapped_column(String(128), nullable=False)
    username: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)

    created_at: Mapped[CreatedAt]

    memberships: Mapped[List["UserSegmentORM"]] = relationship(
        back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    # Только для чтения: записи в user_segments идут через MembershipRepository
    segments: Mapped[List["SegmentORM"]] = relationship(
        "SegmentORM",
        secondary="user_segments",
        viewonly=True,
        order_by="SegmentORM.name",
    )

    def to_pydantic(self) -> UserInDB:
        """ORM -> UserInDB. Требует подгруженного `segments` (selectinload)."""
        return UserInDB(
            id=self.id,
            firstname=self.firstname,
            lastname=self.lastname,
            username=self.username,
            created_at=self.created_at,
            segments=[segment.name for segment in self.segments],
        )
