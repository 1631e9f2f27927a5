from __future__ import annotations
from typing import List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base, CreatedAt
from segment_data_client.models.segment import SegmentInDB, SegmentWithMembers, UserInfo
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from ..users.users import UserORM
    from ..users.user_segment import UserSegmentORM


class SegmentORM(Base):
    __tablename__ = "segments"

    # Имя сегмента и есть его идентификатор, не меняется после создания
    name: Mapped[str] = mapped_column(String(255), primary_key=True)

    created_at: Mapped[CreatedAt]

    memberships: Mapped[List["UserSegmentORM"]] = relationship(
        back_populates="segment", cascade="all, delete-orphan", passive_deletes=True
    )
    users: Mapped[List["UserORM"]] = relationship(
        "UserORM",
        secondary="user_segments",
        viewonly=True,  # Только для чтения
        order_by="UserORM.id",
    )

    def to_pydantic(self) -> SegmentInDB:
        return SegmentInDB.model_validate(self)

    def to_pydantic_with_members(self) -> SegmentWithMembers:
        """Требует подгруженного `users` (selectinload)."""
        return SegmentWithMembers(
            name=self.name,
            created_at=self.created_at,
            users=[UserInfo.model_validate(user) for user in self.users],
        )
