from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..base import Base, CreatedAt
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .users import UserORM
    from ..segments.segments import SegmentORM


class UserSegmentORM(Base):
    """Членство пользователя в сегменте. Пара (user_id, segment_name) уникальна - это первичный ключ."""
    __tablename__ = "user_segments"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    segment_name: Mapped[str] = mapped_column(
        String(255), ForeignKey("segments.name", ondelete="CASCADE"), primary_key=True, index=True
    )
    created_at: Mapped[CreatedAt]

    user: Mapped["UserORM"] = relationship(back_populates="memberships")
    segment: Mapped["SegmentORM"] = relationship(back_populates="memberships")
