# segment_data_client/db/__init__.py

from .base import Base

from .users.users import UserORM
from .segments.segments import SegmentORM
from .users.user_segment import UserSegmentORM


__all__ = [
    "Base",
    "UserORM",
    "SegmentORM",
    "UserSegmentORM",
]
