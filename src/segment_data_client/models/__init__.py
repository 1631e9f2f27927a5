from .user import UserCreate, UserUpdate, UserInDB
from .segment import SegmentCreate, SegmentInDB, SegmentWithMembers, UserInfo
from .membership import SegmentName, UserSegmentsUpdate

__all__ = [
    "UserCreate", "UserUpdate", "UserInDB",
    "SegmentCreate", "SegmentInDB", "SegmentWithMembers", "UserInfo",
    "SegmentName", "UserSegmentsUpdate",
]
