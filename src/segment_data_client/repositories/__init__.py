from .pg_repositoryUser import UserRepository
from .pg_repositorySegment import SegmentRepository
from .pg_repositoryMembership import MembershipRepository

__all__ = [
    "UserRepository",
    "SegmentRepository",
    "MembershipRepository",
]
