from typing import Iterable

__all__ = [
    "SegmentClientError", "DatabaseError", "AlreadyExistsError",
    "NotFoundError", "UserNotFoundError", "SegmentNotFoundError",
]


class SegmentClientError(Exception):
    """Base class."""


class DatabaseError(SegmentClientError):
    """Хранилище недоступно или транзакция откатилась."""


class AlreadyExistsError(SegmentClientError):
    pass


class NotFoundError(SegmentClientError):
    pass


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User with id {user_id} not found.")


class SegmentNotFoundError(NotFoundError):
    def __init__(self, names: Iterable[str]):
        self.names = sorted(set(names))
        super().__init__(f"Segment(s) not found: {', '.join(self.names)}")
