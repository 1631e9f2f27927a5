import logging
from typing import Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncEngine

from segment_data_client.repositories import UserRepository, SegmentRepository, MembershipRepository
from segment_data_client.models import (UserCreate,
                                        UserUpdate,
                                        UserInDB,
                                        UserInfo,
                                        SegmentCreate,
                                        SegmentInDB,
                                        SegmentWithMembers,
                                        )
from segment_data_client.reconciler import MembershipDelta
from segment_data_client.exceptions import DatabaseError, UserNotFoundError, SegmentNotFoundError

logger = logging.getLogger(__name__)


class SegmentClient:
    """
    Единая точка доступа для бизнес-логики: пользователи, сегменты и членства.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        segment_repo: SegmentRepository,
        membership_repo: MembershipRepository,
        engine: Optional[AsyncEngine] = None,
    ):
        self.user_repo = user_repo
        self.segment_repo = segment_repo
        self.membership_repo = membership_repo
        self._engine = engine

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()

    async def check_connections(self) -> dict[str, str]:
        """
        Проверяет доступность PostgreSQL.
        Возвращает словарь со статусами.
        """
        statuses = {}
        try:
            await self.user_repo.check_connection()
            statuses["postgres"] = "ok"
        except DatabaseError as e:
            statuses["postgres"] = f"failed: {e}"
        return statuses

    # ――― users ――― #

    async def create_user(self, user_data: UserCreate) -> UserInDB:
        user = await self.user_repo.create_user(user_data)
        return user.to_pydantic()

    async def get_user(self, user_id: int) -> UserInDB:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user.to_pydantic()

    async def list_users(self) -> List[UserInDB]:
        return [user.to_pydantic() for user in await self.user_repo.list_users()]

    async def update_user(self, user_id: int, patch: UserUpdate) -> UserInDB:
        user = await self.user_repo.update_user(user_id, patch)
        return user.to_pydantic()

    async def delete_user(self, user_id: int) -> None:
        await self.user_repo.delete_user(user_id)

    # ――― segments ――― #

    async def create_segment(self, segment_data: SegmentCreate) -> SegmentInDB:
        segment = await self.segment_repo.create_segment(segment_data)
        return segment.to_pydantic()

    async def get_segment(self, name: str) -> SegmentWithMembers:
        segment = await self.segment_repo.get_by_name(name, with_members=True)
        if segment is None:
            raise SegmentNotFoundError([name])
        return segment.to_pydantic_with_members()

    async def list_segments(self) -> List[SegmentInDB]:
        return [segment.to_pydantic() for segment in await self.segment_repo.list_segments()]

    async def delete_segment(self, name: str) -> None:
        await self.segment_repo.delete_segment(name)

    async def get_segment_users(self, name: str) -> List[UserInfo]:
        users = await self.segment_repo.get_segment_users(name)
        return [UserInfo.model_validate(user) for user in users]

    # ――― memberships ――― #

    async def get_user_segments(self, user_id: int) -> Set[str]:
        return await self.membership_repo.get_user_segments(user_id)

    async def update_user_segments(
        self,
        user_id: int,
        segments_to_add: Iterable[str] = (),
        segments_to_remove: Iterable[str] = (),
    ) -> MembershipDelta:
        """
        Атомарно добавляет и удаляет сегменты пользователя.

        - Дубликаты в списках схлопываются.
        - Имя и в `segments_to_add`, и в `segments_to_remove` не меняет членство.
        - Добавление уже имеющегося и удаление отсутствующего сегмента - no-op.
        - UserNotFoundError / SegmentNotFoundError / DatabaseError оставляют БД без изменений.
        """
        return await self.membership_repo.update_user_segments(user_id, segments_to_add, segments_to_remove)

    async def add_user_to_segment(self, segment_name: str, user_id: int) -> bool:
        return await self.membership_repo.add_user_to_segment(segment_name, user_id)

    async def remove_user_from_segment(self, segment_name: str, user_id: int) -> bool:
        return await self.membership_repo.remove_user_from_segment(segment_name, user_id)
