# Файл: segment_data_client/repositories/pg_repositoryMembership.py

import logging
from typing import Iterable, Set

from sqlalchemy import select, delete
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from segment_data_client.db import UserORM, SegmentORM, UserSegmentORM
from segment_data_client.db.base import get_session
from segment_data_client.db.uow import AsyncUnitOfWork
from segment_data_client.exceptions import DatabaseError, UserNotFoundError, SegmentNotFoundError
from segment_data_client.reconciler import MembershipDelta, compute_membership_delta

logger = logging.getLogger(__name__)


class MembershipRepository:
    """
    Репозиторий связи пользователь <-> сегмент (таблица user_segments).
    Единственный путь записи в эту таблицу.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    # ――― проверки существования ――― #

    async def _ensure_user(self, session: AsyncSession, user_id: int, lock: bool = False) -> None:
        query = select(UserORM.id).where(UserORM.id == user_id)
        if lock:
            # FOR KEY SHARE: удаление пользователя ждет конца нашей транзакции
            query = query.with_for_update(key_share=True)
        found = await session.scalar(query)
        if found is None:
            raise UserNotFoundError(user_id)

    async def _ensure_segments(self, session: AsyncSession, names: Set[str], lock: bool = False) -> None:
        if not names:
            return
        query = select(SegmentORM.name).where(SegmentORM.name.in_(names))
        if lock:
            query = query.with_for_update(key_share=True)
        result = await session.execute(query)
        missing = names - set(result.scalars().all())
        if missing:
            raise SegmentNotFoundError(missing)

    async def _current_segments(self, session: AsyncSession, user_id: int) -> Set[str]:
        result = await session.execute(
            select(UserSegmentORM.segment_name).where(UserSegmentORM.user_id == user_id)
        )
        return set(result.scalars().all())

    # ――― чтение ――― #

    async def get_user_segments(self, user_id: int) -> Set[str]:
        """Имена сегментов пользователя. UserNotFoundError, если пользователя нет."""
        async with get_session(self._session_factory) as session:
            try:
                await self._ensure_user(session, user_id)
                return await self._current_segments(session, user_id)
            except SQLAlchemyError as e:
                logger.error(f"Failed to read segments of user {user_id}: {e}")
                raise DatabaseError(f"Failed to read user segments: {e}") from e

    # ――― запись ――― #

    async def apply_membership_change(
        self,
        session: AsyncSession,
        user_id: int,
        to_add: Iterable[str],
        to_remove: Iterable[str],
    ) -> None:
        """
        Применяет уже посчитанную дельту в рамках переданной сессии (транзакции).
        Дубликаты при вставке пропускаются (ON CONFLICT DO NOTHING),
        удаление отсутствующей строки - не ошибка.
        """
        add_names = sorted(set(to_add))
        remove_names = sorted(set(to_remove))

        if add_names:
            stmt = (
                pg_insert(UserSegmentORM.__table__)
                .values([{"user_id": user_id, "segment_name": name} for name in add_names])
                .on_conflict_do_nothing(index_elements=["user_id", "segment_name"])
            )
            await session.execute(stmt)

        if remove_names:
            stmt = delete(UserSegmentORM).where(
                UserSegmentORM.user_id == user_id,
                UserSegmentORM.segment_name.in_(remove_names),
            )
            await session.execute(stmt)

    async def update_user_segments(
        self,
        user_id: int,
        segments_to_add: Iterable[str],
        segments_to_remove: Iterable[str],
    ) -> MembershipDelta:
        """
        Пакетно добавляет/удаляет сегменты пользователя одной транзакцией.

        Имена, запрошенные и на добавление, и на удаление, не трогаются.
        Если нет пользователя или хотя бы одного из упомянутых сегментов -
        NotFound и ни одной записи в БД. Возвращает примененную дельту.
        """
        add_names = set(segments_to_add)
        remove_names = set(segments_to_remove)

        try:
            async with AsyncUnitOfWork(self._session_factory) as uow:
                await self._ensure_user(uow.session, user_id, lock=True)
                await self._ensure_segments(uow.session, add_names | remove_names, lock=True)

                current = await self._current_segments(uow.session, user_id)
                delta = compute_membership_delta(current, add_names, remove_names)
                if delta.cancelled:
                    logger.debug(f"User {user_id}: ignoring segments requested both ways: {sorted(delta.cancelled)}")

                await self.apply_membership_change(uow.session, user_id, delta.to_add, delta.to_remove)
        except SQLAlchemyError as e:
            logger.error(f"Failed to update segments of user {user_id}: {e}")
            raise DatabaseError(f"Failed to update user segments: {e}") from e

        logger.info(
            f"Updated segments of user {user_id}: added {delta.sorted_add()}, removed {delta.sorted_remove()}, "
            f"now in {sorted(delta.apply_to(current))}"
        )
        return delta

    async def add_user_to_segment(self, segment_name: str, user_id: int) -> bool:
        """Добавляет пользователя в сегмент. Возвращает False, если он уже там был."""
        try:
            async with AsyncUnitOfWork(self._session_factory) as uow:
                await self._ensure_segments(uow.session, {segment_name}, lock=True)
                await self._ensure_user(uow.session, user_id, lock=True)
                stmt = (
                    pg_insert(UserSegmentORM.__table__)
                    .values(user_id=user_id, segment_name=segment_name)
                    .on_conflict_do_nothing(index_elements=["user_id", "segment_name"])
                )
                affected = (await uow.session.execute(stmt)).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to add user {user_id} to segment '{segment_name}': {e}")
            raise DatabaseError(f"Failed to add user to segment: {e}") from e

        if affected:
            logger.info(f"Added user {user_id} to segment '{segment_name}'")
            return True
        logger.warning(f"User {user_id} is already in segment '{segment_name}'")
        return False

    async def remove_user_from_segment(self, segment_name: str, user_id: int) -> bool:
        """Удаляет пользователя из сегмента. Возвращает False, если его там не было."""
        try:
            async with AsyncUnitOfWork(self._session_factory) as uow:
                await self._ensure_segments(uow.session, {segment_name}, lock=True)
                await self._ensure_user(uow.session, user_id, lock=True)
                stmt = delete(UserSegmentORM).where(
                    UserSegmentORM.user_id == user_id,
                    UserSegmentORM.segment_name == segment_name,
                )
                affected = (await uow.session.execute(stmt)).rowcount
        except SQLAlchemyError as e:
            logger.error(f"Failed to remove user {user_id} from segment '{segment_name}': {e}")
            raise DatabaseError(f"Failed to remove user from segment: {e}") from e

        if affected:
            logger.info(f"Removed user {user_id} from segment '{segment_name}'")
            return True
        logger.warning(f"User {user_id} was not in segment '{segment_name}'")
        return False
