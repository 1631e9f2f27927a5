# Файл: segment_data_client/repositories/pg_repositorySegment.py

import logging
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from segment_data_client.db import SegmentORM, UserORM
from segment_data_client.db.base import get_session
from segment_data_client.exceptions import AlreadyExistsError, DatabaseError, SegmentNotFoundError
from segment_data_client.models.segment import SegmentCreate

logger = logging.getLogger(__name__)


class SegmentRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def create_segment(self, segment_data: SegmentCreate) -> SegmentORM:
        """Создает новый сегмент."""
        new_segment = SegmentORM(name=segment_data.name)
        async with get_session(self._session_factory) as session:
            try:
                session.add(new_segment)
                await session.commit()
                await session.refresh(new_segment, attribute_names=["created_at"])
                logger.info(f"Created segment '{new_segment.name}'")
                return new_segment
            except IntegrityError as e:
                await session.rollback()
                raise AlreadyExistsError(f"Segment with name '{segment_data.name}' already exists.") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to create segment: {e}") from e

    async def get_by_name(self, name: str, with_members: bool = False) -> Optional[SegmentORM]:
        """Находит сегмент по имени. Опционально подгружает его участников."""
        async with get_session(self._session_factory) as session:
            query = select(SegmentORM).where(SegmentORM.name == name)
            if with_members:
                # selectinload - эффективный способ загрузить связанные объекты
                query = query.options(selectinload(SegmentORM.users))
            try:
                result = await session.execute(query)
                return result.scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error(f"Failed to get segment '{name}': {e}")
                raise DatabaseError(f"Failed to get segment: {e}") from e

    async def list_segments(self) -> List[SegmentORM]:
        """Возвращает список всех сегментов."""
        async with get_session(self._session_factory) as session:
            try:
                result = await session.execute(select(SegmentORM).order_by(SegmentORM.name))
                return list(result.scalars().all())
            except SQLAlchemyError as e:
                logger.error(f"Failed to list segments: {e}")
                raise DatabaseError(f"Failed to list segments: {e}") from e

    async def delete_segment(self, name: str) -> None:
        """Удаляет сегмент. Членства пользователей в нем удаляются каскадом в БД."""
        async with get_session(self._session_factory) as session:
            try:
                result = await session.execute(delete(SegmentORM).where(SegmentORM.name == name))
                if result.rowcount == 0:
                    raise SegmentNotFoundError([name])
                await session.commit()
                logger.info(f"Deleted segment '{name}'")
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to delete segment '{name}': {e}")
                raise DatabaseError(f"Failed to delete segment: {e}") from e

    async def get_segment_users(self, name: str) -> List[UserORM]:
        """Участники сегмента. SegmentNotFoundError, если сегмента нет."""
        segment = await self.get_by_name(name, with_members=True)
        if segment is None:
            raise SegmentNotFoundError([name])
        return list(segment.users)
