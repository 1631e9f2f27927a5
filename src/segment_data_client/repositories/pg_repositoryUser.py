# Файл: segment_data_client/repositories/pg_repositoryUser.py

import logging
from typing import List, Optional

from sqlalchemy import select, delete, text
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession

from segment_data_client.db import UserORM
from segment_data_client.db.base import get_session
from segment_data_client.exceptions import AlreadyExistsError, DatabaseError, UserNotFoundError
from segment_data_client.models.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def check_connection(self):
        """Проверяет соединение с базой данных, выполняя простой запрос."""
        logger.debug("Checking PostgreSQL connection...")
        async with get_session(self._session_factory) as session:
            try:
                await session.execute(text("SELECT 1"))
                logger.debug("PostgreSQL connection successful.")
            except SQLAlchemyError as e:
                logger.error(f"PostgreSQL connection failed: {e}")
                raise DatabaseError("Failed to connect to the database.") from e

    async def create_user(self, user_data: UserCreate) -> UserORM:
        """Создает нового пользователя (без сегментов)."""
        user = UserORM(**user_data.model_dump())
        async with get_session(self._session_factory) as session:
            try:
                session.add(user)
                await session.commit()
                await session.refresh(user, attribute_names=["id", "created_at", "segments"])
                logger.info(f"Created user '{user.username}' with id {user.id}")
                return user
            except IntegrityError as e:
                await session.rollback()
                # Перевыбрасываем как кастомное исключение, чтобы API мог его поймать
                raise AlreadyExistsError(f"User with username '{user_data.username}' already exists.") from e
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError(f"Failed to create user: {e}") from e

    async def get_by_id(self, user_id: int) -> Optional[UserORM]:
        """Находит пользователя по id вместе с его сегментами."""
        async with get_session(self._session_factory) as session:
            try:
                result = await session.execute(
                    select(UserORM).where(UserORM.id == user_id).options(selectinload(UserORM.segments))
                )
                return result.scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error(f"Failed to get user {user_id}: {e}")
                raise DatabaseError(f"Failed to get user: {e}") from e

    async def list_users(self) -> List[UserORM]:
        async with get_session(self._session_factory) as session:
            try:
                result = await session.execute(
                    select(UserORM).options(selectinload(UserORM.segments)).order_by(UserORM.id)
                )
                return list(result.scalars().all())
            except SQLAlchemyError as e:
                logger.error(f"Failed to list users: {e}")
                raise DatabaseError(f"Failed to list users: {e}") from e

    async def update_user(self, user_id: int, patch: UserUpdate) -> UserORM:
        """
        Обновляет переданные поля пользователя.
        Сегменты здесь не меняются, для этого есть MembershipRepository.
        """
        values = patch.model_dump(exclude_unset=True, exclude_none=True)
        async with get_session(self._session_factory) as session:
            try:
                user = await session.get(UserORM, user_id, options=[selectinload(UserORM.segments)])
                if user is None:
                    raise UserNotFoundError(user_id)
                for field, value in values.items():
                    setattr(user, field, value)
                await session.commit()
                logger.info(f"Updated user {user_id}: {sorted(values)}")
                return user
            except IntegrityError as e:
                await session.rollback()
                raise AlreadyExistsError(f"User with username '{values.get('username')}' already exists.") from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error on updating user {user_id}: {e}")
                raise DatabaseError(f"Failed to update user {user_id}: {e}") from e

    async def delete_user(self, user_id: int) -> None:
        """Удаляет пользователя. Его членства в сегментах удаляются каскадом в БД."""
        async with get_session(self._session_factory) as session:
            try:
                result = await session.execute(delete(UserORM).where(UserORM.id == user_id))
                if result.rowcount == 0:
                    raise UserNotFoundError(user_id)
                await session.commit()
                logger.info(f"Deleted user {user_id}")
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Failed to delete user {user_id}: {e}")
                raise DatabaseError(f"Failed to delete user: {e}") from e
