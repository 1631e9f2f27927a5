# Файл: src/segment_data_client/__init__.py

from typing import Optional
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from .client import SegmentClient
from .config import get_settings, SegmentClientConfig, PostgresConfig
from .repositories import UserRepository, SegmentRepository, MembershipRepository
from .reconciler import MembershipDelta, compute_membership_delta

from .exceptions import *


def create_segment_client(config: Optional[SegmentClientConfig] = None) -> SegmentClient:
    """
    Фабричная функция для создания и конфигурации SegmentClient.

    :param config: Единый объект с настройками.
                   Если не предоставлен, используются переменные окружения.
    :return: Сконфигурированный экземпляр SegmentClient.
    """
    # Если конфиг не передан, собираем его из .env / окружения
    if config is None:
        config = get_settings().to_client_config()

    engine = create_async_engine(
        config.postgres.get_pg_dsn(),
        pool_size=config.postgres.pool_size,
        max_overflow=config.postgres.max_overflow,
        pool_timeout=config.postgres.pool_timeout,
        pool_recycle=config.postgres.pool_recycle,
        pool_pre_ping=config.postgres.pool_pre_ping,
        connect_args={
            "server_settings": {
                "application_name": config.postgres.application_name
            }
        },
    )

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)

    return SegmentClient(
        user_repo=UserRepository(session_factory),
        segment_repo=SegmentRepository(session_factory),
        membership_repo=MembershipRepository(session_factory),
        engine=engine,
    )


__all__ = [
    "SegmentClient", "create_segment_client",
    "SegmentClientConfig", "PostgresConfig",
    "MembershipDelta", "compute_membership_delta",
    "SegmentClientError", "DatabaseError", "AlreadyExistsError",
    "NotFoundError", "UserNotFoundError", "SegmentNotFoundError",
]
