import os
import pytest
import pytest_asyncio
from testcontainers.postgres import PostgresContainer
from sqlalchemy.ext.asyncio import create_async_engine

# Импортируем Base для создания/удаления таблиц
from segment_data_client.db.base import Base
# Импортируем нашу фабрику, чтобы тесты работали как реальное приложение
from segment_data_client import SegmentClient, SegmentClientConfig, PostgresConfig, create_segment_client
from segment_data_client import config as config_module


@pytest.fixture(scope="session")
def postgres_config():
    """
    Запускает контейнер PostgreSQL один раз на всю тестовую сессию.
    Устанавливает переменные окружения, которые прочитает get_settings().
    """
    postgres = PostgresContainer("postgres:15")
    postgres.start()

    pg = PostgresConfig(
        user=postgres.username,
        password=postgres.password,
        db=postgres.dbname,
        host=postgres.get_container_host_ip(),
        port=int(postgres.get_exposed_port(5432)),
    )
    os.environ["POSTGRES__USER"] = pg.user
    os.environ["POSTGRES__PASSWORD"] = pg.password
    os.environ["POSTGRES__DB"] = pg.db
    os.environ["POSTGRES__HOST"] = pg.host
    os.environ["POSTGRES__PORT"] = str(pg.port)
    # Настройки могли закэшироваться до старта контейнера
    config_module._cached_settings = None

    yield pg
    postgres.stop()


@pytest_asyncio.fixture(scope="function")
async def db_engine(postgres_config):
    """
    Создает движок для тестовой БД и создает в ней все таблицы.
    После теста все таблицы удаляются для полной изоляции.
    """
    engine = create_async_engine(postgres_config.get_pg_dsn())

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def segment_client(db_engine, postgres_config) -> SegmentClient:
    """
    Собирает SegmentClient через фабрику create_segment_client,
    как это делает реальное приложение.
    """
    client = create_segment_client(SegmentClientConfig(postgres=postgres_config))
    yield client
    await client.aclose()
