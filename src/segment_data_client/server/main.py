# segment_data_client/server/main.py
from typing import Annotated, AsyncIterator, List

from fastapi import APIRouter, Depends, FastAPI, Path, Request, Response, status
from fastapi.responses import JSONResponse

from segment_data_client import SegmentClient, create_segment_client
from segment_data_client.exceptions import AlreadyExistsError, DatabaseError, NotFoundError
from segment_data_client.logging import configure
from segment_data_client.models import (UserCreate, UserUpdate, UserInDB, UserInfo,
                                        SegmentCreate, SegmentInDB, SegmentWithMembers,
                                        UserSegmentsUpdate)


async def get_client() -> AsyncIterator[SegmentClient]:
    """Клиент на запрос. В тестах подменяется через dependency_overrides."""
    client = create_segment_client()
    try:
        yield client
    finally:
        await client.aclose()


Client = Annotated[SegmentClient, Depends(get_client)]
# id вне BIGINT отсекается здесь (422), а не в asyncpg
UserId = Annotated[int, Path(ge=1, le=2**63 - 1)]

users_router = APIRouter(prefix="/users", tags=["Users"])
segments_router = APIRouter(prefix="/segments", tags=["Segments"])


# --- Пользователи ---

@users_router.get("", response_model=List[UserInDB])
async def list_users(client: Client):
    return await client.list_users()


@users_router.post("", response_model=UserInDB, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate, client: Client):
    return await client.create_user(user)


@users_router.get("/{user_id}", response_model=UserInDB)
async def get_user(user_id: UserId, client: Client):
    return await client.get_user(user_id)


@users_router.patch("/{user_id}", response_model=UserInDB)
async def update_user(user_id: UserId, patch: UserUpdate, client: Client):
    return await client.update_user(user_id, patch)


@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: UserId, client: Client):
    await client.delete_user(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.get("/{user_id}/segments", response_model=List[str])
async def get_user_segments(user_id: UserId, client: Client):
    return sorted(await client.get_user_segments(user_id))


@users_router.put("/{user_id}/segments", status_code=status.HTTP_204_NO_CONTENT)
async def update_user_segments(user_id: UserId, body: UserSegmentsUpdate, client: Client):
    """
    Пакетно добавляет/удаляет сегменты пользователя одной транзакцией.
    Имена, указанные в обоих списках, игнорируются.
    """
    await client.update_user_segments(user_id, body.segments_to_add, body.segments_to_remove)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Сегменты ---

@segments_router.get("", response_model=List[SegmentInDB])
async def list_segments(client: Client):
    return await client.list_segments()


@segments_router.post("", response_model=SegmentInDB, status_code=status.HTTP_201_CREATED)
async def create_segment(segment: SegmentCreate, client: Client):
    return await client.create_segment(segment)


@segments_router.get("/{name}", response_model=SegmentWithMembers)
async def get_segment(name: str, client: Client):
    return await client.get_segment(name)


@segments_router.delete("/{name}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_segment(name: str, client: Client):
    await client.delete_segment(name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@segments_router.get("/{name}/users", response_model=List[UserInfo])
async def get_segment_users(name: str, client: Client):
    return await client.get_segment_users(name)


@segments_router.put("/{name}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def add_user_to_segment(name: str, user_id: UserId, client: Client):
    await client.add_user_to_segment(name, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@segments_router.delete("/{name}/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user_from_segment(name: str, user_id: UserId, client: Client):
    await client.remove_user_from_segment(name, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Ошибки ядра -> HTTP ---

async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


async def _conflict(request: Request, exc: AlreadyExistsError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


async def _unavailable(request: Request, exc: DatabaseError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": "Storage is unavailable."})


def create_app() -> FastAPI:
    configure()
    app = FastAPI(title="Segment service")
    api = APIRouter(prefix="/api/v1")
    api.include_router(users_router)
    api.include_router(segments_router)
    app.include_router(api)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(AlreadyExistsError, _conflict)
    app.add_exception_handler(DatabaseError, _unavailable)
    return app
