from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from segment_data_client.exceptions import (AlreadyExistsError, DatabaseError,
                                            SegmentNotFoundError, UserNotFoundError)
from segment_data_client.models import SegmentInDB, UserInDB
from segment_data_client.reconciler import compute_membership_delta
from segment_data_client.server.main import create_app, get_client

NOW = datetime(2023, 8, 1, tzinfo=timezone.utc)


class FakeSegmentClient:
    """Клиент в памяти: пользователь 1 в сегменте 'red', сегменты red/blue."""

    def __init__(self):
        self.segments = {"red", "blue"}
        self.memberships = {1: {"red"}}
        self.fail_with = None

    async def get_user(self, user_id):
        if user_id not in self.memberships:
            raise UserNotFoundError(user_id)
        return UserInDB(id=user_id, firstname="A", lastname="B", username="ab",
                        created_at=NOW, segments=sorted(self.memberships[user_id]))

    async def create_user(self, user):
        if user.username == "taken":
            raise AlreadyExistsError("User with username 'taken' already exists.")
        return UserInDB(id=2, created_at=NOW, **user.model_dump())

    async def list_segments(self):
        if self.fail_with:
            raise self.fail_with
        return [SegmentInDB(name=name, created_at=NOW) for name in sorted(self.segments)]

    async def get_user_segments(self, user_id):
        if user_id not in self.memberships:
            raise UserNotFoundError(user_id)
        return set(self.memberships[user_id])

    async def update_user_segments(self, user_id, segments_to_add, segments_to_remove):
        if user_id not in self.memberships:
            raise UserNotFoundError(user_id)
        missing = (set(segments_to_add) | set(segments_to_remove)) - self.segments
        if missing:
            raise SegmentNotFoundError(missing)
        delta = compute_membership_delta(self.memberships[user_id], segments_to_add, segments_to_remove)
        self.memberships[user_id] = set(delta.apply_to(self.memberships[user_id]))
        return delta

    async def add_user_to_segment(self, segment_name, user_id):
        if segment_name not in self.segments:
            raise SegmentNotFoundError([segment_name])
        if user_id not in self.memberships:
            raise UserNotFoundError(user_id)
        added = segment_name not in self.memberships[user_id]
        self.memberships[user_id].add(segment_name)
        return added


@pytest.fixture
def fake_client():
    return FakeSegmentClient()


@pytest.fixture
def http(fake_client):
    app = create_app()
    app.dependency_overrides[get_client] = lambda: fake_client
    with TestClient(app) as client:
        yield client


def test_update_user_segments_returns_no_content(http, fake_client):
    response = http.put(
        "/api/v1/users/1/segments",
        json={"segments_to_add": ["blue", "blue"], "segments_to_remove": ["red"]},
    )

    assert response.status_code == 204
    assert fake_client.memberships[1] == {"blue"}
    assert http.get("/api/v1/users/1/segments").json() == ["blue"]


def test_unknown_user_is_404(http):
    response = http.put("/api/v1/users/42/segments", json={"segments_to_add": ["red"]})

    assert response.status_code == 404
    assert "42" in response.json()["detail"]


def test_unknown_segment_is_404(http):
    response = http.put("/api/v1/users/1/segments", json={"segments_to_add": ["ghost"]})

    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_blank_segment_name_is_rejected(http, fake_client):
    response = http.put("/api/v1/users/1/segments", json={"segments_to_remove": ["   "]})

    assert response.status_code == 422
    assert fake_client.memberships[1] == {"red"}


def test_get_user(http):
    response = http.get("/api/v1/users/1")

    assert response.status_code == 200
    assert response.json()["segments"] == ["red"]


def test_duplicate_username_is_409(http):
    response = http.post("/api/v1/users", json={"firstname": "A", "lastname": "B", "username": "taken"})

    assert response.status_code == 409


def test_store_failure_is_503(http, fake_client):
    fake_client.fail_with = DatabaseError("connection refused")

    response = http.get("/api/v1/segments")

    assert response.status_code == 503
    assert response.json() == {"detail": "Storage is unavailable."}


def test_add_user_to_segment_uses_put(http, fake_client):
    response = http.put("/api/v1/segments/blue/users/1")

    assert response.status_code == 204
    assert fake_client.memberships[1] == {"red", "blue"}
    assert http.post("/api/v1/segments/blue/users/1").status_code == 405


@pytest.mark.parametrize("user_id", ["0", "-1", str(2**63), "99999999999999999999"])
def test_user_id_out_of_bigint_range_is_422(http, user_id):
    assert http.get(f"/api/v1/users/{user_id}").status_code == 422
    assert http.put(f"/api/v1/users/{user_id}/segments", json={}).status_code == 422
