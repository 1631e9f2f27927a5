# Файл: segment_data_client/models/segment.py

from __future__ import annotations
from typing import List
from datetime import datetime
from pydantic import BaseModel, Field

from .membership import SegmentName


# Краткая информация о пользователе в контексте сегмента
class UserInfo(BaseModel):
    id: int
    username: str

    model_config = {"from_attributes": True}


class SegmentCreate(BaseModel):
    name: SegmentName


class SegmentInDB(BaseModel):
    name: str
    created_at: datetime

    model_config = {"from_attributes": True}


# Сегмент вместе со списком участников
class SegmentWithMembers(SegmentInDB):
    users: List[UserInfo] = Field(default_factory=list)
