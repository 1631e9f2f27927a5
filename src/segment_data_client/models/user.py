# Файл: segment_data_client/models/user.py

from __future__ import annotations
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    firstname: str = Field(..., min_length=1, max_length=128)
    lastname: str = Field(..., min_length=1, max_length=128)
    username: str = Field(..., min_length=1, max_length=128)


# PATCH: меняются только переданные поля
class UserUpdate(BaseModel):
    firstname: Optional[str] = Field(None, min_length=1, max_length=128)
    lastname: Optional[str] = Field(None, min_length=1, max_length=128)
    username: Optional[str] = Field(None, min_length=1, max_length=128)


class UserInDB(UserCreate):
    id: int
    created_at: datetime
    segments: List[str] = []

    model_config = {"from_attributes": True}
