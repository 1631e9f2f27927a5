# Файл: segment_data_client/models/membership.py

from typing import Annotated, List
from pydantic import BaseModel, Field, StringConstraints

# Пустые и пробельные имена отсекаются здесь, до вызова ядра
SegmentName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class UserSegmentsUpdate(BaseModel):
    """Тело запроса на пакетное изменение сегментов пользователя."""
    segments_to_add: List[SegmentName] = Field(default_factory=list)
    segments_to_remove: List[SegmentName] = Field(default_factory=list)
