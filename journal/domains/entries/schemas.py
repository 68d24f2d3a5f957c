from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EntryWrite(BaseModel):
    """Тело запроса для создания и обновления записи"""
    title: Optional[str] = None
    content: Optional[str] = None
    date: Optional[datetime] = None


class EntryCreate(EntryWrite):
    """Схема для создания записи"""
    pass


class EntryUpdate(EntryWrite):
    """Схема для обновления записи: всегда полная замена title/content/date"""
    pass


class EntrySummaryResponse(BaseModel):
    """Запись без содержимого, для списка"""
    id: str
    user_id: str
    title: str
    date: datetime
    preview: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EntryResponse(EntrySummaryResponse):
    """Полная запись"""
    content: str


class ErrorResponse(BaseModel):
    message: str
    errors: List[str] = Field(default_factory=list)
