import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from journal.core.auth import get_current_user_id
from journal.core.config import settings
from journal.core.errors import ValidationError
from journal.core.storage import get_s3_client
from journal.db.repositories.entry_repository import EntryRepository
from journal.domains.entries.schemas import (
    EntryCreate, EntryUpdate, EntryResponse, EntrySummaryResponse, ErrorResponse
)
from journal.domains.entries.services import EntryService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/entries",
    tags=["entries"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


def get_entry_service(client=Depends(get_s3_client)) -> EntryService:
    repository = EntryRepository(client, settings.bucket_name, settings.list_concurrency)
    return EntryService(repository)


def _require_id(entry_id: str) -> str:
    if not entry_id or not entry_id.strip():
        raise ValidationError("Entry ID is required", ["id is required"])
    return entry_id


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    entry_data: EntryCreate,
    user_id: str = Depends(get_current_user_id),
    entry_service: EntryService = Depends(get_entry_service),
):
    """Создание новой записи"""
    logger.info(f"Create entry for user {user_id}")
    entry = await entry_service.create_entry(user_id, entry_data)
    return EntryResponse.model_validate(entry.to_client_json())


@router.get("", response_model=List[EntrySummaryResponse])
async def list_entries(
    user_id: str = Depends(get_current_user_id),
    entry_service: EntryService = Depends(get_entry_service),
):
    """Список записей пользователя без содержимого"""
    logger.info(f"List entries for user {user_id}")
    entries = await entry_service.list_entries(user_id)
    return [EntrySummaryResponse.model_validate(entry.to_summary_json()) for entry in entries]


@router.get("/{entry_id}", response_model=EntryResponse, responses={404: {"model": ErrorResponse}})
async def get_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    entry_service: EntryService = Depends(get_entry_service),
):
    """Получение записи с полным markdown"""
    logger.info(f"Get entry {entry_id} for user {user_id}")
    entry = await entry_service.get_entry(user_id, _require_id(entry_id))
    return EntryResponse.model_validate(entry.to_client_json())


@router.put("/{entry_id}", response_model=EntryResponse, responses={404: {"model": ErrorResponse}})
async def update_entry(
    entry_id: str,
    update_data: EntryUpdate,
    user_id: str = Depends(get_current_user_id),
    entry_service: EntryService = Depends(get_entry_service),
):
    """Обновление записи (используется автосохранением)"""
    logger.info(f"Update entry {entry_id} for user {user_id}")
    entry = await entry_service.update_entry(user_id, _require_id(entry_id), update_data)
    return EntryResponse.model_validate(entry.to_client_json())


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    entry_service: EntryService = Depends(get_entry_service),
):
    """Удаление записи"""
    logger.info(f"Delete entry {entry_id} for user {user_id}")
    await entry_service.delete_entry(user_id, _require_id(entry_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
