import logging
from typing import TYPE_CHECKING, List

from journal.core.errors import NotFound, ValidationError
from journal.domains.entries.entities import Entry
from journal.domains.entries.schemas import EntryCreate, EntryUpdate, EntryWrite

if TYPE_CHECKING:
    from journal.db.repositories.entry_repository import EntryRepository

logger = logging.getLogger(__name__)


class EntryService:
    """Сервис для работы с записями дневника"""

    def __init__(self, repository: "EntryRepository"):
        self.repository = repository

    @staticmethod
    def _require_content(data: EntryWrite) -> str:
        if data.content is None or not data.content.strip():
            raise ValidationError("Content is required", ["content is required"])
        return data.content

    @staticmethod
    def _validate(entry: Entry) -> None:
        result = entry.validate()
        if not result.is_valid:
            raise ValidationError("Validation failed", result.errors)

    async def create_entry(self, user_id: str, data: EntryCreate) -> Entry:
        """Создание новой записи"""
        content = self._require_content(data)

        entry = Entry(
            id=Entry.new_id(),
            user_id=user_id,
            title=data.title,
            content=content,
            date=data.date,
        )
        entry.generate_preview()
        self._validate(entry)

        await self.repository.save(entry)
        logger.info(f"Created entry {entry.id} for user {user_id}")
        return entry

    async def get_entry(self, user_id: str, entry_id: str) -> Entry:
        """Получение записи с содержимым"""
        return await self.repository.get(user_id, entry_id)

    async def list_entries(self, user_id: str) -> List[Entry]:
        """Сводки всех записей пользователя, новые первыми"""
        return await self.repository.list(user_id)

    async def update_entry(self, user_id: str, entry_id: str, data: EntryUpdate) -> Entry:
        """Полная замена title/content/date существующей записи"""
        content = self._require_content(data)
        existing = await self.repository.get(user_id, entry_id)

        entry = Entry(
            id=existing.id,
            user_id=user_id,
            title=data.title,
            content=content,
            date=data.date or existing.date,
            created_at=existing.created_at,
            updated_at=existing.updated_at,
        )
        entry.generate_preview()
        entry.touch()
        self._validate(entry)

        await self.repository.save(entry)
        logger.info(f"Updated entry {entry.id} for user {user_id}")
        return entry

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        """Удаление записи; сначала проверяем, что она существует"""
        if not await self.repository.exists(user_id, entry_id):
            raise NotFound()
        await self.repository.delete(user_id, entry_id)
        logger.info(f"Deleted entry {entry_id} for user {user_id}")
