import logging
from typing import Any, Dict, List, Union

import httpx

from journal.client.session import JournalSession
from journal.core.errors import InternalError, NotFound, Unauthorized, ValidationError
from journal.domains.entries.entities import Entry, format_timestamp

logger = logging.getLogger(__name__)


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def raise_for_status(response: httpx.Response) -> None:
    """Ответ API с ошибкой -> исключение из таксономии приложения"""
    if response.is_success:
        return

    body = _error_body(response)
    message = body.get("message") or response.reason_phrase

    if response.status_code == 400:
        raise ValidationError(message, body.get("errors"))
    if response.status_code == 401:
        raise Unauthorized(message)
    if response.status_code == 404:
        raise NotFound(message)
    raise InternalError(message)


class EntriesClient:
    """HTTP-клиент API записей"""

    def __init__(self, session: JournalSession):
        self.session = session

    @staticmethod
    def _payload(entry: Entry) -> Dict[str, Any]:
        return {
            "title": entry.title,
            "content": entry.content,
            "date": format_timestamp(entry.date),
        }

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self.session.request(method, url, **kwargs)
        raise_for_status(response)
        return response

    async def create_entry(self, entry: Entry) -> Entry:
        logger.debug(f"create_entry title={entry.title}")
        response = await self._send("POST", "/entries", json=self._payload(entry))
        return Entry.from_client_json(response.json())

    async def list_entries(self) -> List[Entry]:
        """Все записи, только метаданные"""
        response = await self._send("GET", "/entries")
        return [Entry.from_client_json(data) for data in response.json()]

    async def get_entry(self, entry_id: str) -> Entry:
        response = await self._send("GET", f"/entries/{entry_id}")
        return Entry.from_client_json(response.json())

    async def update_entry(self, entry: Entry) -> Entry:
        logger.debug(f"update_entry id={entry.id}")
        response = await self._send("PUT", f"/entries/{entry.id}", json=self._payload(entry))
        return Entry.from_client_json(response.json())

    async def delete_entry(self, entry_or_id: Union[str, Entry]) -> None:
        entry_id = entry_or_id if isinstance(entry_or_id, str) else entry_or_id.id
        await self._send("DELETE", f"/entries/{entry_id}")

    async def save_entry(self, entry: Entry) -> Entry:
        """Обновление существующей записи или создание новой"""
        if entry.is_new():
            return await self.create_entry(entry)
        return await self.update_entry(entry)
