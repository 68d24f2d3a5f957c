import asyncio
import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from journal.core.errors import InvalidEntry, NotFound, StorageFailure
from journal.domains.entries.entities import (
    KEY_SUFFIX,
    Entry,
    storage_key,
    user_prefix,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE = "text/markdown; charset=utf-8"
_NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}


def _is_not_found(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in _NOT_FOUND_CODES or status == 404


class EntryRepository:
    """Хранилище записей в S3: один объект users/{userId}/{entryId}.md на запись.

    Тело объекта - markdown, остальные поля - пользовательские метаданные.
    Вызовы boto3 блокирующие, поэтому выполняются в потоках.
    """

    def __init__(self, client, bucket: str, list_concurrency: int = 16):
        self.client = client
        self.bucket = bucket
        self.list_concurrency = max(1, list_concurrency)

    async def _call(self, operation: str, **kwargs) -> Dict[str, Any]:
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, Bucket=self.bucket, **kwargs)
        except ClientError as e:
            if _is_not_found(e):
                raise NotFound() from e
            logger.error(f"S3 {operation} failed for {kwargs.get('Key') or kwargs.get('Prefix')}: {e}")
            raise StorageFailure(f"Storage operation {operation} failed") from e
        except BotoCoreError as e:
            logger.error(f"S3 {operation} failed: {e}")
            raise StorageFailure(f"Storage operation {operation} failed") from e

    async def save(self, entry: Entry) -> Entry:
        """Запись объекта; последний записавший побеждает"""
        if not entry.user_id or not entry.id:
            raise InvalidEntry("Entry must have userId and id", ["userId and id are required"])

        await self._call(
            "put_object",
            Key=storage_key(entry.user_id, entry.id),
            Body=entry.content.encode("utf-8"),
            ContentType=CONTENT_TYPE,
            Metadata=entry.to_storage_metadata(),
        )
        logger.debug(f"Saved entry {entry.id} for user {entry.user_id}")
        return entry

    async def get(self, user_id: str, entry_id: str) -> Entry:
        response = await self._call("get_object", Key=storage_key(user_id, entry_id))
        body = await asyncio.to_thread(response["Body"].read)
        s3_object = dict(response, Body=body.decode("utf-8"))
        return Entry.from_storage_object_with_body(s3_object, user_id, entry_id)

    async def exists(self, user_id: str, entry_id: str) -> bool:
        try:
            await self._call("head_object", Key=storage_key(user_id, entry_id))
        except NotFound:
            return False
        return True

    async def _list_keys(self, user_id: str) -> List[Dict[str, Any]]:
        objects = []
        token: Optional[str] = None
        while True:
            kwargs = {"Prefix": user_prefix(user_id), "Delimiter": "/"}
            if token:
                kwargs["ContinuationToken"] = token
            page = await self._call("list_objects_v2", **kwargs)
            objects.extend(
                obj for obj in page.get("Contents", []) if obj["Key"].endswith(KEY_SUFFIX)
            )
            if not page.get("IsTruncated"):
                return objects
            token = page.get("NextContinuationToken")

    async def list(self, user_id: str) -> List[Entry]:
        """Сводки записей пользователя, новые первыми.

        ListObjectsV2 не возвращает пользовательские метаданные, поэтому
        для каждого ключа делается отдельный HeadObject, параллельно.
        При равных датах сохраняется порядок листинга (по ключу).
        """
        objects = await self._list_keys(user_id)
        semaphore = asyncio.Semaphore(self.list_concurrency)

        async def head(obj: Dict[str, Any]) -> Optional[Entry]:
            async with semaphore:
                try:
                    response = await self._call("head_object", Key=obj["Key"])
                except NotFound:
                    # удален между листингом и HeadObject
                    return None
            return Entry.from_storage_object(
                {
                    "Key": obj["Key"],
                    "Metadata": response.get("Metadata"),
                    "LastModified": response.get("LastModified") or obj.get("LastModified"),
                },
                user_id,
            )

        entries = [e for e in await asyncio.gather(*(head(obj) for obj in objects)) if e]
        return sorted(entries, key=lambda e: e.date, reverse=True)

    async def delete(self, user_id: str, entry_id: str) -> None:
        await self._call("delete_object", Key=storage_key(user_id, entry_id))
        logger.debug(f"Deleted entry {entry_id} for user {user_id}")
