import re
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union
from urllib.parse import quote, unquote

DEFAULT_TITLE = "Untitled"
MAX_TITLE_LENGTH = 200
MAX_CONTENT_BYTES = 10 * 1024 * 1024
PREVIEW_LENGTH = 200
MAX_METADATA_BYTES = 2048  # лимит S3 на пользовательские метаданные

KEY_PREFIX = "users"
KEY_SUFFIX = ".md"

_HEADER_RE = re.compile(r"^#+\s+", re.MULTILINE)
_FORMATTING_RE = re.compile(r"[*_~`]")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_NEWLINES_RE = re.compile(r"\n+")
_ID_ALPHABET = string.digits + string.ascii_lowercase

Timestamp = Union[datetime, str, None]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """ISO-8601 строка или datetime -> aware datetime в UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_or(value: Timestamp, default: datetime) -> datetime:
    """Как parse_timestamp, но пустое или нечитаемое значение заменяется на default"""
    try:
        return parse_timestamp(value) or default
    except (TypeError, ValueError):
        return default


def format_timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def user_prefix(user_id: str) -> str:
    """Префикс ключей пользователя.

    user_id экранируется целиком, поэтому '/' в нем не создает
    вложенный префикс внутри чужого раздела.
    """
    return f"{KEY_PREFIX}/{quote(user_id, safe='')}/"


def storage_key(user_id: str, entry_id: str) -> str:
    return f"{user_prefix(user_id)}{entry_id}{KEY_SUFFIX}"


def entry_id_from_key(key: str) -> str:
    name = key.rsplit("/", 1)[-1]
    if name.endswith(KEY_SUFFIX):
        name = name[: -len(KEY_SUFFIX)]
    return name


def strip_markdown(content: str) -> str:
    """Грубое приближение plain text для превью, не полный парсер markdown"""
    text = _HEADER_RE.sub("", content)
    text = _FORMATTING_RE.sub("", text)
    text = _LINK_RE.sub(r"\1", text)
    text = _NEWLINES_RE.sub(" ", text)
    return text.strip()


def make_preview(content: str, max_length: int = PREVIEW_LENGTH) -> str:
    if not content:
        return ""
    plain_text = strip_markdown(content)
    if len(plain_text) > max_length:
        return plain_text[:max_length] + "..."
    return plain_text


def _quote_within(text: str, limit: int) -> str:
    """Percent-encoded префикс text длиной не больше limit байт, по границе символа"""
    parts = []
    size = 0
    for char in text:
        encoded = quote(char, safe="")
        if size + len(encoded) > limit:
            break
        parts.append(encoded)
        size += len(encoded)
    return "".join(parts)


@dataclass
class EntryMetadata:
    """Типизированные метаданные объекта в хранилище.

    Каждое поле читается по одному правилу: значение из метаданных ->
    LastModified объекта -> фиксированное значение по умолчанию.
    Значения хранятся percent-encoded, т.к. S3 принимает в
    пользовательских метаданных только ASCII.
    """

    title: str = DEFAULT_TITLE
    date: datetime = field(default_factory=utcnow)
    preview: str = ""
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_s3(self) -> Dict[str, str]:
        """Карта метаданных для PutObject.

        Суммарный размер ключей и значений не превышает MAX_METADATA_BYTES:
        сначала укорачивается превью, затем заголовок.
        """
        metadata = {
            "title": "",
            "date": format_timestamp(self.date),
            "preview": "",
            "created-at": format_timestamp(self.created_at),
            "updated-at": format_timestamp(self.updated_at),
        }
        budget = MAX_METADATA_BYTES - sum(len(k) + len(v) for k, v in metadata.items())

        title = self.title or DEFAULT_TITLE
        metadata["title"] = _quote_within(title, budget)
        budget -= len(metadata["title"])

        preview = self.preview[:PREVIEW_LENGTH]
        metadata["preview"] = quote(preview, safe="")
        if len(metadata["preview"]) > budget:
            metadata["preview"] = _quote_within(preview, budget - 3) + "..." if budget >= 3 else ""
        return metadata

    @classmethod
    def from_s3(
        cls,
        metadata: Optional[Mapping[str, str]],
        last_modified: Optional[datetime] = None,
        content: Optional[str] = None,
    ) -> "EntryMetadata":
        metadata = {k.lower(): v for k, v in (metadata or {}).items()}
        fallback = parse_timestamp(last_modified) or utcnow()

        if "preview" in metadata:
            preview = unquote(metadata["preview"])
        else:
            preview = make_preview(content) if content else ""

        return cls(
            title=unquote(metadata.get("title") or "") or DEFAULT_TITLE,
            date=_parse_or(metadata.get("date"), fallback),
            preview=preview,
            created_at=_parse_or(metadata.get("created-at"), fallback),
            updated_at=_parse_or(metadata.get("updated-at"), fallback),
        )


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str]


class Entry:
    """Сущность записи дневника"""

    def __init__(
        self,
        id: Optional[str] = None,
        user_id: Optional[str] = None,
        title: Optional[str] = None,
        content: Optional[str] = None,
        date: Timestamp = None,
        preview: Optional[str] = None,
        created_at: Timestamp = None,
        updated_at: Timestamp = None,
    ):
        now = utcnow()
        self.id = id or None
        self.user_id = user_id or None
        self.title = title or DEFAULT_TITLE
        self.content = content or ""
        self.date = _parse_or(date, now)
        self.preview = preview or ""
        self.created_at = _parse_or(created_at, now)
        self.updated_at = _parse_or(updated_at, now)

    @staticmethod
    def new_id() -> str:
        """Идентификатор вида '{epoch_ms}-{9 символов base36}'"""
        suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
        return f"{int(time.time() * 1000)}-{suffix}"

    @property
    def storage_key(self) -> str:
        return storage_key(self.user_id, self.id)

    def generate_preview(self, max_length: int = PREVIEW_LENGTH) -> str:
        """Пересчет превью из содержимого"""
        self.preview = make_preview(self.content, max_length)
        return self.preview

    def word_count(self) -> int:
        if not self.content:
            return 0
        return len(self.content.split())

    def touch(self) -> "Entry":
        self.updated_at = utcnow()
        return self

    def update(self, **changes: Any) -> "Entry":
        """Обновление нескольких полей сразу"""
        for name, value in changes.items():
            if name in ("date", "created_at", "updated_at"):
                value = parse_timestamp(value)
            setattr(self, name, value)
        if "content" in changes:
            self.generate_preview()
        return self.touch()

    def validate(self) -> ValidationResult:
        errors = []

        if not self.user_id:
            errors.append("userId is required")

        if self.title and len(self.title) > MAX_TITLE_LENGTH:
            errors.append(f"title must be {MAX_TITLE_LENGTH} characters or less")

        if self.content and len(self.content.encode("utf-8")) > MAX_CONTENT_BYTES:
            errors.append("content must be 10MB or less")

        return ValidationResult(is_valid=not errors, errors=errors)

    def is_new(self) -> bool:
        return not self.id

    def clone(self) -> "Entry":
        return Entry.from_client_json(self.to_client_json())

    def formatted_date(self) -> str:
        return f"{self.date:%B} {self.date.day}, {self.date.year}"

    def relative_time(self, now: Optional[datetime] = None) -> str:
        """Относительное время для отображения ("2 hours ago")"""
        now = parse_timestamp(now) or utcnow()
        seconds = int((now - self.date).total_seconds())
        minutes = seconds // 60
        hours = minutes // 60
        days = hours // 24

        if days > 7:
            return self.formatted_date()
        if days > 0:
            return f"{days} day{'s' if days > 1 else ''} ago"
        if hours > 0:
            return f"{hours} hour{'s' if hours > 1 else ''} ago"
        if minutes > 0:
            return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
        return "Just now"

    def to_summary_json(self) -> Dict[str, Any]:
        """Метаданные без содержимого, для списков"""
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "date": format_timestamp(self.date),
            "preview": self.preview,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }

    def to_client_json(self) -> Dict[str, Any]:
        data = self.to_summary_json()
        data["content"] = self.content
        return data

    def to_storage_metadata(self) -> Dict[str, str]:
        return EntryMetadata(
            title=self.title,
            date=self.date,
            preview=self.preview,
            created_at=self.created_at,
            updated_at=self.updated_at,
        ).to_s3()

    @classmethod
    def from_client_json(cls, data: Mapping[str, Any]) -> "Entry":
        return cls(
            id=data.get("id"),
            user_id=data.get("userId"),
            title=data.get("title"),
            content=data.get("content"),
            date=data.get("date"),
            preview=data.get("preview"),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
        )

    @classmethod
    def _from_metadata(
        cls, entry_id: str, user_id: str, metadata: EntryMetadata, content: Optional[str] = None
    ) -> "Entry":
        return cls(
            id=entry_id,
            user_id=user_id,
            title=metadata.title,
            content=content,
            date=metadata.date,
            preview=metadata.preview,
            created_at=metadata.created_at,
            updated_at=metadata.updated_at,
        )

    @classmethod
    def from_storage_object(cls, s3_object: Mapping[str, Any], user_id: str) -> "Entry":
        """Запись из элемента листинга/HeadObject, без содержимого"""
        metadata = EntryMetadata.from_s3(s3_object.get("Metadata"), s3_object.get("LastModified"))
        return cls._from_metadata(entry_id_from_key(s3_object["Key"]), user_id, metadata)

    @classmethod
    def from_storage_object_with_body(
        cls, s3_object: Mapping[str, Any], user_id: str, entry_id: str
    ) -> "Entry":
        """Запись из ответа GetObject; Body уже декодирован в строку"""
        content = s3_object.get("Body") or ""
        metadata = EntryMetadata.from_s3(
            s3_object.get("Metadata"), s3_object.get("LastModified"), content=content
        )
        return cls._from_metadata(entry_id, user_id, metadata, content=content)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Entry):
            return False
        return self.to_client_json() == other.to_client_json()

    def __repr__(self) -> str:
        return f"Entry(id={self.id}, user_id={self.user_id}, title={self.title})"
