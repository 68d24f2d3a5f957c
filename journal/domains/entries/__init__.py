from journal.domains.entries.entities import Entry, EntryMetadata, ValidationResult
from journal.domains.entries.schemas import (
    EntryCreate, EntryUpdate, EntryResponse, EntrySummaryResponse, ErrorResponse
)
from journal.domains.entries.services import EntryService

__all__ = [
    "Entry", "EntryMetadata", "ValidationResult",
    "EntryCreate", "EntryUpdate", "EntryResponse", "EntrySummaryResponse", "ErrorResponse",
    "EntryService",
]
