from journal.db.repositories.entry_repository import EntryRepository

__all__ = [
    "EntryRepository",
]
