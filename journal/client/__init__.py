from journal.client.api import EntriesClient, raise_for_status
from journal.client.autosave import AutoSaveController, AutoSaveStatus
from journal.client.session import JournalSession

__all__ = [
    "AutoSaveController",
    "AutoSaveStatus",
    "EntriesClient",
    "JournalSession",
    "raise_for_status",
]
