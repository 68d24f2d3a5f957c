from journal.api.http.health import router as health_router
from journal.api.http.entries import router as entries_router

__all__ = [
    "health_router",
    "entries_router",
]
