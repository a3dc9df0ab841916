"""Route handlers for wordlookup."""

from wordlookup.routes.cache import router as cache_router
from wordlookup.routes.entries import router as entries_router

__all__ = [
    "cache_router",
    "entries_router",
]
