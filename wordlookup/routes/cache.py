"""Cache administration routes."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from wordlookup.context import AppContext, get_context

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.get("/{language}/{word}")
async def get_cache_entry(
    language: str,
    word: str,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Cache metadata for one entry. Does not count as a hit."""
    entry = await context.cache.get_cache_info(word, language)
    if entry is None:
        raise HTTPException(status_code=404, detail="Cache entry not found")
    return entry.to_info()


@router.delete("/{language}/{word}")
async def delete_cache_entry(
    language: str,
    word: str,
    context: AppContext = Depends(get_context),
) -> dict[str, bool]:
    """Evict one entry."""
    deleted = await context.cache.delete_cached(word, language)
    return {"deleted": deleted}
