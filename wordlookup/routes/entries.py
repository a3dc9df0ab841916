"""Dictionary lookup routes."""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from wordlookup.context import AppContext, get_context
from wordlookup.exceptions import WordNotFoundError
from wordlookup.services.dictionary.base import response_to_dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["entries"])


@router.get("/{version}/entries/{language}/{word}")
async def get_entry(
    version: str,
    language: str,
    word: str,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    """Look up a word. The version segment is accepted for URL compatibility only."""
    logger.info(f"Request word='{word}' lang={language} version={version}")

    response = await context.lookup.lookup(word, language)
    if response is None:
        raise WordNotFoundError(word, language)

    return response_to_dict(response)
