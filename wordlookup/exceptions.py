"""Exception hierarchy for dictionary lookups."""


class WordLookupError(Exception):
    """Base class for lookup errors."""


class WordNotFoundError(WordLookupError):
    """No provider produced a valid result for the word."""

    def __init__(self, word: str, language: str) -> None:
        super().__init__(f"No definitions found for '{word}' ({language})")
        self.word = word
        self.language = language


class ProviderUnavailableError(WordLookupError):
    """A provider failed to initialize or lost its underlying resource."""


class ProviderQueryError(WordLookupError):
    """A provider failed mid-query (I/O, network, malformed data)."""


class CacheBackendError(WordLookupError):
    """The cache backend could not complete an operation."""
