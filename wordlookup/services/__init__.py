"""Services for dictionary lookups."""

from wordlookup.services.dictionary import LookupService

__all__ = ["LookupService"]
