"""SQLAlchemy ORM models for the lookup cache."""

from sqlalchemy import BigInteger, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from wordlookup.database import Base


class CacheEntry(Base):
    """Cached dictionary response for one (word, language) key.

    Timestamps are epoch milliseconds.
    """

    __tablename__ = "dictionary_cache"
    __table_args__ = (Index("ix_cache_expires_at", "expires_at"),)

    key: Mapped[str] = mapped_column(Text, primary_key=True)  # dict:<language>:<word>
    data: Mapped[str] = mapped_column(Text)  # JSON DictionaryResponse
    hit_count: Mapped[int] = mapped_column(default=0)
    created_at: Mapped[int] = mapped_column(BigInteger)
    last_hit_at: Mapped[int] = mapped_column(BigInteger)
    expires_at: Mapped[int] = mapped_column(BigInteger)

    def to_info(self) -> dict[str, object]:
        """Entry metadata for admin views."""
        return {
            "key": self.key,
            "hit_count": self.hit_count,
            "created_at": self.created_at,
            "last_hit_at": self.last_hit_at,
            "expires_at": self.expires_at,
        }


class CacheConfig(Base):
    """Runtime cache controls (e.g. cache_ttl_days)."""

    __tablename__ = "cache_config"

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text)
