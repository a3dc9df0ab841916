"""Application configuration using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from wordlookup.services.dictionary.base import DataSource
from wordlookup.services.dictionary.lazy import DEFAULT_IDLE_RELEASE_MS, LazyDictDescriptor

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Application settings, configurable via environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Path("data")
    ecdict_db_path: Path = Path("data/ecdict.db")

    # Logging
    log_level: LogLevel = "INFO"
    log_file_enabled: bool = False
    log_file_path: Path | None = None
    log_file_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    log_file_backup_count: int = 5

    @property
    def resolved_log_file_path(self) -> Path:
        """Return log file path, defaulting to data_dir/wordlookup.log if not set."""
        return self.log_file_path or self.data_dir / "wordlookup.log"

    @property
    def cache_db_path(self) -> Path:
        return self.data_dir / "cache.db"

    # Cache
    cache_enabled: bool = True
    cache_default_ttl_days: int = 30  # overridable at runtime via `wordlookup cache ttl`

    # Supplementary EN->EN dictionary (loaded at startup)
    oxford_en_mac_enabled: bool = False
    oxford_en_mac_db_path: Path = Path("data/oxford_en_mac.db")

    # Bidirectional dictionaries (loaded on first request)
    koen_mac_enabled: bool = False
    koen_mac_db_path: Path = Path("data/koen_mac.db")
    jaen_mac_enabled: bool = False
    jaen_mac_db_path: Path = Path("data/jaen_mac.db")
    deen_mac_enabled: bool = False
    deen_mac_db_path: Path = Path("data/deen_mac.db")
    ruen_mac_enabled: bool = False
    ruen_mac_db_path: Path = Path("data/ruen_mac.db")

    local_dict_idle_release_ms: int = DEFAULT_IDLE_RELEASE_MS

    # Operational overrides
    disable_local_dicts: bool = False
    disable_legacy_fallback: bool = False

    # Remote fallback
    fallback_api_url: str = "https://api.dictionaryapi.dev/api/v2/entries"
    fallback_legacy_api_url: str = "https://api.dictionaryapi.dev/api/v1/entries"
    fallback_timeout_seconds: float = 10.0

    # Server
    host: str = "0.0.0.0"  # noqa: S104  # nosec B104
    port: int = 9000
    trust_proxy_hops: int = 1  # reverse proxies whose X-Forwarded-For entry is trusted

    # Rate limiting, per client address
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 450
    rate_limit_window_seconds: int = 5 * 60

    @property
    def lazy_dict_descriptors(self) -> list[LazyDictDescriptor]:
        """Descriptors for the enabled bidirectional dictionaries."""
        candidates = [
            (DataSource.KOEN_MAC, "Korean-English Dictionary", "ko", self.koen_mac_enabled),
            (DataSource.JAEN_MAC, "Japanese-English Dictionary", "ja", self.jaen_mac_enabled),
            (DataSource.DEEN_MAC, "German-English Dictionary", "de", self.deen_mac_enabled),
            (DataSource.RUEN_MAC, "Russian-English Dictionary", "ru", self.ruen_mac_enabled),
        ]
        return [
            LazyDictDescriptor(
                name=source.value,
                display_name=display_name,
                supported_languages=(language,),
                db_path=getattr(self, f"{source.value}_db_path"),
                priority=90,
            )
            for source, display_name, language, enabled in candidates
            if enabled
        ]


settings = Settings()
