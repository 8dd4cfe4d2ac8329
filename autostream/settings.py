from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    """AutoStream application settings.

    All settings can be overridden via environment variables or .env file.
    Environment variables should use uppercase names (e.g., CACHE_TTL_MS=600000).

    Per-request query parameters (lang_prio, max_size, fallback, blacklist, debrid keys) take
    precedence over the defaults below.
    """
    autostream_version: str = "v2.0.0"
    debug: bool = False
    testing: bool = False

    # Upstream stream add-ons
    torrentio_url: str = "https://torrentio.strem.fun"
    tpb_url: str = "https://thepiratebay-plus.strem.fun"
    cinemeta_url: str = "https://v3-cinemeta.strem.io/meta"
    source_timeout_ms: int = 15000
    meta_timeout_ms: int = 5000

    # Raw upstream results
    cache_ttl_ms: int = 60 * 60 * 1000
    cache_max_entries: int = 500
    # Per-source TTL overrides for raw results, unset uses cache_ttl_ms
    torrentio_cache_ttl_ms: Optional[int] = None
    tpb_cache_ttl_ms: Optional[int] = None
    # Retry empty episode lookups on the primary source with the series id
    season_pack_fallback: bool = True
    # Final /stream payloads
    response_cache_ttl_ms: int = 60 * 60 * 1000
    response_cache_max_entries: int = 1000
    meta_cache_ttl_ms: int = 6 * 60 * 60 * 1000
    meta_cache_max_entries: int = 500

    # Sliding-window limiter for /stream requests (per client address)
    rate_limit_window_ms: int = 60000
    rate_limit_max_requests: int = 50
    rate_limit_max_keys: int = 10000
    rate_limit_sweep_interval_ms: int = 60000
    # Outgoing fetches per upstream source within the same window, 0 disables
    upstream_rate_limit_max_requests: int = 300

    # Selection defaults
    default_lang_priority: List[str] = []
    max_lang_priority: int = 8
    default_max_size_bytes: int = 0
    include_1080_fallback: bool = True
    # Score weights per mode: quality rank vs. seeders-per-GiB
    debrid_quality_weight: float = 1.0
    debrid_speed_weight: float = 0.7
    plain_quality_weight: float = 0.5
    plain_speed_weight: float = 1.0
    proxy_header: Optional[str] = None  # e.g. X-Forwarded-For behind a proxy

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
