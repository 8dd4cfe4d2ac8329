from dataclasses import dataclass
from typing import List, Optional

import httpx

from autostream.cache import TTLCache
from autostream.logger import logger, make_log_callback
from autostream.rate_limiter import RateLimiter
from autostream.services.meta import MetaClient
from autostream.services.sources import SourceClient, StreamSource
from autostream.settings import Settings


@dataclass
class Services:
    """Shared state for one app instance. Created in the lifespan, never global."""
    sources: List[StreamSource]
    source_client: SourceClient
    meta_client: MetaClient
    response_cache: TTLCache
    limiter: RateLimiter
    upstream_limiter: Optional[RateLimiter] = None
    http_client: Optional[httpx.AsyncClient] = None


def default_sources(cfg: Settings) -> List[StreamSource]:
    return [
        StreamSource(
            "Torrentio",
            cfg.torrentio_url,
            primary=True,
            timeout_ms=cfg.source_timeout_ms,
            cache_ttl_ms=cfg.torrentio_cache_ttl_ms,
            season_pack_fallback=cfg.season_pack_fallback,
        ),
        StreamSource(
            "TPB+",
            cfg.tpb_url,
            primary=False,
            timeout_ms=cfg.source_timeout_ms,
            cache_ttl_ms=cfg.tpb_cache_ttl_ms,
        ),
    ]


def open_services(cfg: Settings, http_client: Optional[httpx.AsyncClient] = None) -> Services:
    source_cache = TTLCache(
        max_entries=cfg.cache_max_entries,
        ttl_ms=cfg.cache_ttl_ms,
        log=make_log_callback(logger, "source cache: "),
    )
    meta_cache = TTLCache(max_entries=cfg.meta_cache_max_entries, ttl_ms=cfg.meta_cache_ttl_ms)
    response_cache = TTLCache(max_entries=cfg.response_cache_max_entries, ttl_ms=cfg.response_cache_ttl_ms)
    limiter = RateLimiter(
        max_requests=cfg.rate_limit_max_requests,
        window_ms=cfg.rate_limit_window_ms,
        max_keys=cfg.rate_limit_max_keys,
        sweep_interval_ms=cfg.rate_limit_sweep_interval_ms,
        log=make_log_callback(logger),
    )
    upstream_limiter = None
    if cfg.upstream_rate_limit_max_requests > 0:
        # keyed by source name, protects the upstream add-ons from our own traffic
        upstream_limiter = RateLimiter(
            max_requests=cfg.upstream_rate_limit_max_requests,
            window_ms=cfg.rate_limit_window_ms,
            max_keys=cfg.rate_limit_max_keys,
            sweep_interval_ms=cfg.rate_limit_sweep_interval_ms,
        )
    return Services(
        sources=default_sources(cfg),
        source_client=SourceClient(source_cache, limiter=upstream_limiter, client=http_client),
        meta_client=MetaClient(cfg.cinemeta_url, meta_cache, timeout_ms=cfg.meta_timeout_ms, client=http_client),
        response_cache=response_cache,
        limiter=limiter,
        upstream_limiter=upstream_limiter,
        http_client=http_client,
    )


def start_services(services: Services) -> None:
    """Start background sweeps; must be called from a running event loop."""
    services.limiter.start()
    if services.upstream_limiter is not None:
        services.upstream_limiter.start()


async def close_services(services: Services) -> None:
    await services.limiter.stop()
    if services.upstream_limiter is not None:
        await services.upstream_limiter.stop()
    services.response_cache.clear()
    services.source_client.cache.clear()
    services.meta_client.cache.clear()
    if services.http_client is not None:
        await services.http_client.aclose()


def get_cache_lengths(services: Services) -> dict:
    return {
        "sources": len(services.source_client.cache),
        "meta": len(services.meta_client.cache),
        "responses": len(services.response_cache),
    }
