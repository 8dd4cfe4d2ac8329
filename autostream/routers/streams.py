from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from autostream.cache_manager import Services
from autostream.constants import cloudflare_cache_headers
from autostream.core.lang import normalize_priority
from autostream.core.scoring import Weights, weights_for
from autostream.errors import UpstreamError, UpstreamRateLimited, error_payload
from autostream.logger import LogCallback, logger, make_log_callback
from autostream.services.selector import StreamRequest, format_streams, select_streams
from autostream.settings import settings
from autostream.utils import (
    cache_key,
    forwarded_query,
    has_debrid,
    parse_csv,
    parse_flag,
    parse_max_size,
    provider_tag,
)

router = APIRouter()

# Selection options handled here and not forwarded upstream
OWN_PARAMS = ['lang_prio', 'max_size', 'fallback', 'blacklist', 'debug']


def client_key(request: Request) -> str:
    if settings.proxy_header:
        forwarded = request.headers.get(settings.proxy_header)
        if forwarded:
            return forwarded.split(',')[0].strip()
    return request.client.host if request.client else 'unknown'


def parse_stream_request(query: dict) -> StreamRequest:
    lang = parse_csv(query.get('lang_prio')) or settings.default_lang_priority
    max_size = parse_max_size(query.get('max_size')) or settings.default_max_size_bytes
    use_debrid = has_debrid(query)
    weights = weights_for(
        use_debrid,
        debrid=Weights(settings.debrid_quality_weight, settings.debrid_speed_weight),
        plain=Weights(settings.plain_quality_weight, settings.plain_speed_weight),
    )
    return StreamRequest(
        use_debrid=use_debrid,
        include_1080_fallback=parse_flag(query.get('fallback'), settings.include_1080_fallback),
        lang_priority=normalize_priority(lang, settings.max_lang_priority),
        max_size_bytes=max_size,
        blacklist=parse_csv(query.get('blacklist')),
        provider_tag=provider_tag(query),
        weights=weights,
    )


@router.get('/stream/{media_type}/{item_id}.json', response_model=None)
async def get_stream(media_type: str, item_id: str, request: Request):
    """Pick the best stream (plus one quality fallback) for a title.

    Args:
        media_type: 'movie' or 'series'
        item_id: IMDb id, 'tt1234567:season:episode' for episodes
        request: FastAPI request; query carries debrid keys and selection options

    Returns:
        JSONResponse with ``{"streams": [...]}`` or a JSON error payload
    """
    services: Services = request.app.state.services
    query = dict(request.query_params)
    debug = settings.debug or query.get('debug') == '1'
    log: Optional[LogCallback] = make_log_callback(logger, f"[{media_type}/{item_id}] ") if debug else None

    if not services.limiter.is_allowed(client_key(request)):
        logger.warning("Rate limit exceeded for %s", client_key(request))
        return JSONResponse(
            content=error_payload(429, "Too many requests"),
            status_code=429,
            headers={**cloudflare_cache_headers, 'Retry-After': str(int(services.limiter.window_ms / 1000))},
        )

    key = cache_key(request.url.path, query)
    cached = services.response_cache.get(key)
    if cached is not None:
        logger.debug("Response cache hit: %s", key)
        return JSONResponse(content=cached, headers=cloudflare_cache_headers)

    options = parse_stream_request(query)
    sources = services.sources
    if options.use_debrid:
        # debrid mode: primary sources only
        sources = [s for s in sources if s.primary]

    upstream_query = forwarded_query(query, OWN_PARAMS)
    try:
        candidates = await services.source_client.gather_streams(
            sources, media_type, item_id, upstream_query, log
        )
    except UpstreamRateLimited as exc:
        logger.warning("Upstream %s rate limited locally", exc.source)
        return JSONResponse(content=error_payload(503, str(exc)), status_code=503, headers=cloudflare_cache_headers)
    except UpstreamError as exc:
        logger.error("Primary source failed: %s", exc)
        return JSONResponse(content=error_payload(502, str(exc)), status_code=502, headers=cloudflare_cache_headers)

    selected = select_streams(candidates, options, log)
    meta = await services.meta_client.fetch_meta(media_type, item_id, log)
    payload = {"streams": format_streams(meta, selected, options.provider_tag)}

    logger.info("Selected %d of %d streams for %s/%s", len(selected), len(candidates), media_type, item_id)
    if selected:
        services.response_cache.set(key, payload)
    return JSONResponse(content=payload, headers=cloudflare_cache_headers)
