from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from autostream.settings import settings
from autostream.logger import setup_logging
from autostream.constants import cloudflare_cache_headers
from autostream.cache_manager import open_services, start_services, close_services, get_cache_lengths
from autostream.routers import streams

setup_logging()
logger = logging.getLogger("autostream")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info('Started %s', settings.autostream_version)
    services = open_services(settings)
    app.state.services = services
    start_services(services)
    yield
    logger.info('Shutdown')
    await close_services(services)


app = FastAPI(lifespan=lifespan)

app.include_router(streams.router)


# Health check
@app.get('/healthz')
async def healthz():
    return JSONResponse(content={"status": "ok"}, headers=cloudflare_cache_headers)


@app.get('/stats')
async def stats():
    services = app.state.services
    content = {
        "version": settings.autostream_version,
        "rate_limiter": services.limiter.stats(),
        "caches": get_cache_lengths(services),
    }
    return JSONResponse(content=content, headers=cloudflare_cache_headers)
