"""Health (sin auth), salidas tipadas y estables."""
from fastapi import APIRouter, status

from app.api.schemas.health import PingOut, HealthOut
from app.infrastructure.cache.redis_cache import get_note_cache
from app.infrastructure.db.mongo_async import ping as mongo_ping


router = APIRouter(tags=["Health"])  # no prefix to keep paths stable


@router.get("/ping", response_model=PingOut, summary="Ping básico")
def ping() -> PingOut:
    return PingOut(message="pong")


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Salud de Mongo y cache")
async def health() -> HealthOut:
    mongo_ok = await mongo_ping()
    cache_ok = await get_note_cache().ping()
    return HealthOut(ok=mongo_ok and cache_ok is not False, mongo=mongo_ok, cache=cache_ok)
