"""Cache de notas sobre Redis (redis.asyncio).

Read-through en lecturas por id, invalidación en update/delete. Clave:
`note:{user_id}:{note_id}`; valor JSON con TTL.
Sin `redis_url` configurado el cache no hace nada. Errores de Redis se registran y
nunca rompen la operación que lo usa.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

_log = logging.getLogger("notes.cache")


class NoteCache:
    def __init__(self, client: Optional[redis.Redis], ttl_seconds: int = 300) -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @staticmethod
    def key(user_id: str, note_id: str) -> str:
        return f"note:{user_id}:{note_id}"

    async def get(self, user_id: str, note_id: str) -> Optional[Dict[str, Any]]:
        if self.client is None:
            return None
        try:
            raw = await self.client.get(self.key(user_id, note_id))
        except RedisError as e:
            _log.warning("Cache get falló (%s): %s", self.key(user_id, note_id), e)
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            # Valor corrupto: se descarta y se vuelve a poblar desde Mongo
            await self.invalidate(user_id, note_id)
            return None

    async def set(self, user_id: str, note_id: str, value: Dict[str, Any]) -> None:
        if self.client is None:
            return
        try:
            await self.client.set(self.key(user_id, note_id), json.dumps(value), ex=self.ttl_seconds)
        except RedisError as e:
            _log.warning("Cache set falló (%s): %s", self.key(user_id, note_id), e)

    async def invalidate(self, user_id: str, note_id: str) -> None:
        if self.client is None:
            return
        try:
            await self.client.delete(self.key(user_id, note_id))
        except RedisError as e:
            _log.warning("Cache invalidate falló (%s): %s", self.key(user_id, note_id), e)

    async def invalidate_user(self, user_id: str) -> None:
        """Borra todas las notas cacheadas del usuario (p. ej. al borrar un canal)."""
        if self.client is None:
            return
        pattern = f"note:{user_id}:*"
        try:
            keys = [k async for k in self.client.scan_iter(match=pattern)]
            if keys:
                await self.client.delete(*keys)
        except RedisError as e:
            _log.warning("Cache invalidate_user falló (%s): %s", pattern, e)

    async def ping(self) -> Optional[bool]:
        """None si está deshabilitado; si no, True/False según responda Redis."""
        if self.client is None:
            return None
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            _log.warning("Redis no accesible: %s", e)
            return False


_cache: Optional[NoteCache] = None


def get_note_cache() -> NoteCache:
    """Instancia única del cache; inicializa lazy el cliente Redis."""
    global _cache
    if _cache is None:
        client = None
        if settings.cache_configured:
            client = redis.from_url(settings.redis_url, decode_responses=True)
            _log.info("Cache de notas habilitado (ttl=%ss)", settings.note_cache_ttl_seconds)
        _cache = NoteCache(client, ttl_seconds=settings.note_cache_ttl_seconds)
    return _cache


def set_note_cache(cache: Optional[NoteCache]) -> None:
    """Reemplaza la instancia (tests / apagado)."""
    global _cache
    _cache = cache


async def close_note_cache() -> None:
    global _cache
    if _cache is not None and _cache.client is not None:
        await _cache.client.aclose()
    _cache = None
