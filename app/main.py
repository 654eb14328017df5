"""Entrada principal de la app FastAPI (configura middlewares, excepciones y routers)."""
from fastapi import FastAPI
from pymongo.errors import PyMongoError
from app.core.config import settings
from app.infrastructure.db.mongo_async import get_async_db, ping, close_async_client
from app.infrastructure.db.bootstrap import ensure_collections
from app.infrastructure.cache.redis_cache import get_note_cache, close_note_cache
from app.api.router import api_router
from app.core.logging import setup_logging
from app.core.middleware import add_middlewares
from app.core.exceptions import register_exception_handlers
from app.infrastructure.security.token_service import MISSING_SECRET_MESSAGE, jwt_configured
import logging

_log = logging.getLogger("notes.startup")

setup_logging(settings.log_level)
app = FastAPI(title=settings.app_name)

add_middlewares(app)
register_exception_handlers(app)


@app.on_event("startup")
async def on_startup():
    if not jwt_configured():
        _log.error("JWT_SECRET no configurado; las rutas autenticadas no pueden validar tokens")
        raise RuntimeError(MISSING_SECRET_MESSAGE)
    get_note_cache()
    # Garantiza colecciones/índices/validadores mínimos si hay conexión
    if not await ping():
        _log.warning("Mongo no listo; omitiendo ensure_collections()")
        return
    try:
        await ensure_collections(get_async_db())
    except PyMongoError as e:
        # No impedir el arranque si fallan validadores/índices
        _log.warning("ensure_collections() falló: %s", e)


@app.on_event("shutdown")
async def on_shutdown():
    await close_note_cache()
    close_async_client()


# Monta routers bajo el prefijo configurado
app.include_router(api_router, prefix=settings.api_prefix_normalized)
