"""
Service layer for notes: ownership-scoped CRUD over `notes`/`channels`.

Cada operación devuelve el sobre `{"data": ..., "statusCode": int}`.
Errores de dominio (`NotFoundError`, `InvalidInputError`) se propagan tal cual;
errores del driver Mongo se traducen a `StoreFailureError` conservando el mensaje.

El cache se indexa por el id normalizado (ObjectId en hex minúscula); borrar un
canal invalida todas las notas cacheadas del usuario, que lo embeben.
"""
from __future__ import annotations

import asyncio
import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, Optional

from pymongo.errors import PyMongoError
from starlette import status

from app.core.exceptions import InvalidInputError, NotFoundError, StoreFailureError
from app.infrastructure.cache.redis_cache import get_note_cache
from app.repositories import channel_repo, note_repo

_log = logging.getLogger("notes.service")

NO_CHANNEL_MESSAGE = "You need to connect to at least one channel"
NOTE_NOT_FOUND_MESSAGE = "Note Not Found"


def _cache_id(note_id: str) -> Optional[str]:
    """Id canónico para la clave de cache; None si el id no es un ObjectId válido."""
    oid = note_repo.to_object_id(note_id)
    return str(oid) if oid is not None else None


@contextmanager
def _store_errors(op: str):
    try:
        yield
    except PyMongoError as e:
        _log.error("%s: fallo del almacén: %s", op, e)
        raise StoreFailureError(str(e)) from e


def page_meta(total_record: int, page: int, limit: int) -> Dict[str, Any]:
    """Metadatos de paginación (`pageCount` = ceil(total/limit))."""
    page_count = math.ceil(total_record / limit) if limit > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "totalRecord": total_record,
        "pageCount": page_count,
        "hasPreviousPage": page > 1,
        "hasNextPage": page < page_count,
    }


async def create_note(payload: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """Crea una nota; sin `channelId` usa el canal default activo del usuario."""
    channel_id = payload.get("channelId")
    with _store_errors("create_note"):
        if not channel_id:
            channel = await channel_repo.find_default_channel(user_id)
            if not channel:
                raise NotFoundError(NO_CHANNEL_MESSAGE)
            channel_oid = channel["_id"]
        else:
            channel_oid = note_repo.to_object_id(channel_id)
            if channel_oid is None:
                raise InvalidInputError(f"Invalid channelId: {channel_id}")

        new_id = await note_repo.insert_note({
            "content": payload.get("content"),
            "tags": list(payload.get("tags") or []),
            "channel": channel_oid,
            "user": str(user_id),
        })
    _log.info("note created id=%s user=%s channel=%s", new_id, user_id, channel_oid)
    return {"data": {"id": new_id}, "statusCode": status.HTTP_201_CREATED}


async def get_note(note_id: str, user_id: str) -> Dict[str, Any]:
    """Nota del usuario con el canal embebido como `{name, type}` (read-through cache)."""
    cache = get_note_cache()
    cache_id = _cache_id(note_id)
    cached = await cache.get(user_id, cache_id) if cache_id else None
    if cached is not None:
        return {"data": cached, "statusCode": status.HTTP_200_OK}

    with _store_errors("get_note"):
        note = await note_repo.find_note(
            note_id, user_id, {"content": 1, "tags": 1, "channel": 1, "status": 1}
        )
        if not note:
            raise NotFoundError(NOTE_NOT_FOUND_MESSAGE)
        channel = None
        if note.get("channel") is not None:
            channel = await channel_repo.get_channel_summary(note["channel"])

    data = {
        "id": str(note["_id"]),
        "content": note.get("content"),
        "tags": note.get("tags") or [],
        "channel": channel,
        "status": note.get("status"),
    }
    await cache.set(user_id, data["id"], data)
    return {"data": data, "statusCode": status.HTTP_200_OK}


async def get_notes(query: Dict[str, Any], user_id: str) -> Dict[str, Any]:
    """Página de notas del usuario + metadatos; página y total usan el mismo filtro."""
    page = int(query.get("page") or 1)
    limit = int(query.get("limit") or 10)
    skip = query.get("skip")
    skip = int(skip) if skip is not None else (page - 1) * limit

    with _store_errors("get_notes"):
        notes, total_record = await asyncio.gather(
            note_repo.list_notes(user_id, skip=skip, limit=limit),
            note_repo.count_notes(user_id),
        )
    return {
        "data": {"data": notes, "meta": page_meta(total_record, page, limit)},
        "statusCode": status.HTTP_200_OK,
    }


async def update_note(note_id: str, user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Update parcial. Sin coincidencia no falla: devuelve matchedCount = 0."""
    with _store_errors("update_note"):
        matched, modified = await note_repo.update_note(note_id, user_id, payload)
    cache_id = _cache_id(note_id)
    if cache_id:
        await get_note_cache().invalidate(user_id, cache_id)
    return {
        "data": {"id": note_id, "matchedCount": matched, "modifiedCount": modified},
        "statusCode": status.HTTP_200_OK,
    }


async def _compensate(note: Dict[str, Any], channel: Optional[Dict[str, Any]], note_res: Any, channel_res: Any) -> None:
    """Re-inserta lo que sí se borró cuando la otra mitad del delete falló."""
    try:
        if not isinstance(note_res, BaseException) and note_res:
            await note_repo.restore_note(note)
            _log.warning("delete_note: nota %s restaurada tras fallo al borrar canal", note["_id"])
        if channel is not None and not isinstance(channel_res, BaseException) and channel_res:
            await channel_repo.restore_channel(channel)
            _log.warning("delete_note: canal %s restaurado tras fallo al borrar nota", channel["_id"])
    except PyMongoError as e:
        _log.error(
            "delete_note: compensación falló, estado inconsistente note=%s channel=%s: %s",
            note.get("_id"), (channel or {}).get("_id"), e,
        )


async def delete_note(note_id: str, user_id: str) -> Dict[str, Any]:
    """Borra la nota y, en paralelo, su canal (del mismo usuario).

    Si sólo una de las dos bajas tiene éxito, se restaura el documento borrado y
    se levanta `StoreFailureError`.
    """
    with _store_errors("delete_note"):
        note = await note_repo.find_note(note_id, user_id)
        if not note:
            raise NotFoundError(NOTE_NOT_FOUND_MESSAGE)
        channel = None
        if note.get("channel") is not None:
            channel = await channel_repo.find_channel(note["channel"], user_id)

    async def _delete_channel() -> int:
        if channel is None:
            return 0
        return await channel_repo.delete_channel(channel["_id"], user_id)

    note_res, channel_res = await asyncio.gather(
        note_repo.delete_note(note_id, user_id),
        _delete_channel(),
        return_exceptions=True,
    )
    failures = [r for r in (note_res, channel_res) if isinstance(r, BaseException)]
    if failures:
        await _compensate(note, channel, note_res, channel_res)
        err = failures[0]
        if not isinstance(err, PyMongoError):
            raise err
        _log.error("delete_note: fallo del almacén: %s", err)
        raise StoreFailureError(str(err)) from err

    cache = get_note_cache()
    if channel_res:
        await cache.invalidate_user(user_id)
    else:
        await cache.invalidate(user_id, str(note["_id"]))
    _log.info("note deleted id=%s user=%s channel_deleted=%s", note_id, user_id, channel_res)
    return {
        "data": {"id": note_id, "deletedCount": note_res},
        "statusCode": status.HTTP_204_NO_CONTENT,
    }
