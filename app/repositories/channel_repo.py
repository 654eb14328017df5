"""Repo de la colección `channels`.

Esta app sólo lee canales (default activo, resumen para embeber en una nota) y los
borra en cascada junto con su nota. `deletedAt = null` marca un canal activo.
"""
from __future__ import annotations

from typing import Dict, Any, Optional

from app.infrastructure.db.mongo_async import get_async_db
from app.repositories.note_repo import to_object_id

COLLECTION = "channels"
CHANNEL_TYPES = ("telegram", "discord", "slack", "email", "webhook")


async def find_default_channel(user_id: str) -> Optional[Dict[str, Any]]:
    """Canal default, activo (no borrado) del usuario."""
    return await get_async_db()[COLLECTION].find_one(
        {"isDefault": True, "user": str(user_id), "deletedAt": None}
    )


async def get_channel_summary(channel_id: Any) -> Optional[Dict[str, Any]]:
    """Proyección `{name, type}` usada al embeber el canal en una nota."""
    oid = to_object_id(channel_id)
    if oid is None:
        return None
    d = await get_async_db()[COLLECTION].find_one({"_id": oid}, {"_id": 0, "name": 1, "type": 1})
    if not d:
        return None
    return {"name": d.get("name"), "type": d.get("type")}


async def find_channel(channel_id: Any, user_id: str) -> Optional[Dict[str, Any]]:
    oid = to_object_id(channel_id)
    if oid is None:
        return None
    return await get_async_db()[COLLECTION].find_one({"_id": oid, "user": str(user_id)})


async def delete_channel(channel_id: Any, user_id: str) -> int:
    oid = to_object_id(channel_id)
    if oid is None:
        return 0
    res = await get_async_db()[COLLECTION].delete_one({"_id": oid, "user": str(user_id)})
    return res.deleted_count


async def restore_channel(doc: Dict[str, Any]) -> None:
    """Re-inserta un canal completo (con su `_id` original)."""
    await get_async_db()[COLLECTION].insert_one(dict(doc))
