"""Repo de la colección `notes` (Motor, asíncrono).

- Guarda `user` como string (id del dueño) y `channel` como ObjectId.
- Toda consulta filtra por `user`: una nota ajena es indistinguible de una inexistente.
- Sella timestamps en ISO-8601 UTC (Z).
"""
from __future__ import annotations

from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime, timezone
from bson import ObjectId

from app.infrastructure.db.mongo_async import get_async_db

COLLECTION = "notes"
NOTE_STATUSES = ("active", "archived")

# Campos que admite un update parcial
UPDATABLE_FIELDS = ("content", "tags", "status")


def _now_iso() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_object_id(value: Any) -> Optional[ObjectId]:
    """ObjectId a partir de str/ObjectId; None si el valor no es un id válido."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _out(doc: Dict[str, Any]) -> Dict[str, Any]:
    d = dict(doc)
    d["id"] = str(d.pop("_id", ""))
    return d


async def insert_note(doc: Dict[str, Any]) -> str:
    """Inserta nota con defaults y devuelve id (str)."""
    data = dict(doc)
    now = _now_iso()
    data.setdefault("status", "active")
    data.setdefault("tags", [])
    data.setdefault("created_at", now)
    data["updated_at"] = now
    res = await get_async_db()[COLLECTION].insert_one(data)
    return str(res.inserted_id)


async def find_note(note_id: str, user_id: str, projection: Optional[Dict[str, int]] = None) -> Optional[Dict[str, Any]]:
    """Documento crudo (con `_id`) de la nota del usuario, o None."""
    oid = to_object_id(note_id)
    if oid is None:
        return None
    return await get_async_db()[COLLECTION].find_one({"_id": oid, "user": str(user_id)}, projection)


async def list_notes(user_id: str, skip: int = 0, limit: int = 10) -> List[Dict[str, Any]]:
    """Página de notas del usuario en el orden del almacén; expone `id` (str).

    La vista de lista omite `channel`.
    """
    projection = {"content": 1, "tags": 1, "status": 1}
    cur = get_async_db()[COLLECTION].find({"user": str(user_id)}, projection).skip(int(skip)).limit(int(limit))
    return [_out(d) async for d in cur]


async def count_notes(user_id: str) -> int:
    """Total de notas del usuario (mismo filtro que `list_notes`)."""
    return await get_async_db()[COLLECTION].count_documents({"user": str(user_id)})


async def update_note(note_id: str, user_id: str, fields: Dict[str, Any]) -> Tuple[int, int]:
    """`$set` parcial sobre la nota del usuario. Devuelve (matched, modified).

    `updated_at` sólo se sella si algún campo cambia de valor, así `modified` es 0
    para un update sin cambios (o sin campos). Un id inválido se comporta como
    no-match: (0, 0).
    """
    oid = to_object_id(note_id)
    if oid is None:
        return 0, 0
    coll = get_async_db()[COLLECTION]
    owned = {"_id": oid, "user": str(user_id)}
    set_ops: Dict[str, Any] = {k: fields[k] for k in UPDATABLE_FIELDS if k in fields}
    if set_ops:
        changed = {**owned, "$or": [{k: {"$ne": v}} for k, v in set_ops.items()]}
        res = await coll.update_one(changed, {"$set": {**set_ops, "updated_at": _now_iso()}})
        if res.modified_count:
            return res.matched_count, res.modified_count
    # Sin cambios: sólo resta saber si la nota existe
    matched = await coll.count_documents(owned, limit=1)
    return matched, 0


async def delete_note(note_id: str, user_id: str) -> int:
    oid = to_object_id(note_id)
    if oid is None:
        return 0
    res = await get_async_db()[COLLECTION].delete_one({"_id": oid, "user": str(user_id)})
    return res.deleted_count


async def restore_note(doc: Dict[str, Any]) -> None:
    """Re-inserta un documento completo (con su `_id` original)."""
    await get_async_db()[COLLECTION].insert_one(dict(doc))
