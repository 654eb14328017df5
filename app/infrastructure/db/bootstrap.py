"""
Bootstrap de la base Mongo: define y aplica validadores (JSON Schema) e índices
para `notes` y `channels`.
Se ejecuta al inicio de la app; no tumba la app si algo falla, sólo deja warnings.
"""
from __future__ import annotations

from typing import Any, Dict, List
import logging
from pymongo.errors import PyMongoError
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.repositories.note_repo import COLLECTION as NOTES, NOTE_STATUSES
from app.repositories.channel_repo import COLLECTION as CHANNELS, CHANNEL_TYPES

_log = logging.getLogger("notes.mongo.bootstrap")


NOTE_VALIDATOR: Dict[str, Any] = {
    "bsonType": "object",
    "required": ["content", "tags", "channel", "user", "status", "created_at", "updated_at"],
    "properties": {
        "content": {"bsonType": "string"},
        "tags": {"bsonType": "array", "items": {"bsonType": "string"}},
        "channel": {"bsonType": "objectId"},
        "user": {"bsonType": "string"},
        "status": {"bsonType": "string", "enum": list(NOTE_STATUSES)},
        "created_at": {"bsonType": "string", "minLength": 10},
        "updated_at": {"bsonType": "string", "minLength": 10},
    },
    "additionalProperties": True,
}

CHANNEL_VALIDATOR: Dict[str, Any] = {
    "bsonType": "object",
    "required": ["name", "type", "isDefault", "user"],
    "properties": {
        "name": {"bsonType": "string"},
        "type": {"bsonType": "string", "enum": list(CHANNEL_TYPES)},
        "isDefault": {"bsonType": "bool"},
        "user": {"bsonType": "string"},
        "deletedAt": {"bsonType": ["date", "null"]},
    },
    "additionalProperties": True,
}


async def _collmod_or_create(db: AsyncIOMotorDatabase, name: str, validator: Dict[str, Any]) -> None:
    try:
        await db.command({
            "collMod": name,
            "validator": {"$jsonSchema": validator},
            "validationLevel": "moderate",
        })
    except PyMongoError:
        # collMod falla si la colección no existe: la crea con validator
        try:
            if name not in await db.list_collection_names():
                await db.create_collection(name, validator={"$jsonSchema": validator})
        except PyMongoError as e:
            _log.warning("No se pudo aplicar validator en '%s': %s", name, e)


async def _ensure_indexes(db: AsyncIOMotorDatabase, name: str, indexes: List[Dict[str, Any]]) -> None:
    coll = db[name]
    for ix in indexes:
        ix = dict(ix)
        keys = ix.pop("keys")
        try:
            await coll.create_index(keys, **ix)
        except PyMongoError as e:
            _log.warning("No se pudo crear índice en '%s' (%s): %s", name, keys, e)


async def ensure_collections(db: AsyncIOMotorDatabase) -> None:
    """Garantiza colecciones, validadores e índices mínimos."""
    await _collmod_or_create(db, NOTES, NOTE_VALIDATOR)
    await _ensure_indexes(
        db,
        NOTES,
        [
            {"keys": [("user", 1), ("created_at", -1)], "name": "ix_user_created"},
            {"keys": [("channel", 1)], "name": "ix_channel"},
        ],
    )

    await _collmod_or_create(db, CHANNELS, CHANNEL_VALIDATOR)
    await _ensure_indexes(
        db,
        CHANNELS,
        [
            {"keys": [("user", 1), ("isDefault", 1), ("deletedAt", 1)], "name": "ix_user_default_active"},
        ],
    )
    _log.info("Colecciones listas: %s, %s", NOTES, CHANNELS)
