"""Schemas para endpoints de health."""
from typing import Optional
from pydantic import BaseModel


class PingOut(BaseModel):
    message: str


class HealthOut(BaseModel):
    ok: bool
    mongo: bool
    cache: Optional[bool] = None  # None = cache deshabilitado
