"""
Esquemas Pydantic para `note`: payloads de entrada y formas de salida.
"""
from typing import List, Optional, Literal
from pydantic import Field, field_validator

from app.api.schemas.common import CamelModel

NoteStatus = Literal["active", "archived"]


def _normalize_tags(v: Optional[List[str]]) -> List[str]:
    uniq = []
    seen = set()
    for t in (v or []):
        tt = t.strip().lower()
        if tt and tt not in seen:
            seen.add(tt)
            uniq.append(tt)
    return uniq


class CreateNote(CamelModel):
    channel_id: Optional[str] = None
    content: str = Field(min_length=1)
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: List[str]) -> List[str]:
        return _normalize_tags(v)


class UpdateNote(CamelModel):
    """Update parcial: sólo los campos enviados se aplican."""
    content: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[List[str]] = None
    status: Optional[NoteStatus] = None

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return None if v is None else _normalize_tags(v)


class ChannelSummary(CamelModel):
    name: Optional[str] = None
    type: Optional[str] = None


class NoteOut(CamelModel):
    id: str
    content: str
    tags: List[str]
    channel: Optional[ChannelSummary] = None
    status: Optional[NoteStatus] = None


class NoteListItem(CamelModel):
    id: str
    content: str
    tags: List[str]
    status: Optional[NoteStatus] = None


class CreateNoteOut(CamelModel):
    id: str


class UpdateNoteOut(CamelModel):
    id: str
    matched_count: int
    modified_count: int


class DeleteNoteOut(CamelModel):
    id: str
    deleted_count: int
