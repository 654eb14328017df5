"""
Endpoints para `note`: CRUD del usuario autenticado, respuestas en sobre `{data, statusCode}`.
"""
from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_current_user_id
from app.api.schemas.common import Page, PageOptions, ResponseEnvelope
from app.api.schemas.note import (
    CreateNote,
    CreateNoteOut,
    DeleteNoteOut,
    NoteListItem,
    NoteOut,
    UpdateNote,
    UpdateNoteOut,
)
from app.core.config import settings
from app.services import note_service


router = APIRouter(prefix="/note", tags=["Note"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=ResponseEnvelope[CreateNoteOut],
    response_model_by_alias=True,
    summary="Crear nota",
    description="Crea una nota; sin `channelId` usa el canal default activo del usuario.",
)
async def create_note(payload: CreateNote, user_id: str = Depends(get_current_user_id)):
    return await note_service.create_note(payload.model_dump(by_alias=True), user_id)


@router.get(
    "",
    response_model=ResponseEnvelope[Page[NoteListItem]],
    summary="Listar notas",
    description="Página de notas del usuario (sin canal embebido).",
)
async def get_notes(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.notes_page_limit_default, ge=1, le=settings.notes_page_limit_max),
    user_id: str = Depends(get_current_user_id),
):
    options = PageOptions(page=page, limit=limit)
    return await note_service.get_notes(options.model_dump(), user_id)


@router.get(
    "/{note_id}",
    response_model=ResponseEnvelope[NoteOut],
    summary="Obtener nota",
)
async def get_note(note_id: str, user_id: str = Depends(get_current_user_id)):
    return await note_service.get_note(note_id, user_id)


@router.patch(
    "/{note_id}",
    response_model=ResponseEnvelope[UpdateNoteOut],
    summary="Actualizar nota",
    description="Update parcial; `matchedCount = 0` indica que la nota no existe.",
)
async def update_note(note_id: str, payload: UpdateNote, user_id: str = Depends(get_current_user_id)):
    return await note_service.update_note(note_id, user_id, payload.model_dump(exclude_unset=True, exclude_none=True))


@router.delete(
    "/{note_id}",
    response_model=ResponseEnvelope[DeleteNoteOut],
    summary="Borrar nota",
    description="Borra la nota y su canal. El sobre lleva `statusCode: 204`; la respuesta HTTP es 200 con cuerpo.",
)
async def delete_note(note_id: str, user_id: str = Depends(get_current_user_id)):
    return await note_service.delete_note(note_id, user_id)
