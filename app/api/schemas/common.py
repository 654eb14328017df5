"""
Esquemas compartidos: sobre de respuesta `{data, statusCode}` y paginación.
"""
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from app.core.config import settings

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serializa en camelCase (`statusCode`, `matchedCount`, ...) y acepta ambos nombres."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ResponseEnvelope(CamelModel, Generic[T]):
    data: Optional[T] = None
    status_code: int


class PageOptions(CamelModel):
    page: int = Field(1, ge=1)
    limit: int = Field(settings.notes_page_limit_default, ge=1, le=settings.notes_page_limit_max)

    @computed_field  # type: ignore[misc]
    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(CamelModel):
    page: int
    limit: int
    total_record: int
    page_count: int
    has_previous_page: bool
    has_next_page: bool


class Page(CamelModel, Generic[T]):
    data: List[T]
    meta: PageMeta
