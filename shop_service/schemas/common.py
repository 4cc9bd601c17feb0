import math
from typing import Generic, List, Optional, Sequence, TypeVar

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from ..errors import ErrorLevel
from ..pagination import PaginationInfo

T = TypeVar("T")


class CamelModel(BaseModel):
    """Базовая схема: camelCase в JSON, snake_case в Python"""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Envelope(CamelModel):
    error_code: int = 0
    error_level: ErrorLevel = ErrorLevel.OK
    error_description: str = "OK"


class StandardResponse(Envelope, Generic[T]):
    """Стандартный ответ API"""

    data: Optional[T] = None


class StandardList(Envelope, Generic[T]):
    """Стандартный ответ со списком и метаданными пагинации"""

    data: None = None
    list: List[T] = []
    total_elements: int = 0
    paged: bool = False
    page_number: int = 0
    page_size: int = 0
    total_pages: int = 1
    local_elements: int = 0
    has_content: bool = False
    first: bool = True
    last: bool = True
    has_next: bool = False
    has_previous: bool = False

    @classmethod
    def build(
            cls,
            items: Sequence,
            total: Optional[int] = None,
            pagination: Optional[PaginationInfo] = None
    ) -> "StandardList":
        items = list(items) if items else []
        local_elements = len(items)
        values = {
            "list": items,
            "local_elements": local_elements,
            "has_content": local_elements > 0,
            "total_elements": total or local_elements,
        }

        if pagination:
            values["paged"] = pagination.pagination_enabled
            values["page_number"] = pagination.page_number
            values["page_size"] = pagination.page_size

            if pagination.pagination_enabled and pagination.page_size > 0:
                total_pages = math.ceil(values["total_elements"] / pagination.page_size)
                first = pagination.page_number == 0
                last = pagination.page_number >= total_pages - 1
                values.update(
                    total_pages=total_pages,
                    first=first,
                    last=last,
                    has_next=not last,
                    has_previous=not first
                )

        return cls(**values)
