from dataclasses import dataclass
from typing import Optional

from fastapi import Query
from sqlalchemy import Select

from .config import settings


@dataclass(frozen=True)
class PaginationInfo:
    """Параметры постраничной выборки (страницы считаются с нуля)"""

    pagination_enabled: bool = True
    page_number: int = 0
    page_size: int = 0

    @property
    def num_skip(self) -> int:
        if not self.pagination_enabled:
            return 0
        return self.page_size * self.page_number

    def apply(self, query: Select) -> Select:
        """Добавляет offset/limit к запросу, если пагинация включена"""
        if not self.pagination_enabled or self.page_size <= 0:
            return query
        return query.offset(self.num_skip).limit(self.page_size)


def get_pagination(
        pagination_enabled: bool = Query(True, alias="paginationEnabled"),
        page_number: int = Query(0, ge=0, alias="pageNumber", description="Номер страницы, с нуля"),
        page_size: Optional[int] = Query(None, ge=1, le=1000, alias="pageSize")
) -> PaginationInfo:
    """Dependency для получения параметров пагинации из query string"""
    if not pagination_enabled:
        return PaginationInfo(pagination_enabled=False)

    return PaginationInfo(
        pagination_enabled=True,
        page_number=page_number,
        page_size=page_size or settings.default_pagination_page_size
    )
