from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import CamelModel


class CommentCreate(CamelModel):
    content: str = Field(..., max_length=2000)
    author: Optional[str] = Field(None, max_length=255)


class CommentResponse(CamelModel):
    id: str
    product_id: str
    content: str
    author: str
    created_at: datetime
