"""Shared response shapes"""
from pydantic import BaseModel


class PageMeta(BaseModel):
    """Paging fields carried by every list response (page is 0-based)"""
    total: int
    page: int
    size: int
    total_pages: int


class MessageResponse(BaseModel):
    message: str
