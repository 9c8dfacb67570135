from typing import Generic, TypeVar

from pydantic import BaseModel

ItemT = TypeVar("ItemT")


class Page(BaseModel, Generic[ItemT]):
    """One page of a list endpoint."""

    items: list[ItemT]
    total: int
    page: int
    page_size: int


class MessageResponse(BaseModel):
    message: str
