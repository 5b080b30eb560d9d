"""
Shared schema building blocks.

Wire format is camelCase (contestantId, votePercentage, ...) to match the
site's JavaScript clients; Python code uses snake_case field names.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[DataT]):
    """Standard response envelope: every response carries a success flag."""

    success: bool = True
    message: Optional[str] = None
    data: DataT


class MessageResponse(CamelModel):
    """Response with no payload."""

    success: bool = True
    message: str
