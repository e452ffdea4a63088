"""
Persistence contract shared by the spreadsheet file and analytics repositories.
Services depend on these Protocols; SQLAlchemy implementations live in infrastructure.
"""

from typing import Any, Mapping, Optional, Protocol, TypeVar, Union

from pydantic import BaseModel

T = TypeVar("T")

# Column values, or a pydantic model whose explicitly set fields are used
Values = Union[Mapping[str, Any], BaseModel]


class BaseRepository(Protocol[T]):
    def get_by_id(self, id: int) -> Optional[T]:
        ...

    def create(self, values: Values) -> T:
        """Insert a row and return it refreshed (ids, server defaults)."""
        ...

    def update(self, record: T, values: Values) -> T:
        """Apply known attributes to a loaded record and commit."""
        ...

    def delete(self, id: int) -> Optional[T]:
        """Delete by id; returns the removed record, or None if it did not exist."""
        ...
