"""Shared schema pieces: camelCase JSON and the response envelope.

Every response has the same shape:
    {"success": true, "data": ...}  or  {"success": false, "error": "..."}
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case also accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None


class Message(BaseModel):
    message: str


def ok(data=None) -> Envelope:
    return Envelope(success=True, data=data)


def fail(error: str) -> dict:
    return {"success": False, "error": error}
