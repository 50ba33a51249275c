"""Pydantic schemas for documents and knowledge pages.

Separate "Create"/"Update" schemas (input) from "Read" schemas (output).
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from docvault.schemas.common import CamelModel

DocumentType = Literal["normal", "knowledge"]


class DocumentCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = ""
    type: DocumentType = "normal"
    tags: list[str] = Field(default_factory=list)
    parent_id: Optional[uuid.UUID] = None


class DocumentUpdate(CamelModel):
    """Partial update; omitted fields are left unchanged."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = None
    type: Optional[DocumentType] = None
    tags: Optional[list[str]] = None
    parent_id: Optional[uuid.UUID] = None


class DocumentRead(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    content: str
    type: str
    tags: list[str]
    parent_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
