"""Pydantic schemas for smart contracts."""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from docvault.schemas.common import CamelModel

ContractType = Literal["erc20", "erc721", "custom"]


class ContractCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: ContractType
    source_code: str = Field(..., min_length=1)


class ContractUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[ContractType] = None
    source_code: Optional[str] = Field(None, min_length=1)


class ContractRead(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    type: str
    source_code: str
    created_at: datetime
    updated_at: datetime
