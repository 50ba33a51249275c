"""Document API routes.

All routes require an identity (applied at include_router level) and
pass identity.user_id to DocumentService, which scopes every query by
owner. Another user's document id behaves exactly like an unknown id.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.auth.dependencies import Identity, get_current_identity
from docvault.db.engine import get_db
from docvault.errors import ValidationError
from docvault.schemas.common import Envelope, Message, ok
from docvault.schemas.document import (
    DocumentCreate,
    DocumentRead,
    DocumentType,
    DocumentUpdate,
)
from docvault.services.resource_service import DocumentService

router = APIRouter(prefix="/documents")

# Fields that may be cleared by sending null; the rest ignore nulls
NULLABLE_FIELDS = {"parent_id"}


def _svc(db: AsyncSession = Depends(get_db)) -> DocumentService:
    return DocumentService(db)


@router.get("", response_model=Envelope[list[DocumentRead]])
async def list_documents(
    type: Optional[DocumentType] = None,
    parent_id: Optional[uuid.UUID] = Query(None, alias="parentId"),
    root: bool = False,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    """The caller's documents, most recently updated first.

    `parentId` narrows to one page's children; `root=true` to pages with
    no parent.
    """
    if root and parent_id is not None:
        raise ValidationError("parentId and root cannot be combined")
    if root:
        docs = await svc.list_roots(identity.user_id, type=type)
    else:
        docs = await svc.list(identity.user_id, type=type, parent_id=parent_id)
    return ok([DocumentRead.model_validate(d) for d in docs])


@router.post("", response_model=Envelope[DocumentRead], status_code=201)
async def create_document(
    body: DocumentCreate,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    doc = await svc.create(identity.user_id, **body.model_dump())
    return ok(DocumentRead.model_validate(doc))


@router.get("/{document_id}", response_model=Envelope[DocumentRead])
async def get_document(
    document_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    doc = await svc.get(identity.user_id, document_id)
    return ok(DocumentRead.model_validate(doc))


@router.get("/{document_id}/children", response_model=Envelope[list[DocumentRead]])
async def list_children(
    document_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    docs = await svc.list_children(identity.user_id, document_id)
    return ok([DocumentRead.model_validate(d) for d in docs])


@router.put("/{document_id}", response_model=Envelope[DocumentRead])
async def update_document(
    document_id: uuid.UUID,
    body: DocumentUpdate,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    fields = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    doc = await svc.update(identity.user_id, document_id, **fields)
    return ok(DocumentRead.model_validate(doc))


@router.delete("/{document_id}", response_model=Envelope[Message])
async def delete_document(
    document_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    svc: DocumentService = Depends(_svc),
):
    await svc.delete(identity.user_id, document_id)
    return ok(Message(message="Document deleted successfully"))
