"""Resource services — owner-scoped CRUD for documents and contracts.

Every query here filters on owner_id. A row owned by someone else is
treated exactly like a missing row (NotFound), so non-owners learn
nothing about which ids exist.
"""

import uuid
from typing import Any, Generic, Optional, TypeVar

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.db.models import CONTRACT_TYPES, DOCUMENT_TYPES, Contract, Document, utcnow
from docvault.errors import NotFound, ValidationError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", Document, Contract)


class OwnedResourceService(Generic[ModelT]):
    """Generic CRUD over a model with an owner_id column.

    Subclasses set `model`, `label` and `order_by`, and may override
    `_validate` to check fields before they are written.
    """

    model: type[ModelT]
    label: str = "Resource"
    required_fields: tuple[str, ...] = ()

    def __init__(self, db: AsyncSession):
        self.db = db

    def _ordering(self):
        raise NotImplementedError

    async def _validate(self, owner_id: uuid.UUID, fields: dict, current: Optional[ModelT] = None) -> None:
        for name in self.required_fields:
            if name in fields and not fields[name]:
                raise ValidationError(f"{name} is required")

    def _scoped(self, owner_id: uuid.UUID):
        return select(self.model).where(self.model.owner_id == owner_id)

    # ─── CRUD ───────────────────────────────────────────

    async def create(self, owner_id: uuid.UUID, **fields: Any) -> ModelT:
        for name in self.required_fields:
            if not fields.get(name):
                raise ValidationError(f"{name} is required")
        await self._validate(owner_id, fields)

        now = utcnow()
        obj = self.model(owner_id=owner_id, created_at=now, updated_at=now, **fields)
        self.db.add(obj)
        await self.db.commit()
        logger.info(
            "resource.created",
            kind=self.model.__tablename__,
            id=str(obj.id),
            owner_id=str(owner_id),
        )
        return obj

    async def list(self, owner_id: uuid.UUID, **filters: Any) -> list[ModelT]:
        query = self._scoped(owner_id)
        for name, value in filters.items():
            if value is not None:
                query = query.where(getattr(self.model, name) == value)
        result = await self.db.execute(query.order_by(*self._ordering()))
        return list(result.scalars().all())

    async def get(self, owner_id: uuid.UUID, resource_id: uuid.UUID) -> ModelT:
        result = await self.db.execute(
            self._scoped(owner_id).where(self.model.id == resource_id)
        )
        obj = result.scalars().first()
        if obj is None:
            raise NotFound(f"{self.label} not found")
        return obj

    async def update(
        self, owner_id: uuid.UUID, resource_id: uuid.UUID, **fields: Any
    ) -> ModelT:
        obj = await self.get(owner_id, resource_id)
        await self._validate(owner_id, fields, current=obj)

        for name, value in fields.items():
            setattr(obj, name, value)
        obj.updated_at = utcnow()
        await self.db.commit()
        return obj

    async def delete(self, owner_id: uuid.UUID, resource_id: uuid.UUID) -> None:
        obj = await self.get(owner_id, resource_id)
        await self._before_delete(obj)
        await self.db.delete(obj)
        await self.db.commit()
        logger.info(
            "resource.deleted",
            kind=self.model.__tablename__,
            id=str(resource_id),
            owner_id=str(owner_id),
        )

    async def _before_delete(self, obj: ModelT) -> None:
        pass


class DocumentService(OwnedResourceService[Document]):
    """Documents, including the "knowledge" page tree."""

    model = Document
    label = "Document"
    required_fields = ("title",)

    def _ordering(self):
        return (Document.updated_at.desc(), Document.created_at.desc())

    async def _validate(self, owner_id, fields, current=None):
        await super()._validate(owner_id, fields, current)

        doc_type = fields.get("type")
        if doc_type is not None and doc_type not in DOCUMENT_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(DOCUMENT_TYPES)}")

        parent_id = fields.get("parent_id")
        if parent_id is not None:
            await self._check_parent(owner_id, parent_id, current)

    async def _check_parent(
        self,
        owner_id: uuid.UUID,
        parent_id: uuid.UUID,
        current: Optional[Document],
    ) -> None:
        """Parent must be one of the caller's documents and not a descendant."""
        try:
            parent = await self.get(owner_id, parent_id)
        except NotFound:
            raise ValidationError("Parent document not found")

        if current is None:
            return
        # Walk up from the proposed parent; meeting `current` means a cycle
        node: Optional[Document] = parent
        seen: set[uuid.UUID] = set()
        while node is not None and node.id not in seen:
            if node.id == current.id:
                raise ValidationError("Document cannot be its own ancestor")
            seen.add(node.id)
            if node.parent_id is None:
                break
            node = await self.db.get(Document, node.parent_id)

    async def _before_delete(self, obj: Document) -> None:
        # Children move to the root rather than disappearing
        await self.db.execute(
            update(Document)
            .where(Document.parent_id == obj.id, Document.owner_id == obj.owner_id)
            .values(parent_id=None)
            .execution_options(synchronize_session="fetch")
        )

    async def list_roots(
        self, owner_id: uuid.UUID, type: Optional[str] = None
    ) -> list[Document]:
        """Top-level documents (no parent)."""
        query = self._scoped(owner_id).where(Document.parent_id.is_(None))
        if type is not None:
            query = query.where(Document.type == type)
        result = await self.db.execute(query.order_by(*self._ordering()))
        return list(result.scalars().all())

    async def list_children(
        self, owner_id: uuid.UUID, parent_id: uuid.UUID
    ) -> list[Document]:
        await self.get(owner_id, parent_id)
        return await self.list(owner_id, parent_id=parent_id)


class ContractService(OwnedResourceService[Contract]):
    """Smart contract sources."""

    model = Contract
    label = "Contract"
    required_fields = ("name", "type", "source_code")

    def _ordering(self):
        return (Contract.created_at.desc(),)

    async def _validate(self, owner_id, fields, current=None):
        await super()._validate(owner_id, fields, current)

        contract_type = fields.get("type")
        if contract_type is not None and contract_type not in CONTRACT_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(CONTRACT_TYPES)}")
