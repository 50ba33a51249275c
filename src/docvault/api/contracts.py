"""Smart contract API routes (owner-scoped, like documents)."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from docvault.auth.dependencies import Identity, get_current_identity
from docvault.db.engine import get_db
from docvault.schemas.common import Envelope, Message, ok
from docvault.schemas.contract import ContractCreate, ContractRead, ContractUpdate
from docvault.services.resource_service import ContractService

router = APIRouter(prefix="/contracts")


def _svc(db: AsyncSession = Depends(get_db)) -> ContractService:
    return ContractService(db)


@router.get("", response_model=Envelope[list[ContractRead]])
async def list_contracts(
    identity: Identity = Depends(get_current_identity),
    svc: ContractService = Depends(_svc),
):
    """The caller's contracts, newest first."""
    contracts = await svc.list(identity.user_id)
    return ok([ContractRead.model_validate(c) for c in contracts])


@router.post("", response_model=Envelope[ContractRead], status_code=201)
async def create_contract(
    body: ContractCreate,
    identity: Identity = Depends(get_current_identity),
    svc: ContractService = Depends(_svc),
):
    contract = await svc.create(identity.user_id, **body.model_dump())
    return ok(ContractRead.model_validate(contract))


@router.get("/{contract_id}", response_model=Envelope[ContractRead])
async def get_contract(
    contract_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    svc: ContractService = Depends(_svc),
):
    contract = await svc.get(identity.user_id, contract_id)
    return ok(ContractRead.model_validate(contract))


@router.put("/{contract_id}", response_model=Envelope[ContractRead])
async def update_contract(
    contract_id: uuid.UUID,
    body: ContractUpdate,
    identity: Identity = Depends(get_current_identity),
    svc: ContractService = Depends(_svc),
):
    fields = {
        k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None
    }
    contract = await svc.update(identity.user_id, contract_id, **fields)
    return ok(ContractRead.model_validate(contract))


@router.delete("/{contract_id}", response_model=Envelope[Message])
async def delete_contract(
    contract_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    svc: ContractService = Depends(_svc),
):
    await svc.delete(identity.user_id, contract_id)
    return ok(Message(message="Contract deleted successfully"))
