from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from licita.api.dependencies import get_container, get_current_actor, get_db, rate_limit, require_permissions
from licita.core.container import Container
from licita.models.enums import Permission, UserRole
from licita.schemas.contracts import ContractCreate, ContractDetail, ContractUpdate
from licita.services.actor import Actor

router = APIRouter()

OWNER_ROLES = (UserRole.PUBLIC_ENTITY, UserRole.ADMIN)


@router.get("/{contract_id}", response_model=ContractDetail)
async def get_contract(
    contract_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.get_visible_contract(db, actor, contract_id)


@router.post("/", response_model=ContractDetail, status_code=201, dependencies=[Depends(rate_limit("contracts"))])
async def create_contract(
    data: ContractCreate,
    actor: Actor = Depends(require_permissions(Permission.CREATE_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.create_contract(db, actor, data.dict(exclude_unset=True))


@router.put("/{contract_id}", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def update_contract(
    contract_id: str,
    data: ContractUpdate,
    actor: Actor = Depends(require_permissions(Permission.EDIT_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.update_contract(db, actor, contract_id, data.dict(exclude_unset=True))


@router.post("/{contract_id}/sign", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def sign_contract(
    contract_id: str,
    actor: Actor = Depends(require_permissions(Permission.SIGN_CONTRACT)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.sign_contract(db, actor, contract_id)


@router.post("/{contract_id}/activate", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def activate_contract(
    contract_id: str,
    actor: Actor = Depends(require_permissions(Permission.EDIT_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.activate_contract(db, actor, contract_id)


@router.post("/{contract_id}/suspend", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def suspend_contract(
    contract_id: str,
    actor: Actor = Depends(require_permissions(Permission.EDIT_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.suspend_contract(db, actor, contract_id)


@router.post("/{contract_id}/complete", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def complete_contract(
    contract_id: str,
    actor: Actor = Depends(require_permissions(Permission.EDIT_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.complete_contract(db, actor, contract_id)


@router.post("/{contract_id}/terminate", response_model=ContractDetail, dependencies=[Depends(rate_limit("contracts"))])
async def terminate_contract(
    contract_id: str,
    actor: Actor = Depends(require_permissions(Permission.TERMINATE_CONTRACT, roles=OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.contracts.terminate_contract(db, actor, contract_id)
