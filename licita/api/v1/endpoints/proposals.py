from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from licita.api.dependencies import get_container, get_current_actor, get_db, rate_limit, require_permissions, require_roles
from licita.core.container import Container
from licita.models.enums import Permission, ProposalStatus, UserRole
from licita.schemas.proposals import (
    ProposalCreate,
    ProposalDetail,
    ProposalEvaluation,
    ProposalListResponse,
    ProposalRejection,
    ProposalUpdate,
)
from licita.services.actor import Actor

router = APIRouter()

SUPPLIER_ROLES = (UserRole.SUPPLIER, UserRole.ADMIN)
OWNER_ROLES = (UserRole.PUBLIC_ENTITY, UserRole.ADMIN)


@router.get("/", response_model=ProposalListResponse, summary="Предложения по лицитации")
async def list_proposals(
    bidding_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    status: Optional[ProposalStatus] = None,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    proposals, total = await container.proposals.list_proposals(
        db, actor, bidding_id, page=page, per_page=per_page, status=status.value if status else None
    )
    return ProposalListResponse(proposals=proposals, total=total, page=page, per_page=per_page)


@router.get("/{proposal_id}", response_model=ProposalDetail)
async def get_proposal(
    proposal_id: str,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.get_visible_proposal(db, actor, proposal_id)


@router.post(
    "/",
    response_model=ProposalDetail,
    status_code=201,
    summary="Создание предложения",
    dependencies=[Depends(rate_limit("proposals"))],
)
async def create_proposal(
    data: ProposalCreate,
    actor: Actor = Depends(require_permissions(Permission.CREATE_PROPOSAL, roles=SUPPLIER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.create_proposal(db, actor, data.dict(exclude_unset=True))


@router.put("/{proposal_id}", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def update_proposal(
    proposal_id: str,
    data: ProposalUpdate,
    actor: Actor = Depends(require_permissions(Permission.EDIT_PROPOSAL, roles=SUPPLIER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.update_proposal(db, actor, proposal_id, data.dict(exclude_unset=True))


@router.post("/{proposal_id}/submit", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def submit_proposal(
    proposal_id: str,
    actor: Actor = Depends(require_permissions(Permission.SUBMIT_PROPOSAL, roles=SUPPLIER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.submit_proposal(db, actor, proposal_id)


@router.post("/{proposal_id}/withdraw", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def withdraw_proposal(
    proposal_id: str,
    actor: Actor = Depends(require_permissions(Permission.EDIT_PROPOSAL, roles=SUPPLIER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.withdraw_proposal(db, actor, proposal_id)


@router.post("/{proposal_id}/evaluate", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def evaluate_proposal(
    proposal_id: str,
    data: Optional[ProposalEvaluation] = None,
    actor: Actor = Depends(require_roles(*OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.evaluate_proposal(
        db, actor, proposal_id, data.dict(exclude_unset=True) if data else None
    )


@router.post("/{proposal_id}/accept", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def accept_proposal(
    proposal_id: str,
    actor: Actor = Depends(require_roles(*OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.accept_proposal(db, actor, proposal_id)


@router.post("/{proposal_id}/reject", response_model=ProposalDetail, dependencies=[Depends(rate_limit("proposals"))])
async def reject_proposal(
    proposal_id: str,
    data: Optional[ProposalRejection] = None,
    actor: Actor = Depends(require_roles(*OWNER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    return await container.proposals.reject_proposal(db, actor, proposal_id, data.reason if data else None)


@router.delete("/{proposal_id}", status_code=204, dependencies=[Depends(rate_limit("proposals"))])
async def delete_proposal(
    proposal_id: str,
    actor: Actor = Depends(require_permissions(Permission.DELETE_PROPOSAL, roles=SUPPLIER_ROLES)),
    db: AsyncSession = Depends(get_db),
    container: Container = Depends(get_container),
):
    await container.proposals.delete_proposal(db, actor, proposal_id)
