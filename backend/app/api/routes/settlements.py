"""
Settlement management routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db.session import get_db
from app.models.user import User
from app.schemas.ledger import SettlementStatus
from app.schemas.settlement import SettlementReject, SettlementRequest, SettlementResponse
from app.api.dependencies import get_current_user
from app.core.utils import format_response
from app.services import settlement_service

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.post("/request", response_model=SettlementResponse, status_code=status.HTTP_201_CREATED)
async def request_settlement(
    request: SettlementRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Claim that the current user paid ``creditor_id``."""
    return settlement_service.request_settlement(
        debtor_id=current_user.id,
        creditor_id=request.creditor_id,
        amount=request.amount,
        group_id=request.group_id,
        method=request.method,
        notes=request.notes,
        db=db
    )


@router.post("/{settlement_id}/accept", response_model=SettlementResponse)
async def accept_settlement(
    settlement_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accept a pending settlement addressed to the current user."""
    return settlement_service.accept_settlement(settlement_id, current_user.id, db)


@router.post("/{settlement_id}/reject", response_model=SettlementResponse)
async def reject_settlement(
    settlement_id: int,
    body: SettlementReject,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Reject a pending settlement addressed to the current user."""
    return settlement_service.reject_settlement(settlement_id, current_user.id, body.reason, db)


@router.post("/{settlement_id}/cancel")
async def cancel_settlement(
    settlement_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Withdraw a pending request made by the current user."""
    settlement_service.cancel_settlement(settlement_id, current_user.id, db)
    return format_response({"settlement_id": settlement_id}, "Settlement cancelled")


@router.get("/group/{group_id}", response_model=List[SettlementResponse])
async def get_group_settlements(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Settlements recorded in one of the current user's groups."""
    return settlement_service.list_group_settlements(group_id, current_user.id, db)


@router.get("/pending", response_model=List[SettlementResponse])
async def get_pending_settlements(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Settlements waiting for the current user's decision."""
    return settlement_service.list_pending_for_creditor(current_user.id, db)


@router.get("/history", response_model=List[SettlementResponse])
async def get_settlement_history(
    status_filter: Optional[SettlementStatus] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All settlements involving the current user."""
    return settlement_service.list_history(current_user.id, db, status_filter)
