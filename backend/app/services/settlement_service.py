"""
Settlement service for recording debts paid outside the app.

A debtor requests a settlement, which starts pending. The creditor then
accepts it (completed) or rejects it, exactly once. Only completed
settlements reduce balances.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.orm import Session
from app.core.exceptions import (
    PermissionDenied,
    SettlementNotFound,
    SettlementStateError,
    ValidationFailed,
)
from app.core.utils import quantize_money
from app.models.settlement import Settlement
from app.schemas.ledger import SettlementStatus
from app.services.group_service import check_group_access, get_group
from app.services.user_service import get_user

logger = logging.getLogger(__name__)

SETTLEMENT_METHODS = ["cash", "upi", "bank-transfer", "other"]


def get_settlement(settlement_id: int, db: Session) -> Settlement:
    settlement = db.query(Settlement).filter(Settlement.id == settlement_id).first()
    if not settlement:
        raise SettlementNotFound(settlement_id)
    return settlement


def request_settlement(
    debtor_id: int,
    creditor_id: int,
    amount: Decimal,
    group_id: Optional[int] = None,
    method: str = "cash",
    notes: Optional[str] = None,
    db: Session = None
) -> Settlement:
    """Create a pending settlement claiming ``debtor_id`` paid ``creditor_id``."""
    amount = quantize_money(amount)
    if amount <= 0:
        raise ValidationFailed("Amount must be positive")
    if debtor_id == creditor_id:
        raise ValidationFailed("You cannot settle with yourself")
    if method not in SETTLEMENT_METHODS:
        raise ValidationFailed(f"Unknown settlement method '{method}'")

    debtor = get_user(debtor_id, db)
    get_user(creditor_id, db)

    if group_id is not None:
        member_ids = get_group(group_id, db).member_ids
        if debtor_id not in member_ids or creditor_id not in member_ids:
            raise PermissionDenied("Both users must be members of the group")

    settlement = Settlement(
        group_id=group_id,
        creditor_id=creditor_id,
        debtor_id=debtor_id,
        amount=amount,
        description=f"Settlement request from {debtor.username}",
        method=method,
        notes=notes,
        status=SettlementStatus.PENDING
    )
    db.add(settlement)
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement.id} requested: {debtor_id} -> {creditor_id} {amount}")
    return settlement


def _pending_for_creditor(settlement_id: int, acting_user_id: int, action: str, db: Session) -> Settlement:
    settlement = get_settlement(settlement_id, db)
    if settlement.creditor_id != acting_user_id:
        raise PermissionDenied(f"Only the creditor can {action} this settlement")
    if settlement.status != SettlementStatus.PENDING:
        raise SettlementStateError("Settlement is not pending")
    return settlement


def accept_settlement(settlement_id: int, acting_user_id: int, db: Session) -> Settlement:
    """Creditor confirms the payment; the settlement now counts toward balances."""
    settlement = _pending_for_creditor(settlement_id, acting_user_id, "accept", db)

    settlement.status = SettlementStatus.COMPLETED
    settlement.completed_at = datetime.utcnow()
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement_id} completed by user {acting_user_id}")
    return settlement


def reject_settlement(
    settlement_id: int,
    acting_user_id: int,
    reason: Optional[str] = None,
    db: Session = None
) -> Settlement:
    """Creditor disputes the payment; balances are unaffected."""
    settlement = _pending_for_creditor(settlement_id, acting_user_id, "reject", db)

    settlement.status = SettlementStatus.REJECTED
    settlement.rejected_at = datetime.utcnow()
    settlement.rejection_reason = reason or "No reason provided"
    db.commit()
    db.refresh(settlement)

    logger.info(f"Settlement {settlement_id} rejected by user {acting_user_id}")
    return settlement


def cancel_settlement(settlement_id: int, acting_user_id: int, db: Session):
    """Debtor withdraws a request that is still pending."""
    settlement = get_settlement(settlement_id, db)
    if settlement.debtor_id != acting_user_id:
        raise PermissionDenied("Only the requester can cancel this settlement")
    if settlement.status != SettlementStatus.PENDING:
        raise SettlementStateError("Settlement is not pending")

    db.delete(settlement)
    db.commit()


def list_pending_for_creditor(user_id: int, db: Session) -> List[Settlement]:
    """Pending settlements waiting on ``user_id`` to accept or reject."""
    return db.query(Settlement).filter(
        Settlement.creditor_id == user_id,
        Settlement.status == SettlementStatus.PENDING
    ).order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()


def list_history(user_id: int, db: Session, status: Optional[SettlementStatus] = None) -> List[Settlement]:
    """Settlements where ``user_id`` is either party, newest first."""
    query = db.query(Settlement).filter(
        (Settlement.creditor_id == user_id) | (Settlement.debtor_id == user_id)
    )
    if status is not None:
        query = query.filter(Settlement.status == status)
    return query.order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()


def list_group_settlements(group_id: int, user_id: int, db: Session) -> List[Settlement]:
    """Settlements recorded in a group the user belongs to, newest first."""
    check_group_access(group_id, user_id, db)
    return db.query(Settlement).filter(
        Settlement.group_id == group_id
    ).order_by(Settlement.created_at.desc(), Settlement.id.desc()).all()
