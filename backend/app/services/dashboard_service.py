"""
Dashboard service: loads one snapshot of a user's ledger from the database
and hands it to the balance engine.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload
from app.core.exceptions import UserNotFound
from app.core.utils import to_decimal
from app.models.expense import Expense, ExpenseSplit
from app.models.group import Group, GroupMember
from app.models.settlement import Settlement
from app.models.user import User
from app.schemas.balance import BalanceSummary
from app.schemas.ledger import (
    BalanceInputs,
    ExpenseRecord,
    GroupSnapshot,
    SettlementRecord,
    SettlementStatus,
    UserRecord,
)
from app.services.balance_service import compute_balances
from app.services.cache_service import BalanceCache, balance_cache

logger = logging.getLogger(__name__)

# Tables whose rows feed a balance computation
VERSIONED_MODELS = (User, Group, GroupMember, Expense, ExpenseSplit, Settlement)


def _user_record(user: User) -> UserRecord:
    return UserRecord(id=user.id, username=user.username, email=user.email or "")


def _expense_record(expense: Expense) -> ExpenseRecord:
    return ExpenseRecord(
        id=expense.id,
        amount=to_decimal(expense.amount),
        payer_id=expense.payer_id,
        group_id=expense.group_id,
        split_among=tuple(expense.split_user_ids),
        created_at=expense.created_at,
        category=expense.category,
        description=expense.description or "",
        is_settlement=bool(expense.is_settlement),
        is_personal=bool(expense.is_personal)
    )


def _settlement_record(settlement: Settlement) -> SettlementRecord:
    return SettlementRecord(
        id=settlement.id,
        creditor_id=settlement.creditor_id,
        debtor_id=settlement.debtor_id,
        amount=to_decimal(settlement.amount),
        status=settlement.status,
        group_id=settlement.group_id,
        created_at=settlement.created_at,
        completed_at=settlement.completed_at,
        rejected_at=settlement.rejected_at
    )


def _load_users(user_ids: Iterable[int], db: Session) -> Dict[int, UserRecord]:
    ids = sorted(set(user_ids))
    if not ids:
        return {}
    users = db.query(User).filter(User.id.in_(ids)).all()
    return {u.id: _user_record(u) for u in users}


def load_balance_inputs(user_id: int, db: Session, now: Optional[datetime] = None) -> BalanceInputs:
    """
    Fetch everything the balance engine needs for ``user_id``.

    Each dataset is queried once; the engine never goes back to the database.
    Raises UserNotFound if the user does not exist.
    """
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound(user_id)

    now = now or datetime.utcnow()

    groups = db.query(Group).options(selectinload(Group.members)).join(
        GroupMember, GroupMember.group_id == Group.id
    ).filter(
        GroupMember.user_id == user_id
    ).order_by(Group.id).all()
    group_snapshots = {
        g.id: GroupSnapshot(id=g.id, name=g.name, member_ids=tuple(g.member_ids))
        for g in groups
    }

    group_expenses = []
    if group_snapshots:
        group_expenses = db.query(Expense).options(selectinload(Expense.splits)).filter(
            Expense.group_id.in_(list(group_snapshots)),
            Expense.is_personal == False,  # noqa: E712
            Expense.is_settlement == False  # noqa: E712
        ).order_by(Expense.id).all()

    personal_expenses = db.query(Expense).filter(
        Expense.payer_id == user_id,
        Expense.is_personal == True  # noqa: E712
    ).order_by(Expense.id).all()

    settlements = db.query(Settlement).filter(
        Settlement.status == SettlementStatus.COMPLETED,
        or_(Settlement.creditor_id == user_id, Settlement.debtor_id == user_id)
    ).order_by(Settlement.id).all()

    referenced = {user_id}
    for snapshot in group_snapshots.values():
        referenced.update(snapshot.member_ids)
    for expense in group_expenses:
        referenced.add(expense.payer_id)
        referenced.update(expense.split_user_ids)
    for settlement in settlements:
        referenced.update((settlement.creditor_id, settlement.debtor_id))

    logger.debug(
        f"Loaded snapshot for user {user_id}: {len(group_snapshots)} groups, "
        f"{len(group_expenses)} group expenses, {len(settlements)} settlements"
    )

    return BalanceInputs(
        user_id=user_id,
        now=now,
        users=_load_users(referenced, db),
        groups=group_snapshots,
        group_expenses=tuple(_expense_record(e) for e in group_expenses),
        personal_expenses=tuple(_expense_record(e) for e in personal_expenses),
        settlements=tuple(_settlement_record(s) for s in settlements)
    )


def ledger_version(db: Session) -> Tuple:
    """
    Fingerprint of the stored ledger: row count and latest ``updated_at`` per
    table. Any committed insert, update or delete changes it, whichever
    process or session made the write.
    """
    version = []
    for model in VERSIONED_MODELS:
        count, last_updated = db.query(func.count(model.id), func.max(model.updated_at)).one()
        version.append((model.__tablename__, count, last_updated))
    return tuple(version)


def get_balance_summary(
    user_id: int,
    db: Session,
    now: Optional[datetime] = None,
    cache: Optional[BalanceCache] = None
) -> BalanceSummary:
    """Balance summary for ``user_id``, memoized per ledger data version."""
    now = now or datetime.utcnow()
    cache = cache or balance_cache
    return cache.get_or_compute(
        user_id,
        ledger_version(db),
        now,
        lambda: compute_balances(load_balance_inputs(user_id, db, now))
    )
