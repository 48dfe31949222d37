"""
Expense service for expense-related business logic.
"""
import logging
from datetime import datetime
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import List, Optional
from app.core.exceptions import ExpenseNotFound, PermissionDenied, ValidationFailed
from app.core.utils import quantize_money
from app.models.expense import Expense, ExpenseSplit
from app.models.group import GroupMember
from app.services.group_service import check_group_access

logger = logging.getLogger(__name__)


def _check_participants(group, participant_ids: List[int]):
    members = set(group.member_ids)
    outsiders = [uid for uid in participant_ids if uid not in members]
    if outsiders:
        raise ValidationFailed(
            "All participants must be group members",
            details={"user_ids": outsiders}
        )


def create_expense(
    payer_id: int,
    amount: Decimal,
    group_id: Optional[int] = None,
    participant_ids: Optional[List[int]] = None,
    description: str = None,
    category: str = None,
    db: Session = None
) -> Expense:
    """
    Create an expense.

    Without ``group_id`` the expense is personal. For group expenses the
    payer must be a member; an empty ``participant_ids`` means the whole
    group shares it. Shares are not stored, they are derived on every
    balance run from the membership at that time.
    """
    amount = quantize_money(amount)
    if amount <= 0:
        raise ValidationFailed("Amount must be positive")

    is_personal = group_id is None
    participant_ids = list(dict.fromkeys(participant_ids or []))
    if is_personal and participant_ids:
        raise ValidationFailed("Personal expenses cannot be split")

    if not is_personal:
        group = check_group_access(group_id, payer_id, db)
        _check_participants(group, participant_ids)

    expense = Expense(
        group_id=group_id,
        payer_id=payer_id,
        amount=amount,
        description=description,
        category=category,
        is_personal=is_personal
    )
    db.add(expense)
    db.flush()

    for user_id in participant_ids:
        db.add(ExpenseSplit(expense_id=expense.id, user_id=user_id))

    db.commit()
    db.refresh(expense)

    return expense


def get_expense(expense_id: int, db: Session) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise ExpenseNotFound(expense_id)
    return expense


def delete_expense(expense_id: int, user_id: int, db: Session):
    """Delete an expense; only its payer may do so."""
    expense = get_expense(expense_id, db)
    if expense.payer_id != user_id:
        raise PermissionDenied("Only the payer can delete this expense")

    db.delete(expense)
    db.commit()


def update_expense(
    expense_id: int,
    user_id: int,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    category: Optional[str] = None,
    participant_ids: Optional[List[int]] = None,
    db: Session = None
) -> Expense:
    """
    Correct an expense; only its payer may do so. Fields left as None keep
    their value. ``participant_ids`` replaces the split list, and an empty
    list means the whole group shares it again.
    """
    expense = get_expense(expense_id, db)
    if expense.payer_id != user_id:
        raise PermissionDenied("Only the payer can update this expense")

    # Validate everything before touching the row
    if amount is not None:
        amount = quantize_money(amount)
        if amount <= 0:
            raise ValidationFailed("Amount must be positive")
    if participant_ids is not None:
        participant_ids = list(dict.fromkeys(participant_ids))
        if expense.is_personal and participant_ids:
            raise ValidationFailed("Personal expenses cannot be split")
        if not expense.is_personal:
            _check_participants(check_group_access(expense.group_id, user_id, db), participant_ids)

    if amount is not None:
        expense.amount = amount
    if description is not None:
        expense.description = description
    if category is not None:
        expense.category = category
    if participant_ids is not None:
        expense.splits = [ExpenseSplit(user_id=uid) for uid in participant_ids]

    expense.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(expense)

    logger.info(f"Expense {expense_id} updated by user {user_id}")
    return expense


def list_group_expenses(group_id: int, user_id: int, db: Session) -> List[Expense]:
    """Expenses of a group the user belongs to, newest first."""
    check_group_access(group_id, user_id, db)
    return db.query(Expense).filter(
        Expense.group_id == group_id
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).all()


def list_user_expenses(user_id: int, db: Session, limit: Optional[int] = None) -> List[Expense]:
    """
    Expenses the user paid or takes part in: their personal expenses plus
    every expense of the groups they belong to. Newest first.
    """
    group_ids = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
    query = db.query(Expense).filter(
        or_(
            (Expense.payer_id == user_id) & (Expense.is_personal == True),  # noqa: E712
            Expense.group_id.in_(group_ids)
        )
    ).order_by(Expense.created_at.desc(), Expense.id.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def recent_personal_expenses(user_id: int, db: Session, limit: int) -> List[Expense]:
    return db.query(Expense).filter(
        Expense.payer_id == user_id,
        Expense.is_personal == True  # noqa: E712
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).limit(limit).all()


def recent_group_expenses(user_id: int, db: Session, limit: int) -> List[Expense]:
    group_ids = select(GroupMember.group_id).where(GroupMember.user_id == user_id)
    return db.query(Expense).filter(
        Expense.group_id.in_(group_ids),
        Expense.is_personal == False  # noqa: E712
    ).order_by(Expense.created_at.desc(), Expense.id.desc()).limit(limit).all()
