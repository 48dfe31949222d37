"""
Expense management routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.db.session import get_db
from app.models.expense import Expense
from app.models.user import User
from app.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate
from app.api.dependencies import get_current_user
from app.services import expense_service
from app.services.group_service import check_group_access

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def to_expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        group_id=expense.group_id,
        payer_id=expense.payer_id,
        amount=expense.amount,
        description=expense.description,
        category=expense.category,
        is_personal=expense.is_personal,
        is_settlement=expense.is_settlement,
        participant_ids=expense.split_user_ids,
        created_at=expense.created_at
    )


@router.post("", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    expense_data: ExpenseCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Record an expense paid by the current user."""
    expense = expense_service.create_expense(
        payer_id=current_user.id,
        amount=expense_data.amount,
        group_id=expense_data.group_id,
        participant_ids=expense_data.participant_ids,
        description=expense_data.description,
        category=expense_data.category,
        db=db
    )
    logger.info(f"Expense {expense.id} created by user {current_user.id}")
    return to_expense_response(expense)


@router.get("", response_model=List[ExpenseResponse])
async def list_expenses(
    limit: Optional[int] = Query(None, ge=1),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Personal and group expenses visible to the current user, newest first."""
    expenses = expense_service.list_user_expenses(current_user.id, db, limit)
    return [to_expense_response(e) for e in expenses]


@router.get("/{expense_id}", response_model=ExpenseResponse)
async def get_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an expense visible to the current user."""
    expense = expense_service.get_expense(expense_id, db)
    if expense.group_id is not None:
        check_group_access(expense.group_id, current_user.id, db)
    elif expense.payer_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found"
        )
    return to_expense_response(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: int,
    expense_data: ExpenseUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an expense paid by the current user."""
    expense = expense_service.update_expense(
        expense_id,
        current_user.id,
        amount=expense_data.amount,
        description=expense_data.description,
        category=expense_data.category,
        participant_ids=expense_data.participant_ids,
        db=db
    )
    return to_expense_response(expense)


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_expense(
    expense_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an expense paid by the current user."""
    expense_service.delete_expense(expense_id, current_user.id, db)
