"""
Dashboard routes exposing the balance summary and recent activity.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from app.core.config import settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.balance import BalanceSummary
from app.schemas.expense import RecentExpensesResponse
from app.api.dependencies import get_current_user
from app.api.routes.expenses import to_expense_response
from app.services import expense_service
from app.services.dashboard_service import get_balance_summary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/summary", response_model=BalanceSummary)
async def get_dashboard_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Net balances, monthly totals and group summaries for the current user."""
    return get_balance_summary(current_user.id, db)


@router.get("/recent", response_model=RecentExpensesResponse)
async def get_recent_expenses(
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest personal and group expenses, newest first."""
    limit = limit or settings.RECENT_EXPENSE_LIMIT
    return RecentExpensesResponse(
        personal_expenses=[
            to_expense_response(e)
            for e in expense_service.recent_personal_expenses(current_user.id, db, limit)
        ],
        group_expenses=[
            to_expense_response(e)
            for e in expense_service.recent_group_expenses(current_user.id, db, limit)
        ]
    )
