"""
Pydantic schemas for Expense entity.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from app.schemas.balance import Money


class ExpenseCreate(BaseModel):
    """Schema for expense creation."""
    amount: Decimal = Field(gt=0)
    group_id: Optional[int] = None  # Omit for a personal expense
    description: Optional[str] = None
    category: Optional[str] = None
    participant_ids: List[int] = []  # Empty means the whole group shares it


class ExpenseUpdate(BaseModel):
    """Schema for expense update; omitted fields are left unchanged."""
    amount: Optional[Decimal] = Field(default=None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    participant_ids: Optional[List[int]] = None


class ExpenseResponse(BaseModel):
    """Schema for expense response."""
    id: int
    group_id: Optional[int] = None
    payer_id: int
    amount: Money
    description: Optional[str] = None
    category: Optional[str] = None
    is_personal: bool
    is_settlement: bool
    participant_ids: List[int] = []
    created_at: datetime


class RecentExpensesResponse(BaseModel):
    """Latest personal and group expenses for the dashboard feed."""
    personal_expenses: List[ExpenseResponse]
    group_expenses: List[ExpenseResponse]
