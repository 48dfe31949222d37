"""
Pydantic schemas for Settlement entity.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from app.schemas.balance import Money
from app.schemas.ledger import SettlementStatus


class SettlementRequest(BaseModel):
    """Schema for a debtor's settlement request."""
    creditor_id: int
    amount: Decimal = Field(gt=0)
    group_id: Optional[int] = None
    method: str = "cash"
    notes: Optional[str] = None


class SettlementReject(BaseModel):
    reason: Optional[str] = None


class SettlementResponse(BaseModel):
    """Schema for settlement response."""
    id: int
    group_id: Optional[int] = None
    creditor_id: int
    debtor_id: int
    amount: Money
    description: Optional[str] = None
    status: SettlementStatus
    method: str
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None

    class Config:
        from_attributes = True
