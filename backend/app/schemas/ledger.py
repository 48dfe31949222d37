"""
Immutable ledger records consumed by the balance engine.

Rows are converted into these records at the storage boundary so the engine
only ever compares plain integer ids and Decimal amounts.
"""
from pydantic import BaseModel, ConfigDict
from typing import Dict, Optional, Tuple
from datetime import datetime
from decimal import Decimal
import enum

UserId = int
GroupId = int


class SettlementStatus(str, enum.Enum):
    """Settlement lifecycle; completed and rejected are terminal."""
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class LedgerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)


class UserRecord(LedgerRecord):
    id: UserId
    username: str
    email: str = ""


class GroupSnapshot(LedgerRecord):
    """Group membership as it stood when the snapshot was taken."""
    id: GroupId
    name: str
    member_ids: Tuple[UserId, ...] = ()


class ExpenseRecord(LedgerRecord):
    id: int
    amount: Decimal
    payer_id: UserId
    group_id: Optional[GroupId] = None
    split_among: Tuple[UserId, ...] = ()  # Empty means the whole group
    created_at: datetime
    category: Optional[str] = None
    description: str = ""
    is_settlement: bool = False
    is_personal: bool = False


class SettlementRecord(LedgerRecord):
    id: int
    creditor_id: UserId  # Receives the payment
    debtor_id: UserId  # Claims to have paid
    amount: Decimal
    status: SettlementStatus = SettlementStatus.PENDING
    group_id: Optional[GroupId] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None


class BalanceInputs(LedgerRecord):
    """Everything one balance computation reads, fetched once."""
    user_id: UserId
    now: datetime
    users: Dict[UserId, UserRecord] = {}
    groups: Dict[GroupId, GroupSnapshot] = {}
    group_expenses: Tuple[ExpenseRecord, ...] = ()
    personal_expenses: Tuple[ExpenseRecord, ...] = ()
    settlements: Tuple[SettlementRecord, ...] = ()
