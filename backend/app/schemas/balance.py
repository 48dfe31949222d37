"""
Pydantic schemas for the balance summary returned by the engine.

Money fields stay ``Decimal`` in Python and are written as JSON numbers.
"""
from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer, computed_field
from types import MappingProxyType
from typing import Annotated, Dict, Mapping, Optional, Tuple
from datetime import datetime
from decimal import Decimal

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class PartyInfo(BaseModel):
    """Display data for one side of a debt; formatting is left to the client."""
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    email: str = ""
    is_you: bool = False
    is_known: bool = True


class NetBalance(BaseModel):
    """A single netted debt: debtor owes creditor ``amount``."""
    model_config = ConfigDict(frozen=True)

    amount: Money
    debtor_info: PartyInfo
    creditor_info: PartyInfo


class GroupSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_id: int
    group_name: str
    member_count: int
    total_group_spend_this_month: Money
    you_paid_this_month: Money
    your_share_this_month: Money


class SkippedRecord(BaseModel):
    """A record left out of the computation because it was malformed."""
    model_config = ConfigDict(frozen=True)

    kind: str  # "expense" or "settlement"
    record_id: int
    reason: str


# Read-only views; dumped back to plain dicts
NetBalanceMap = Annotated[
    Mapping[str, NetBalance],
    AfterValidator(MappingProxyType),
    PlainSerializer(dict, return_type=Dict[str, NetBalance])
]
CategoryMap = Annotated[
    Mapping[str, Money],
    AfterValidator(MappingProxyType),
    PlainSerializer(dict, return_type=Dict[str, Money])
]


class BalanceSummary(BaseModel):
    """Schema for the per-user balance summary."""
    model_config = ConfigDict(frozen=True)

    user_id: int
    generated_at: datetime
    net_balances: NetBalanceMap  # "debtorId:creditorId" -> balance
    group_summaries: Tuple[GroupSummary, ...]
    personal_monthly_total: Money
    group_monthly_total: Money
    total_owed: Money
    total_owed_to_user: Money
    categories: CategoryMap
    skipped_records: Tuple[SkippedRecord, ...] = ()

    @computed_field
    @property
    def skipped_count(self) -> int:
        return len(self.skipped_records)

    def balance_between(self, debtor_id: int, creditor_id: int) -> Optional[Decimal]:
        """Amount debtor owes creditor after netting, or None if settled."""
        entry = self.net_balances.get(f"{debtor_id}:{creditor_id}")
        return entry.amount if entry else None
