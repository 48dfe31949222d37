"""
Split service: works out who takes part in an expense and their share.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_EVEN
from typing import Iterable, List, Mapping, Optional, Tuple
from app.core.exceptions import MalformedExpense
from app.schemas.balance import SkippedRecord
from app.schemas.ledger import ExpenseRecord, GroupId, GroupSnapshot, UserId
from app.services.skip_log import record_skip

logger = logging.getLogger(__name__)

# Shares are fixed-point at this precision so sums are exact in any order
SHARE_QUANTUM = Decimal("1e-10")


@dataclass(frozen=True)
class SplitResult:
    """Resolved split of one expense."""
    expense: ExpenseRecord
    participants: Tuple[UserId, ...]
    share: Decimal

    def includes(self, user_id: UserId) -> bool:
        return user_id in self.participants

    def shares(self) -> List[Tuple[UserId, Decimal]]:
        return [(participant, self.share) for participant in self.participants]


def resolve_participants(
    expense: ExpenseRecord,
    member_ids: Optional[Iterable[UserId]]
) -> Tuple[UserId, ...]:
    """
    Participants of an expense under the current group membership.

    The explicit split list is filtered to current members; if nothing
    survives, the whole membership takes part. The payer is always included.
    Order follows the split list (or membership) with duplicates removed.
    """
    members = tuple(dict.fromkeys(member_ids or ()))
    member_set = set(members)

    participants = [uid for uid in expense.split_among if uid in member_set]
    if not participants:
        participants = list(members)

    participants.append(expense.payer_id)
    return tuple(dict.fromkeys(participants))


def calculate_split(
    expense: ExpenseRecord,
    member_ids: Optional[Iterable[UserId]]
) -> SplitResult:
    """
    Split an expense equally among its resolved participants.

    Raises MalformedExpense when the group has no members to fall back on.
    """
    members = tuple(member_ids or ())
    if not members:
        raise MalformedExpense(expense.id, "group has no members")

    participants = resolve_participants(expense, members)
    share = (expense.amount / Decimal(len(participants))).quantize(SHARE_QUANTUM, rounding=ROUND_HALF_EVEN)
    return SplitResult(expense=expense, participants=participants, share=share)


def resolve_expense_splits(
    expenses: Iterable[ExpenseRecord],
    groups: Mapping[GroupId, GroupSnapshot],
    skipped: Optional[List[SkippedRecord]] = None
) -> List[SplitResult]:
    """
    Split every group expense against its group's snapshot.

    Expenses that cannot be split (no group, unknown group, empty group) are
    skipped and reported through ``skipped``; the rest are returned in input
    order. Settlement and personal expenses are dropped here too.
    """
    results = []
    for expense in expenses:
        if expense.is_settlement or expense.is_personal:
            logger.debug(f"Ignoring non-shared expense {expense.id}")
            continue
        if expense.group_id is None:
            record_skip(skipped, "expense", expense.id, "expense has no group")
            continue
        if expense.amount <= 0:
            record_skip(skipped, "expense", expense.id, "amount must be positive")
            continue
        group = groups.get(expense.group_id)
        if group is None:
            record_skip(skipped, "expense", expense.id, f"unknown group {expense.group_id}")
            continue
        try:
            results.append(calculate_split(expense, group.member_ids))
        except MalformedExpense as e:
            record_skip(skipped, "expense", expense.id, e.reason)
    return results
