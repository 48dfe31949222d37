"""
Aggregation service: monthly totals, per-group summaries and category
breakdown derived from the same resolved splits the debt map is built from.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from app.core.config import settings
from app.core.utils import first_day_of_month, quantize_money
from app.schemas.balance import GroupSummary, NetBalance
from app.schemas.ledger import ExpenseRecord, GroupId, GroupSnapshot, UserId
from app.services.split_service import SplitResult


def in_month_window(created_at: datetime, now: datetime) -> bool:
    """True when ``created_at`` falls in [first day of now's month, now)."""
    return first_day_of_month(now) <= created_at < now


def personal_monthly_total(
    personal_expenses: Iterable[ExpenseRecord],
    user_id: UserId,
    now: datetime
) -> Decimal:
    """Sum of personal expenses the user paid this month."""
    total = Decimal(0)
    for expense in personal_expenses:
        if not expense.is_personal or expense.payer_id != user_id:
            continue
        if in_month_window(expense.created_at, now):
            total += expense.amount
    return quantize_money(total)


def category_breakdown(
    personal_expenses: Iterable[ExpenseRecord],
    user_id: UserId,
    default_category: Optional[str] = None
) -> Dict[str, Decimal]:
    """Personal expense totals by category label."""
    default = default_category or settings.DEFAULT_CATEGORY
    categories: Dict[str, Decimal] = {}
    for expense in personal_expenses:
        if not expense.is_personal or expense.payer_id != user_id:
            continue
        category = expense.category or default
        categories[category] = categories.get(category, Decimal(0)) + expense.amount
    return {name: quantize_money(total) for name, total in sorted(categories.items())}


def group_aggregates(
    splits: Iterable[SplitResult],
    groups: Mapping[GroupId, GroupSnapshot],
    user_id: UserId,
    now: datetime
) -> Tuple[Decimal, List[GroupSummary]]:
    """
    Compute the user's monthly group total and one summary per group.

    Returns ``(group_monthly_total, group_summaries)``; summaries are sorted by
    the user's share this month (largest first), then by group id.
    """
    totals = {
        group_id: {"spend": Decimal(0), "paid": Decimal(0), "share": Decimal(0)}
        for group_id in groups
    }
    group_monthly = Decimal(0)

    for split in splits:
        expense = split.expense
        if not in_month_window(expense.created_at, now):
            continue
        involved = split.includes(user_id)
        if involved:
            group_monthly += split.share

        bucket = totals.get(expense.group_id)
        if bucket is None:
            continue
        bucket["spend"] += expense.amount
        if involved:
            bucket["share"] += split.share
        if expense.payer_id == user_id:
            bucket["paid"] += expense.amount

    summaries = [
        GroupSummary(
            group_id=group.id,
            group_name=group.name,
            member_count=len(group.member_ids),
            total_group_spend_this_month=quantize_money(totals[group.id]["spend"]),
            you_paid_this_month=quantize_money(totals[group.id]["paid"]),
            your_share_this_month=quantize_money(totals[group.id]["share"])
        )
        for group in groups.values()
    ]
    summaries.sort(key=lambda s: (-s.your_share_this_month, s.group_id))
    return quantize_money(group_monthly), summaries


def owed_totals(
    net_balances: Mapping[str, NetBalance],
    user_id: UserId
) -> Tuple[Decimal, Decimal]:
    """Return ``(total_owed, total_owed_to_user)`` from netted balances."""
    total_owed = Decimal(0)
    total_owed_to_user = Decimal(0)
    for balance in net_balances.values():
        if balance.debtor_info.id == user_id:
            total_owed += balance.amount
        if balance.creditor_info.id == user_id:
            total_owed_to_user += balance.amount
    return quantize_money(total_owed), quantize_money(total_owed_to_user)
