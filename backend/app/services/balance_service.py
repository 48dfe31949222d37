"""
Balance service: the single entry point of the balance engine.

Turns one BalanceInputs snapshot into a BalanceSummary. The computation is
pure: no I/O, no shared state, and the same inputs give the same summary.
"""
import logging
from decimal import Decimal
from typing import List, Optional
from app.core.exceptions import UserNotFound
from app.schemas.balance import BalanceSummary, SkippedRecord
from app.schemas.ledger import BalanceInputs
from app.services.aggregation_service import (
    category_breakdown,
    group_aggregates,
    owed_totals,
    personal_monthly_total,
)
from app.services.debt_service import accumulate_debts, apply_settlements
from app.services.netting_service import net_balances
from app.services.split_service import resolve_expense_splits

logger = logging.getLogger(__name__)


def compute_balances(inputs: BalanceInputs, epsilon: Optional[Decimal] = None) -> BalanceSummary:
    """
    Compute net balances and monthly aggregates for ``inputs.user_id``.

    Raises UserNotFound if the user is missing from the lookup. Malformed
    expenses and settlements are skipped and listed in ``skipped_records``.
    """
    user_id = inputs.user_id
    if user_id not in inputs.users:
        raise UserNotFound(user_id)

    skipped: List[SkippedRecord] = []

    # Splits are resolved once and shared by the debt map and the aggregates
    splits = resolve_expense_splits(inputs.group_expenses, inputs.groups, skipped)
    debts = accumulate_debts(splits)
    debts = apply_settlements(debts, inputs.settlements, inputs.users, skipped)
    balances = net_balances(debts, inputs.users, user_id, epsilon)

    group_monthly_total, group_summaries = group_aggregates(
        splits, inputs.groups, user_id, inputs.now
    )
    total_owed, total_owed_to_user = owed_totals(balances, user_id)

    summary = BalanceSummary(
        user_id=user_id,
        generated_at=inputs.now,
        net_balances=balances,
        group_summaries=group_summaries,
        personal_monthly_total=personal_monthly_total(inputs.personal_expenses, user_id, inputs.now),
        group_monthly_total=group_monthly_total,
        total_owed=total_owed,
        total_owed_to_user=total_owed_to_user,
        categories=category_breakdown(inputs.personal_expenses, user_id),
        skipped_records=skipped
    )
    logger.debug(
        f"Computed balances for user {user_id}: {len(balances)} net balances, "
        f"{summary.skipped_count} skipped records"
    )
    return summary
