"""
Debt service: folds expense splits and completed settlements into a raw
directed debt map keyed by (debtor, creditor).
"""
import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple
from app.core.exceptions import MalformedSettlement
from app.schemas.balance import SkippedRecord
from app.schemas.ledger import SettlementRecord, SettlementStatus, UserId, UserRecord
from app.services.skip_log import record_skip
from app.services.split_service import SplitResult

logger = logging.getLogger(__name__)

DebtKey = Tuple[UserId, UserId]
DebtMap = Dict[DebtKey, Decimal]


def debt_key_str(key: DebtKey) -> str:
    """Render a debt key as ``"debtor:creditor"``."""
    return f"{key[0]}:{key[1]}"


def accumulate_debts(splits: Iterable[SplitResult]) -> DebtMap:
    """
    Add every participant's share to what they owe the payer.

    Pure addition, so the result does not depend on the order of ``splits``.
    A:B and B:A accumulate independently; netting happens later.
    """
    debts: DebtMap = {}
    for split in splits:
        expense = split.expense
        if expense.is_settlement or expense.is_personal:
            continue
        payer_id = expense.payer_id
        for participant_id, share in split.shares():
            if participant_id == payer_id:
                continue
            key = (participant_id, payer_id)
            debts[key] = debts.get(key, Decimal(0)) + share
    return debts


def validate_settlement(
    settlement: SettlementRecord,
    users: Optional[Mapping[UserId, UserRecord]] = None
) -> None:
    """Raise MalformedSettlement if the settlement cannot be applied."""
    if settlement.amount <= 0:
        raise MalformedSettlement(settlement.id, "amount must be positive")
    if settlement.debtor_id == settlement.creditor_id:
        raise MalformedSettlement(settlement.id, "debtor and creditor are the same user")
    if users is not None:
        for user_id in (settlement.debtor_id, settlement.creditor_id):
            if user_id not in users:
                raise MalformedSettlement(settlement.id, f"unknown user {user_id}")


def apply_settlements(
    debts: Mapping[DebtKey, Decimal],
    settlements: Iterable[SettlementRecord],
    users: Optional[Mapping[UserId, UserRecord]] = None,
    skipped: Optional[List[SkippedRecord]] = None
) -> DebtMap:
    """
    Subtract completed settlements from the debtor -> creditor entries.

    Returns a new map. Entries may go negative; an overpayment stays visible
    rather than being clamped. Each settlement id is applied once. When
    ``users`` is given, settlements naming an unknown user are skipped.
    """
    result: DebtMap = dict(debts)
    applied = set()
    for settlement in settlements:
        if settlement.status != SettlementStatus.COMPLETED:
            continue
        if settlement.id in applied:
            logger.debug(f"Settlement {settlement.id} already applied")
            continue

        try:
            validate_settlement(settlement, users)
        except MalformedSettlement as e:
            record_skip(skipped, "settlement", settlement.id, e.reason)
            continue

        key = (settlement.debtor_id, settlement.creditor_id)
        result[key] = result.get(key, Decimal(0)) - settlement.amount
        applied.add(settlement.id)
    return result
