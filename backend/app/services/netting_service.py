"""
Netting service: collapses opposing debts between two users into one edge.
"""
import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional, Set, Tuple
from app.core.config import settings
from app.core.utils import quantize_money
from app.schemas.balance import NetBalance, PartyInfo
from app.schemas.ledger import UserId, UserRecord
from app.services.debt_service import DebtKey, debt_key_str

logger = logging.getLogger(__name__)

UNKNOWN_USER = "Unknown User"
YOU = "You"


def party_info(
    user_id: UserId,
    users: Mapping[UserId, UserRecord],
    current_user_id: UserId
) -> PartyInfo:
    """Resolve display data for a user, with placeholders for unknown ids."""
    record = users.get(user_id)
    is_you = user_id == current_user_id
    if record is None:
        return PartyInfo(
            id=user_id,
            username=YOU if is_you else UNKNOWN_USER,
            is_you=is_you,
            is_known=False
        )
    return PartyInfo(id=record.id, username=record.username, email=record.email, is_you=is_you)


def net_debts(
    debts: Mapping[DebtKey, Decimal],
    epsilon: Optional[Decimal] = None
) -> Dict[DebtKey, Decimal]:
    """
    Net every reciprocal pair of debts.

    For each unordered pair {A, B} exactly one outcome is produced: A owes B,
    B owes A, or nothing when the difference is within ``epsilon``. Pairs are
    resolved through an explicit visited set and keys are walked in sorted
    order so the result never depends on mapping order.
    """
    eps = settings.BALANCE_EPSILON if epsilon is None else epsilon
    netted: Dict[DebtKey, Decimal] = {}
    visited: Set[Tuple[UserId, UserId]] = set()

    for key in sorted(debts):
        amount = debts[key]
        if abs(amount) <= eps:
            continue
        debtor, creditor = key
        pair = (min(debtor, creditor), max(debtor, creditor))
        if pair in visited:
            continue
        visited.add(pair)

        net = amount - debts.get((creditor, debtor), Decimal(0))
        if net > eps:
            netted[(debtor, creditor)] = quantize_money(net)
        elif net < -eps:
            netted[(creditor, debtor)] = quantize_money(-net)

    return netted


def net_balances(
    debts: Mapping[DebtKey, Decimal],
    users: Mapping[UserId, UserRecord],
    current_user_id: UserId,
    epsilon: Optional[Decimal] = None
) -> Dict[str, NetBalance]:
    """Net the debt map and annotate each surviving edge with party info."""
    netted = net_debts(debts, epsilon)
    logger.debug(f"Netted {len(debts)} raw debts into {len(netted)} balances")
    return {
        debt_key_str((debtor, creditor)): NetBalance(
            amount=amount,
            debtor_info=party_info(debtor, users, current_user_id),
            creditor_info=party_info(creditor, users, current_user_id)
        )
        for (debtor, creditor), amount in netted.items()
    }
