"""
Tests for debt accumulation and settlement application.
"""
import pytest
import random
from datetime import datetime
from decimal import Decimal
from app.core.exceptions import MalformedSettlement
from app.schemas.ledger import (
    ExpenseRecord,
    GroupSnapshot,
    SettlementRecord,
    SettlementStatus,
    UserRecord,
)
from app.services.debt_service import accumulate_debts, apply_settlements, debt_key_str, validate_settlement
from app.services.split_service import resolve_expense_splits

NOW = datetime(2026, 3, 15, 12, 0, 0)
GROUPS = {10: GroupSnapshot(id=10, name="Trip", member_ids=(1, 2, 3, 4))}
USERS = {uid: UserRecord(id=uid, username=f"user{uid}") for uid in (1, 2, 3, 4)}


def make_expense(expense_id, amount, payer_id, split_among=()):
    return ExpenseRecord(
        id=expense_id,
        amount=Decimal(amount),
        payer_id=payer_id,
        group_id=10,
        split_among=tuple(split_among),
        created_at=NOW
    )


def make_settlement(settlement_id, debtor_id, creditor_id, amount, status=SettlementStatus.COMPLETED):
    return SettlementRecord(
        id=settlement_id,
        debtor_id=debtor_id,
        creditor_id=creditor_id,
        amount=Decimal(amount),
        status=status
    )


def test_accumulate_debts_per_pair():
    splits = resolve_expense_splits([
        make_expense(1, "100", 1, [1, 2]),
        make_expense(2, "40", 2, [1, 2]),
    ], GROUPS)

    debts = accumulate_debts(splits)

    # Reverse edges accumulate independently before netting
    assert debts == {(2, 1): Decimal("50"), (1, 2): Decimal("20")}


def test_payer_never_owes_themselves():
    splits = resolve_expense_splits([make_expense(1, "80", 1)], GROUPS)
    debts = accumulate_debts(splits)
    assert all(debtor != creditor for debtor, creditor in debts)
    assert debts == {(2, 1): Decimal("20"), (3, 1): Decimal("20"), (4, 1): Decimal("20")}


def test_accumulation_is_order_independent():
    rng = random.Random(1234)
    expenses = []
    for expense_id in range(1, 61):
        participants = rng.sample([1, 2, 3, 4], rng.randint(1, 4))
        amount = Decimal(rng.randint(1, 50000)) / 100
        expenses.append(make_expense(expense_id, str(amount), rng.choice([1, 2, 3, 4]), participants))

    expected = accumulate_debts(resolve_expense_splits(expenses, GROUPS))
    for _ in range(5):
        shuffled = list(expenses)
        rng.shuffle(shuffled)
        assert accumulate_debts(resolve_expense_splits(shuffled, GROUPS)) == expected


def test_settlement_reduces_edge_by_exact_amount():
    debts = {(2, 1): Decimal("50")}
    result = apply_settlements(debts, [make_settlement(1, 2, 1, "20")], USERS)
    assert result[(2, 1)] == Decimal("30")
    # Input map is left untouched
    assert debts[(2, 1)] == Decimal("50")


def test_overpayment_goes_negative():
    result = apply_settlements({(2, 1): Decimal("50")}, [make_settlement(1, 2, 1, "70")], USERS)
    assert result[(2, 1)] == Decimal("-20")


def test_settlement_without_prior_debt_creates_entry():
    result = apply_settlements({}, [make_settlement(1, 3, 4, "15")], USERS)
    assert result == {(3, 4): Decimal("-15")}


def test_only_completed_settlements_apply():
    settlements = [
        make_settlement(1, 2, 1, "10", SettlementStatus.PENDING),
        make_settlement(2, 2, 1, "10", SettlementStatus.REJECTED),
    ]
    result = apply_settlements({(2, 1): Decimal("50")}, settlements, USERS)
    assert result[(2, 1)] == Decimal("50")


def test_settlement_applied_once_per_id():
    settlement = make_settlement(1, 2, 1, "10")
    result = apply_settlements({(2, 1): Decimal("50")}, [settlement, settlement], USERS)
    assert result[(2, 1)] == Decimal("40")


def test_settlement_with_unknown_user_skipped():
    skipped = []
    result = apply_settlements(
        {(2, 1): Decimal("50")},
        [make_settlement(7, 2, 99, "10"), make_settlement(8, 2, 2, "10")],
        USERS,
        skipped
    )
    assert result == {(2, 1): Decimal("50")}
    assert [(r.kind, r.record_id) for r in skipped] == [("settlement", 7), ("settlement", 8)]


def test_validate_settlement_rules():
    validate_settlement(make_settlement(1, 2, 1, "10"), USERS)

    with pytest.raises(MalformedSettlement) as exc_info:
        validate_settlement(make_settlement(2, 3, 3, "10"), USERS)
    assert exc_info.value.reason == "debtor and creditor are the same user"

    for amount in ("0", "-5"):
        with pytest.raises(MalformedSettlement) as exc_info:
            validate_settlement(make_settlement(3, 2, 1, amount))
        assert exc_info.value.reason == "amount must be positive"

    with pytest.raises(MalformedSettlement):
        validate_settlement(make_settlement(4, 2, 99, "10"), USERS)
    # Without a user lookup unknown ids are not checked
    validate_settlement(make_settlement(4, 2, 99, "10"))


def test_non_positive_settlements_skipped():
    skipped = []
    result = apply_settlements(
        {(2, 1): Decimal("50")},
        [make_settlement(5, 2, 1, "0"), make_settlement(6, 2, 1, "-20"), make_settlement(7, 2, 1, "5")],
        USERS,
        skipped
    )
    assert result == {(2, 1): Decimal("45")}
    assert [r.record_id for r in skipped] == [5, 6]
    assert all(r.reason == "amount must be positive" for r in skipped)


def test_debt_key_str():
    assert debt_key_str((2, 1)) == "2:1"
