"""
Tests for the settlement lifecycle against the database.
"""
import pytest
from decimal import Decimal
from app.core.exceptions import PermissionDenied, SettlementStateError, ValidationFailed
from app.schemas.ledger import SettlementStatus
from app.services import settlement_service
from app.services.dashboard_service import get_balance_summary
from app.services.expense_service import create_expense
from app.services.group_service import create_group, delete_group
from app.services.user_service import create_user


@pytest.fixture
def household(db):
    alice = create_user("alice", "alice@example.com", db)
    bob = create_user("bob", "bob@example.com", db)
    carol = create_user("carol", "carol@example.com", db)
    group = create_group("House", alice.id, [bob.id, carol.id], db)
    return alice, bob, carol, group


def test_request_creates_pending(db, household):
    alice, bob, _, group = household
    settlement = settlement_service.request_settlement(bob.id, alice.id, Decimal("25"), group.id, db=db)

    assert settlement.status == SettlementStatus.PENDING
    assert settlement.amount == Decimal("25.00")
    assert settlement_service.list_pending_for_creditor(alice.id, db) == [settlement]


def test_request_validation(db, household):
    alice, bob, _, group = household
    with pytest.raises(ValidationFailed):
        settlement_service.request_settlement(bob.id, bob.id, Decimal("5"), group.id, db=db)
    with pytest.raises(ValidationFailed):
        settlement_service.request_settlement(bob.id, alice.id, Decimal("0"), group.id, db=db)
    with pytest.raises(ValidationFailed):
        settlement_service.request_settlement(bob.id, alice.id, Decimal("5"), method="barter", db=db)

    outsider = create_user("dave", "dave@example.com", db)
    with pytest.raises(PermissionDenied):
        settlement_service.request_settlement(outsider.id, alice.id, Decimal("5"), group.id, db=db)


def test_only_creditor_can_accept(db, household):
    alice, bob, carol, group = household
    settlement = settlement_service.request_settlement(bob.id, alice.id, Decimal("25"), group.id, db=db)

    with pytest.raises(PermissionDenied):
        settlement_service.accept_settlement(settlement.id, carol.id, db)
    with pytest.raises(PermissionDenied):
        settlement_service.accept_settlement(settlement.id, bob.id, db)

    accepted = settlement_service.accept_settlement(settlement.id, alice.id, db)
    assert accepted.status == SettlementStatus.COMPLETED
    assert accepted.completed_at is not None


def test_terminal_states_are_final(db, household):
    alice, bob, _, group = household
    done = settlement_service.request_settlement(bob.id, alice.id, Decimal("10"), group.id, db=db)
    settlement_service.accept_settlement(done.id, alice.id, db)
    with pytest.raises(SettlementStateError):
        settlement_service.reject_settlement(done.id, alice.id, "changed my mind", db)
    with pytest.raises(SettlementStateError):
        settlement_service.accept_settlement(done.id, alice.id, db)

    refused = settlement_service.request_settlement(bob.id, alice.id, Decimal("10"), group.id, db=db)
    rejected = settlement_service.reject_settlement(refused.id, alice.id, None, db)
    assert rejected.rejection_reason == "No reason provided"
    assert rejected.rejected_at is not None
    with pytest.raises(SettlementStateError):
        settlement_service.accept_settlement(refused.id, alice.id, db)
    with pytest.raises(SettlementStateError):
        settlement_service.cancel_settlement(refused.id, bob.id, db)


def test_cancel_only_by_debtor(db, household):
    alice, bob, _, group = household
    settlement = settlement_service.request_settlement(bob.id, alice.id, Decimal("10"), group.id, db=db)
    with pytest.raises(PermissionDenied):
        settlement_service.cancel_settlement(settlement.id, alice.id, db)

    settlement_service.cancel_settlement(settlement.id, bob.id, db)
    assert settlement_service.list_history(bob.id, db) == []


def test_only_completed_settlement_moves_balances(db, household):
    alice, bob, carol, group = household
    create_expense(alice.id, Decimal("150"), group.id, db=db)
    create_expense(bob.id, Decimal("60"), group.id, [bob.id, carol.id], db=db)

    pending = settlement_service.request_settlement(carol.id, alice.id, Decimal("50"), group.id, db=db)
    summary = get_balance_summary(alice.id, db)
    assert summary.balance_between(carol.id, alice.id) == Decimal("50.00")

    settlement_service.accept_settlement(pending.id, alice.id, db)
    summary = get_balance_summary(alice.id, db)
    assert summary.balance_between(carol.id, alice.id) is None
    assert summary.balance_between(bob.id, alice.id) == Decimal("50.00")
    assert summary.balance_between(carol.id, bob.id) == Decimal("30.00")
    assert summary.total_owed_to_user == Decimal("50.00")


def test_deleting_group_keeps_completed_settlements(db, household):
    alice, bob, _, group = household
    create_expense(alice.id, Decimal("90"), group.id, db=db)
    settlement = settlement_service.request_settlement(bob.id, alice.id, Decimal("30"), group.id, db=db)
    settlement_service.accept_settlement(settlement.id, alice.id, db)

    with pytest.raises(PermissionDenied):
        delete_group(group.id, bob.id, db)
    delete_group(group.id, alice.id, db)

    kept = settlement_service.get_settlement(settlement.id, db)
    assert kept.group_id is None
    assert kept.status == SettlementStatus.COMPLETED

    # The expense is gone, the payment still counts
    summary = get_balance_summary(alice.id, db)
    assert summary.balance_between(alice.id, bob.id) == Decimal("30.00")
