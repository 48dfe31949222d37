"""
Domain exceptions shared by the balance engine and the write services.
"""
from fastapi import status


class LedgerError(Exception):
    """Base class for ledger errors that map onto an HTTP status."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "LEDGER_ERROR"

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class UserNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, user_id):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class GroupNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "GROUP_NOT_FOUND"

    def __init__(self, group_id):
        super().__init__(f"Group {group_id} not found")
        self.group_id = group_id


class ExpenseNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "EXPENSE_NOT_FOUND"

    def __init__(self, expense_id):
        super().__init__(f"Expense {expense_id} not found")
        self.expense_id = expense_id


class SettlementNotFound(LedgerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "SETTLEMENT_NOT_FOUND"

    def __init__(self, settlement_id):
        super().__init__(f"Settlement {settlement_id} not found")
        self.settlement_id = settlement_id


class ValidationFailed(LedgerError):
    code = "VALIDATION_ERROR"


class PermissionDenied(LedgerError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class SettlementStateError(LedgerError):
    """Raised when a settlement is asked to leave a terminal state."""
    status_code = status.HTTP_409_CONFLICT
    code = "SETTLEMENT_NOT_PENDING"


class MalformedExpense(LedgerError):
    """An expense whose split cannot be computed (unknown or empty group)."""
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    code = "MALFORMED_EXPENSE"

    def __init__(self, expense_id, reason: str):
        super().__init__(f"Expense {expense_id}: {reason}")
        self.expense_id = expense_id
        self.reason = reason


class MalformedSettlement(LedgerError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    code = "MALFORMED_SETTLEMENT"

    def __init__(self, settlement_id, reason: str):
        super().__init__(f"Settlement {settlement_id}: {reason}")
        self.settlement_id = settlement_id
        self.reason = reason
