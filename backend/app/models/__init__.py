"""Models package - Import all models for SQLAlchemy registration."""
from app.models.user import User
from app.models.group import Group, GroupMember
from app.models.expense import Expense, ExpenseSplit
from app.models.settlement import Settlement

__all__ = [
    "User",
    "Group",
    "GroupMember",
    "Expense",
    "ExpenseSplit",
    "Settlement",
]
