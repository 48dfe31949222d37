"""
Expense model for tracking spending.
"""
from sqlalchemy import Column, String, Numeric, Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Expense(BaseModel):
    """Expense model representing a single payment, personal or shared."""
    __tablename__ = "expenses"

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)  # Null for personal expenses
    payer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True)
    is_personal = Column(Boolean, default=False, nullable=False, index=True)
    is_settlement = Column(Boolean, default=False, nullable=False, index=True)

    # Relationships
    group = relationship("Group", back_populates="expenses")
    payer = relationship("User", foreign_keys=[payer_id], back_populates="expenses_paid")
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.id"
    )

    @property
    def split_user_ids(self):
        return [s.user_id for s in self.splits]


class ExpenseSplit(BaseModel):
    """Explicit split participant; no rows means the whole group shares it."""
    __tablename__ = "expense_splits"

    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    expense = relationship("Expense", back_populates="splits")
    user = relationship("User")
