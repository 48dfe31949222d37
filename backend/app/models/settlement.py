"""
Settlement model for debts paid outside the app.
"""
from sqlalchemy import Column, String, Numeric, DateTime, Enum as SQLEnum, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from app.db.base import BaseModel
from app.schemas.ledger import SettlementStatus


class Settlement(BaseModel):
    """
    A debtor's claim to have paid a creditor.

    Created pending; only the creditor can complete or reject it, once.
    """
    __tablename__ = "settlements"

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=True, index=True)
    creditor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    debtor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True, default="Settlement payment")
    status = Column(SQLEnum(SettlementStatus), default=SettlementStatus.PENDING, nullable=False, index=True)
    method = Column(String(20), nullable=False, default="cash")
    notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)

    # Relationships
    group = relationship("Group")
    creditor = relationship("User", foreign_keys=[creditor_id])
    debtor = relationship("User", foreign_keys=[debtor_id])
