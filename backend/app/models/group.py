"""
Group model for shared expense circles.
"""
from sqlalchemy import Column, String, Boolean, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel


class Group(BaseModel):
    """Group of users who split expenses."""
    __tablename__ = "groups"

    name = Column(String(200), nullable=False)

    # Relationships
    members = relationship(
        "GroupMember",
        back_populates="group",
        cascade="all, delete-orphan",
        order_by="GroupMember.id"
    )
    expenses = relationship("Expense", back_populates="group")

    @property
    def member_ids(self):
        return [m.user_id for m in self.members]


class GroupMember(BaseModel):
    """Junction table for Group and User many-to-many relationship."""
    __tablename__ = "group_members"
    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_group_member"),)

    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_creator = Column(Boolean, default=False, nullable=False)

    # Relationships
    group = relationship("Group", back_populates="members")
    user = relationship("User", back_populates="groups")
