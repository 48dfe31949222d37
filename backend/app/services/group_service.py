"""
Group service for group creation and membership changes.
"""
import logging
from typing import Iterable, List
from sqlalchemy.orm import Session
from app.core.exceptions import GroupNotFound, PermissionDenied, ValidationFailed
from app.models.expense import Expense
from app.models.group import Group, GroupMember
from app.models.settlement import Settlement
from app.services.user_service import get_user

logger = logging.getLogger(__name__)


def get_group(group_id: int, db: Session) -> Group:
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise GroupNotFound(group_id)
    return group


def check_group_access(group_id: int, user_id: int, db: Session) -> Group:
    """Return the group if ``user_id`` is a member, else raise PermissionDenied."""
    group = get_group(group_id, db)
    if user_id not in group.member_ids:
        raise PermissionDenied("You are not a member of this group")
    return group


def create_group(name: str, creator_id: int, member_ids: Iterable[int], db: Session) -> Group:
    """Create a group with the creator as first member."""
    if not name or not name.strip():
        raise ValidationFailed("Group name is required")

    ordered_ids = list(dict.fromkeys([creator_id, *member_ids]))
    for user_id in ordered_ids:
        get_user(user_id, db)

    group = Group(name=name.strip())
    db.add(group)
    db.flush()
    for user_id in ordered_ids:
        db.add(GroupMember(group_id=group.id, user_id=user_id, is_creator=user_id == creator_id))

    db.commit()
    db.refresh(group)
    logger.info(f"Created group {group.id} with {len(ordered_ids)} members")
    return group


def add_member(group_id: int, user_id: int, db: Session) -> Group:
    group = get_group(group_id, db)
    get_user(user_id, db)
    if user_id in group.member_ids:
        raise ValidationFailed("User is already a member of this group")

    db.add(GroupMember(group_id=group_id, user_id=user_id))
    db.commit()
    db.refresh(group)
    return group


def remove_member(group_id: int, user_id: int, db: Session) -> Group:
    """
    Remove a member. Their past expenses stay; later balance runs use the
    new membership snapshot.
    """
    group = get_group(group_id, db)
    membership = db.query(GroupMember).filter(
        GroupMember.group_id == group_id,
        GroupMember.user_id == user_id
    ).first()
    if not membership:
        raise ValidationFailed("User is not a member of this group")

    db.delete(membership)
    db.commit()
    db.refresh(group)
    return group


def is_creator(group: Group, user_id: int) -> bool:
    return any(m.user_id == user_id and m.is_creator for m in group.members)


def check_group_creator(group_id: int, user_id: int, action: str, db: Session) -> Group:
    group = check_group_access(group_id, user_id, db)
    if not is_creator(group, user_id):
        raise PermissionDenied(f"Only the group creator can {action} the group")
    return group


def list_user_groups(user_id: int, db: Session) -> List[Group]:
    """Groups the user belongs to, oldest first."""
    return db.query(Group).join(
        GroupMember, GroupMember.group_id == Group.id
    ).filter(
        GroupMember.user_id == user_id
    ).order_by(Group.id).all()


def rename_group(group_id: int, name: str, user_id: int, db: Session) -> Group:
    group = check_group_creator(group_id, user_id, "rename", db)
    if not name or not name.strip():
        raise ValidationFailed("Group name is required")

    group.name = name.strip()
    db.commit()
    db.refresh(group)
    return group


def delete_group(group_id: int, user_id: int, db: Session):
    """
    Delete a group with its memberships and expenses. Settlements made in the
    group are kept as direct settlements between the two users.
    """
    group = check_group_creator(group_id, user_id, "delete", db)

    expenses = db.query(Expense).filter(Expense.group_id == group_id).all()
    for expense in expenses:
        db.delete(expense)
    db.query(Settlement).filter(Settlement.group_id == group_id).update(
        {Settlement.group_id: None}, synchronize_session=False
    )
    db.delete(group)
    db.commit()
    logger.info(f"Deleted group {group_id} and {len(expenses)} expenses")
