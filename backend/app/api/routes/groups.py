"""
Group management routes.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from app.db.session import get_db
from app.models.group import Group
from app.models.user import User
from app.schemas.expense import ExpenseResponse
from app.schemas.group import GroupCreate, GroupMemberResponse, GroupResponse, GroupUpdate, MemberAdd
from app.api.dependencies import get_current_user
from app.services import expense_service, group_service
from app.api.routes.expenses import to_expense_response

router = APIRouter(prefix="/groups", tags=["groups"])


def to_group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        created_at=group.created_at,
        members=[
            GroupMemberResponse(
                user_id=m.user_id,
                username=m.user.username,
                is_creator=m.is_creator
            )
            for m in group.members
        ]
    )


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_data: GroupCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a group with the current user as creator."""
    group = group_service.create_group(group_data.name, current_user.id, group_data.member_ids, db)
    return to_group_response(group)


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List groups the current user belongs to."""
    groups = group_service.list_user_groups(current_user.id, db)
    return [to_group_response(g) for g in groups]


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a group the current user belongs to."""
    group = group_service.check_group_access(group_id, current_user.id, db)
    return to_group_response(group)


@router.put("/{group_id}", response_model=GroupResponse)
async def rename_group(
    group_id: int,
    group_data: GroupUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Rename a group; creator only."""
    group = group_service.rename_group(group_id, group_data.name, current_user.id, db)
    return to_group_response(group)


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_group(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a group and its expenses; creator only."""
    group_service.delete_group(group_id, current_user.id, db)


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_group_expenses(
    group_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Expenses of a group, newest first."""
    expenses = expense_service.list_group_expenses(group_id, current_user.id, db)
    return [to_expense_response(e) for e in expenses]


@router.post("/{group_id}/members", response_model=GroupResponse)
async def add_member(
    group_id: int,
    member: MemberAdd,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a member to a group."""
    group_service.check_group_access(group_id, current_user.id, db)
    group = group_service.add_member(group_id, member.user_id, db)
    return to_group_response(group)


@router.delete("/{group_id}/members/{user_id}", response_model=GroupResponse)
async def remove_member(
    group_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove a member; creators can remove anyone, members only themselves."""
    group = group_service.check_group_access(group_id, current_user.id, db)
    if user_id != current_user.id and not group_service.is_creator(group, current_user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group creator can remove other members"
        )
    group = group_service.remove_member(group_id, user_id, db)
    return to_group_response(group)
