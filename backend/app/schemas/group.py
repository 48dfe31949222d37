"""
Pydantic schemas for Group entity.
"""
from pydantic import BaseModel
from typing import List
from datetime import datetime


class GroupCreate(BaseModel):
    """Schema for group creation; the caller is added as creator."""
    name: str
    member_ids: List[int] = []


class MemberAdd(BaseModel):
    user_id: int


class GroupMemberResponse(BaseModel):
    """Schema for group member response."""
    user_id: int
    username: str
    is_creator: bool


class GroupResponse(BaseModel):
    """Schema for group response."""
    id: int
    name: str
    created_at: datetime
    members: List[GroupMemberResponse] = []


class GroupUpdate(BaseModel):
    """Schema for renaming a group."""
    name: str
