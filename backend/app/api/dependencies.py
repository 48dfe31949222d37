"""
Shared route dependencies.
"""
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.models.user import User


async def get_current_user(
    x_user_id: int = Header(..., alias="X-User-Id"),
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the acting user from the X-User-Id header.

    Authentication happens in front of this service; the header carries the
    already-authenticated user id.
    """
    user = db.query(User).filter(User.id == x_user_id).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown or inactive user"
        )
    return user
