"""
User service for registering ledger users.
"""
from sqlalchemy.orm import Session
from app.core.exceptions import UserNotFound, ValidationFailed
from app.models.user import User


def get_user(user_id: int, db: Session) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFound(user_id)
    return user


def create_user(username: str, email: str, db: Session) -> User:
    """Create a user; username and email must be unique."""
    existing = db.query(User).filter(
        (User.username == username) | (User.email == email)
    ).first()
    if existing:
        field = "username" if existing.username == username else "email"
        raise ValidationFailed(f"{field} already exists")

    user = User(username=username, email=email)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user
