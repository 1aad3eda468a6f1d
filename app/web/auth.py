"""Current user resolution.

Handles:
- Identifying the acting user (X-User-Email header or userEmail query param)
- User auto-creation on first request
- Falling back to the configured demo account
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.models import User
from app.db.session import get_db

logger = logging.getLogger(__name__)


class CurrentUser:
    """Acting user; every query is scoped by user_id."""

    def __init__(self, user_id: str, email: str, name: str | None = None):
        self.user_id = user_id
        self.email = email
        self.name = name

    def __repr__(self) -> str:
        return f"<CurrentUser user_id={self.user_id} email={self.email}>"


def get_or_create_user(db: Session, email: str, name: str | None = None) -> User:
    """Get a user by email, creating it on first sight.

    Args:
        db: Database session
        email: Normalized (lower-case) email
        name: Display name for a new user

    Returns:
        User row

    """
    user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if user is not None:
        return user

    user = User(email=email, name=name or email.split("@")[0])
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent first request for the same email
        db.rollback()
        return db.execute(select(User).where(User.email == email)).scalar_one()

    db.refresh(user)
    logger.info("user_created", extra={"user_id": user.id})
    return user


def get_current_user(
    x_user_email: str | None = Header(None),
    user_email: str | None = Query(None, alias="userEmail"),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the acting user for the request.

    Falls back to the demo account when no identity is supplied.
    """
    settings = get_settings()
    email = (x_user_email or user_email or "").strip().lower()

    if not email:
        user = get_or_create_user(db, settings.demo_user_email, settings.demo_user_name)
    else:
        user = get_or_create_user(db, email)

    return CurrentUser(user_id=user.id, email=user.email, name=user.name)
