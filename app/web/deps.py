"""FastAPI dependencies for the acting user and database."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.web.auth import CurrentUser as CurrentUserModel
from app.web.auth import get_current_user

# Type aliases for cleaner endpoints
DBSession = Annotated[Session, Depends(get_db)]
CurrentUser = Annotated[CurrentUserModel, Depends(get_current_user)]

__all__ = ["CurrentUser", "DBSession", "get_db"]
