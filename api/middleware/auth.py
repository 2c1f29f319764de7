from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional

from core.database import get_db
from core.auth import extract_bearer_token, resolve_user
from core.exceptions import AuthorizationError
from modules.users.models import User

async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        token = extract_bearer_token(authorization)
        return resolve_user(token, db)
    except AuthorizationError:
        raise credentials_exception

async def get_analysis_caller(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the caller for the analysis endpoint.

    Failures propagate as AuthorizationError so the endpoint can answer with
    its own ``{"error": ...}`` body before any extraction is attempted.
    """
    token = extract_bearer_token(authorization)
    return resolve_user(token, db)
