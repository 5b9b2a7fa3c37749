"""
Request dependencies: database-backed services and caller identity
"""
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel
from sqlalchemy.orm import Session

from order_service.config import settings
from order_service.database import get_db
from order_service.services.order_service import OrderService

bearer_scheme = HTTPBearer(auto_error=False)


class CurrentUser(BaseModel):
    """Identity resolved from the caller's access token"""
    id: int
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def get_order_service(db: Session = Depends(get_db)) -> OrderService:
    """Dependency to get OrderService instance"""
    return OrderService(db)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """
    Verify the bearer token and return the caller identity

    Tokens are issued by the auth service with ``id`` (or ``sub``),
    ``email`` and optionally ``role`` / ``is_admin`` claims.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access denied. No token provided.")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id = payload.get("id", payload.get("sub"))
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token: missing user ID")

    role = payload.get("role") or ("admin" if payload.get("is_admin") else None)
    return CurrentUser(id=user_id, email=payload.get("email"), role=role)


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only callers with the admin role"""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin only."
        )
    return user
