# storefront/api/dependencies.py
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.data.database import get_db
from storefront.repos.user_repo import UserRepo
from storefront.services.funnel_service import PurchaseFunnel
from storefront.utils.security import decode_access_token

ADMIN_ROLES = ("super_admin", "admin")

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str


@lru_cache()
def get_funnel() -> PurchaseFunnel:
    return PurchaseFunnel()


def _resolve(credentials: HTTPAuthorizationCredentials | None, db: Session) -> CurrentUser | None:
    if credentials is None or credentials.scheme.lower() != "bearer":
        return None

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        return None

    user = UserRepo(db).get_user(user_id)
    if not user:
        return None
    return CurrentUser(id=user.id, role=user.role)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> CurrentUser:
    user = _resolve(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: Session = Depends(get_db),
) -> CurrentUser | None:
    return _resolve(credentials, db)


def require_roles(*roles: str):
    def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
        return user

    return checker
