# access.py
"""Identity resolution and role/department authorization."""
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from elms.database import get_db
from elms.enums import Role
from elms.exceptions import (
    CrossDepartmentError,
    ForbiddenError,
    InvalidTokenError,
    UnauthenticatedError,
)
from elms.models.user_model import User
from elms.security import verify_token

logger = logging.getLogger(__name__)

ADMIN_ONLY = frozenset({Role.ADMIN})
ADMIN_OR_HOD = frozenset({Role.ADMIN, Role.HOD})
ANY_ROLE = frozenset(Role)


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str
    name: str
    role: Role
    department: str

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            user_id=user.id,
            email=user.email,
            name=user.name,
            role=Role(user.role),
            department=user.department,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def authorize(identity: Optional[Identity], required_roles: FrozenSet[Role], resource_department: Optional[str] = None) -> bool:
    """Return True when allowed, raise an AccessError subclass otherwise.

    Administrators always pass. A department head listed in ``required_roles``
    passes only when ``resource_department`` is absent or is their own.
    """
    if identity is None:
        raise UnauthenticatedError()
    if identity.role == Role.ADMIN:
        return True
    if identity.role not in required_roles:
        raise ForbiddenError(f"User role '{identity.role.value}' is not authorized to access this route")
    if identity.role == Role.HOD and resource_department and resource_department != identity.department:
        raise CrossDepartmentError()
    return True


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_current_user(authorization: Optional[str] = Header(None, alias="Authorization"), db: Session = Depends(get_db)) -> User:
    token = _bearer_token(authorization)
    if token is None:
        raise InvalidTokenError("Not authorized, no token")
    payload = verify_token(token)

    try:
        user_id = int(payload["id"])
    except (TypeError, ValueError):
        raise InvalidTokenError()

    user = db.get(User, user_id)
    if user is None:
        raise InvalidTokenError("User not found")
    if not user.is_active:
        raise InvalidTokenError("User account is deactivated")
    return user


def get_current_identity(user: User = Depends(get_current_user)) -> Identity:
    return Identity.from_user(user)


def require_roles(roles: FrozenSet[Role]):
    """Dependency factory: resolve the caller and check it against ``roles``."""

    def dependency(identity: Identity = Depends(get_current_identity)) -> Identity:
        authorize(identity, roles)
        return identity

    return dependency
