from dataclasses import dataclass
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from storefront.auth.permissions import Permission, has_permission
from storefront.auth.security import decode_access_token
from storefront.db.deps import get_session
from storefront.db.repositories.admin_users import AdminUsersRepository


bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("auth.deps")


@dataclass
class AuthContext:
    user_id: str
    role: str


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    session: Session = Depends(get_session),
) -> AuthContext:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    claims = decode_access_token(credentials.credentials)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token claims")

    user = AdminUsersRepository(session).get(user_id=user_id)
    if not user or not user.is_active:
        logger.warning("Token for unknown or inactive admin", extra={"sub": user_id})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive or unknown user")

    logger.debug("AuthContext built", extra={"sub": user_id, "role": user.role.value})
    return AuthContext(user_id=user.id, role=user.role.value)


def require_permission(permission: Permission):
    def _check(auth: AuthContext = Depends(get_current_user)) -> AuthContext:
        if not has_permission(auth.role, permission):
            logger.info(
                "Permission denied",
                extra={"sub": auth.user_id, "role": auth.role, "permission": permission.value},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission.value}",
            )
        return auth

    return _check
