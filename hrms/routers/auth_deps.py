"""
Authentication and RBAC dependencies.
The request context (user, role, tenant) is decoded from the bearer token
without a database hit.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from hrms.core.config import settings
from hrms.core.exceptions import AccessDeniedError, AuthenticationError
from hrms.models.user import UserRole
from hrms.schemas.auth import TokenData
from hrms.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login", auto_error=False)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme)) -> TokenData:
    """
    Extracts and validates the caller's context from the JWT token.
    """
    if not token:
        raise AuthenticationError()

    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise AuthenticationError("Invalid or expired token. Please log in again.")

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise AuthenticationError("Invalid or expired token. Please log in again.")

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise AuthenticationError("Invalid token type")

    subject = payload.get("sub")
    if subject is None:
        logger.warning("Authentication failed: Missing subject in token")
        raise AuthenticationError("Missing subject in token")

    tenant_id = payload.get("tenant_id")
    if tenant_id is None:
        logger.warning(f"Authentication failed: No tenant_id in token for user {subject}")
        raise AuthenticationError("Tenant ID is required")

    return TokenData(
        user_id=int(subject),
        role=payload.get("role") or UserRole.EMPLOYEE.value,
        tenant_id=int(tenant_id),
        is_demo=bool(payload.get("is_demo", False)),
        email=payload.get("email"),
    )


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks if the caller has one of the allowed roles.

    Usage:
        @router.post("/types")
        def create(user: TokenData = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    allowed = {r.value for r in allowed_roles}

    def role_checker(current_user: TokenData = Depends(get_current_user)) -> TokenData:
        if current_user.role not in allowed:
            raise AccessDeniedError()
        return current_user
    return role_checker


def require_leave_admin() -> Callable:
    """Leave configuration (types, policies, holidays, balances)."""
    return require_role([UserRole.ADMIN, UserRole.HR_MANAGER])


def require_leave_approver() -> Callable:
    return require_role([UserRole.ADMIN, UserRole.HR_MANAGER, UserRole.HR, UserRole.OPS_MANAGER])
