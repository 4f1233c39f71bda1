import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from hrms.core.exceptions import AppException, AuthenticationError
from hrms.core.limiter import limiter, write_limit
from hrms.core.schemas import ApiResponse
from hrms.database import get_db
from hrms.models.user import User
from hrms.schemas.auth import LoginRequest, Token, UserSummary
from hrms.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


@router.post("/login")
@limiter.limit(write_limit)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == login_data.email).first()
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        logger.warning("Failed login attempt", extra={"email": login_data.email})
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AppException("User is inactive", status_code=403, error_code="USER_INACTIVE")

    access_token = auth_service.create_access_token(data={
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "tenant_id": user.tenant_id,
        "is_demo": user.is_demo,
    })

    token = Token(
        access_token=access_token,
        user=UserSummary(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            tenant_id=user.tenant_id,
            is_demo=user.is_demo,
        ),
    )
    logger.info(f"User {user.id} logged in", extra={"tenant_id": user.tenant_id})
    return JSONResponse(status_code=200, content=ApiResponse.ok(data=token.dump()).to_dict())
