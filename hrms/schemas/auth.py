from pydantic import BaseModel
from typing import Optional
from hrms.core.schemas import CamelModel


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenData(BaseModel):
    """Request context decoded from the bearer token."""
    user_id: int
    role: str
    tenant_id: int
    is_demo: bool = False
    email: Optional[str] = None


class UserSummary(CamelModel):
    id: int
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    tenant_id: int
    is_demo: bool = False


class Token(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserSummary
