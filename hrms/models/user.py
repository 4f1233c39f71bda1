"""
User Model.
Roles are stored as plain strings so the approver roles used by leave
routing stay configurable (HR_ROLE / FALLBACK_APPROVER_ROLE).
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from hrms.database import Base


class UserRole(str, enum.Enum):
    """
    ADMIN: full tenant administration
    HR_MANAGER: HR lead, receives leave from operations managers
    HR: HR officer, fallback approver for branch staff
    OPS_MANAGER: operations manager, manages branches
    EMPLOYEE: self-service access
    """
    ADMIN = "ADMIN"
    HR_MANAGER = "HR_MANAGER"
    HR = "HR"
    OPS_MANAGER = "OPS_MANAGER"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)

    role = Column(String, default=UserRole.EMPLOYEE.value, nullable=False, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    # Demo accounts are served fixture data instead of live queries
    is_demo = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tenant = relationship("Tenant", back_populates="users")
    employee_profile = relationship("Employee", back_populates="user", uselist=False)
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)
