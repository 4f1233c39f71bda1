from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hrms.database import Base


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    location = Column(String, nullable=True)

    # Branch manager (user who approves leave for branch staff)
    manager_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    status = Column(String, default="ACTIVE", nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    manager = relationship("User", foreign_keys=[manager_user_id])
    employees = relationship("Employee", back_populates="branch")

    def __repr__(self):
        return f"<Branch {self.name}>"
