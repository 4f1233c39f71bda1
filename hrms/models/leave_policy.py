from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hrms.database import Base


class LeavePolicy(Base):
    __tablename__ = "leave_policies"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    max_days_per_year = Column(Float, nullable=False)
    accrual_rate = Column(Float, default=0.0, nullable=False)  # days per month
    max_carry_forward = Column(Float, default=0.0, nullable=False)
    probation_period_days = Column(Integer, default=0, nullable=False)
    min_days_notice = Column(Integer, default=0, nullable=False)
    max_days_per_request = Column(Float, nullable=True)  # NULL = no cap
    allow_negative_balance = Column(Boolean, default=False, nullable=False)
    requires_approval = Column(Boolean, default=True, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    effective_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    leave_type = relationship("LeaveType", back_populates="policies")
