from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from hrms.database import Base


class LeaveBalance(Base):
    """
    Persisted snapshot of an employee's entitlement for one leave type and year.
    Always recomputed from requests and policy, never adjusted incrementally.
    """
    __tablename__ = "leave_balances"
    __table_args__ = (
        UniqueConstraint("employee_id", "leave_type_id", "year", name="uq_leave_balance_employee_type_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type_id = Column(Integer, ForeignKey("leave_types.id"), nullable=False, index=True)
    year = Column(Integer, nullable=False)

    allocated = Column(Float, default=0.0, nullable=False)
    used = Column(Float, default=0.0, nullable=False)
    pending = Column(Float, default=0.0, nullable=False)
    available = Column(Float, default=0.0, nullable=False)
    carried_forward = Column(Float, default=0.0, nullable=False)
    accrued = Column(Float, default=0.0, nullable=False)
    last_updated = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="leave_balances")
    leave_type = relationship("LeaveType", back_populates="leave_balances")
