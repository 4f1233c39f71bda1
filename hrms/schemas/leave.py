import datetime as dt
from datetime import date, datetime
from typing import List, Optional

from hrms.core.schemas import CamelModel
from hrms.models.holiday import Holiday
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_policy import LeavePolicy
from hrms.models.leave_request import LeaveRequest
from hrms.models.leave_type import LeaveType


# --- Inbound ---

class LeaveTypeCreate(CamelModel):
    name: Optional[str] = None
    code: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None


class LeavePolicyCreate(CamelModel):
    leave_type_id: int
    name: str
    description: Optional[str] = None
    max_days_per_year: float
    accrual_rate: float = 0.0
    max_carry_forward: float = 0.0
    probation_period_days: int = 0
    min_days_notice: int = 0
    max_days_per_request: Optional[float] = None
    allow_negative_balance: bool = False
    requires_approval: bool = True
    effective_date: Optional[date] = None
    expiry_date: Optional[date] = None


class LeaveRequestCreate(CamelModel):
    employee_id: int
    leave_type_id: int
    start_date: date
    end_date: date
    reason: Optional[str] = None


class LeaveDecisionRequest(CamelModel):
    decision: Optional[str] = None
    reason: Optional[str] = None


class HolidayCreate(CamelModel):
    name: Optional[str] = None
    date: Optional[dt.date] = None
    type: Optional[str] = None
    description: Optional[str] = None
    is_recurring: bool = False


# --- Outbound ---

class LeaveTypeSummary(CamelModel):
    id: int
    name: str
    code: str
    color: Optional[str] = None


class LeaveTypeResponse(LeaveTypeSummary):
    description: Optional[str] = None
    is_active: bool = True
    request_count: int = 0
    balance_count: int = 0


class LeavePolicyResponse(CamelModel):
    id: int
    leave_type_id: int
    name: str
    description: Optional[str] = None
    max_days_per_year: float
    accrual_rate: float
    max_carry_forward: float
    probation_period_days: int
    min_days_notice: int
    max_days_per_request: Optional[float] = None
    allow_negative_balance: bool
    requires_approval: bool
    is_active: bool
    effective_date: date
    expiry_date: Optional[date] = None


class BranchSummary(CamelModel):
    id: int
    name: str
    manager_user_id: Optional[int] = None


class EmployeeSummary(CamelModel):
    id: int
    employee_number: str
    first_name: str
    last_name: str
    position: Optional[str] = None
    branch: Optional[BranchSummary] = None


class LeaveRequestResponse(CamelModel):
    id: int
    employee_id: int
    leave_type_id: int
    branch_id: Optional[int] = None
    start_date: date
    end_date: date
    total_days: float
    status: str
    reason: Optional[str] = None
    comments: Optional[str] = None
    approver_id: Optional[int] = None
    approver_role: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    rejected_at: Optional[datetime] = None
    rejected_by: Optional[int] = None
    rejection_reason: Optional[str] = None
    applied_at: Optional[datetime] = None
    employee: Optional[EmployeeSummary] = None
    leave_type: Optional[LeaveTypeSummary] = None
    manager_user_id: Optional[int] = None


class LeaveBalanceResponse(CamelModel):
    employee_id: int
    leave_type_id: int
    year: int
    allocated: float
    used: float
    pending: float
    available: float
    carried_forward: float
    accrued: float
    last_updated: Optional[datetime] = None
    leave_type: Optional[LeaveTypeSummary] = None


class HolidayResponse(CamelModel):
    id: int
    name: str
    date: dt.date
    type: str
    description: Optional[str] = None
    is_recurring: bool = False


class LeaveRequestPage(CamelModel):
    items: List[LeaveRequestResponse]
    total: int
    page: int
    limit: int


# --- ORM -> DTO mapping ---

def leave_type_summary(lt: Optional[LeaveType]) -> Optional[LeaveTypeSummary]:
    if lt is None:
        return None
    return LeaveTypeSummary(id=lt.id, name=lt.name, code=lt.code, color=lt.color)


def leave_type_to_response(lt: LeaveType, request_count: int = 0, balance_count: int = 0) -> LeaveTypeResponse:
    return LeaveTypeResponse(
        id=lt.id,
        name=lt.name,
        code=lt.code,
        color=lt.color,
        description=lt.description,
        is_active=lt.is_active,
        request_count=request_count,
        balance_count=balance_count,
    )


def policy_to_response(p: LeavePolicy) -> LeavePolicyResponse:
    return LeavePolicyResponse(
        id=p.id,
        leave_type_id=p.leave_type_id,
        name=p.name,
        description=p.description,
        max_days_per_year=p.max_days_per_year,
        accrual_rate=p.accrual_rate,
        max_carry_forward=p.max_carry_forward,
        probation_period_days=p.probation_period_days,
        min_days_notice=p.min_days_notice,
        max_days_per_request=p.max_days_per_request,
        allow_negative_balance=p.allow_negative_balance,
        requires_approval=p.requires_approval,
        is_active=p.is_active,
        effective_date=p.effective_date,
        expiry_date=p.expiry_date,
    )


def leave_request_to_response(r: LeaveRequest) -> LeaveRequestResponse:
    employee = None
    manager_user_id = None
    if r.employee is not None:
        branch = None
        if r.employee.branch is not None:
            b = r.employee.branch
            branch = BranchSummary(id=b.id, name=b.name, manager_user_id=b.manager_user_id)
            manager_user_id = b.manager_user_id
        employee = EmployeeSummary(
            id=r.employee.id,
            employee_number=r.employee.employee_number,
            first_name=r.employee.first_name,
            last_name=r.employee.last_name,
            position=r.employee.position,
            branch=branch,
        )
    return LeaveRequestResponse(
        id=r.id,
        employee_id=r.employee_id,
        leave_type_id=r.leave_type_id,
        branch_id=r.branch_id,
        start_date=r.start_date,
        end_date=r.end_date,
        total_days=r.total_days,
        status=r.status,
        reason=r.reason,
        comments=r.comments,
        approver_id=r.approver_id,
        approver_role=r.approver_role,
        approved_at=r.approved_at,
        approved_by=r.approved_by,
        rejected_at=r.rejected_at,
        rejected_by=r.rejected_by,
        rejection_reason=r.rejection_reason,
        applied_at=r.applied_at,
        employee=employee,
        leave_type=leave_type_summary(r.leave_type),
        manager_user_id=manager_user_id,
    )


def balance_to_response(b: LeaveBalance) -> LeaveBalanceResponse:
    return LeaveBalanceResponse(
        employee_id=b.employee_id,
        leave_type_id=b.leave_type_id,
        year=b.year,
        allocated=b.allocated,
        used=b.used,
        pending=b.pending,
        available=b.available,
        carried_forward=b.carried_forward,
        accrued=b.accrued,
        last_updated=b.last_updated,
        leave_type=leave_type_summary(b.leave_type),
    )


def holiday_to_response(h: Holiday) -> HolidayResponse:
    return HolidayResponse(
        id=h.id,
        name=h.name,
        date=h.date,
        type=h.type,
        description=h.description,
        is_recurring=h.is_recurring,
    )
