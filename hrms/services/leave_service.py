"""
Leave Management Service Layer

Working-day calculation, leave-balance calculation and upsert, leave-request
validation and approval/rejection processing.

Architecture:
- Router -> Service (this module) -> Models
- Business-rule failures are returned as data (ValidationResult); only
  missing records and illegal state transitions raise.
- Functions flush but never commit; the router owns the transaction.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Union

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from hrms.core.exceptions import (
    AppException,
    EmployeeNotFoundError,
    InvalidStateTransitionError,
    LeaveRequestNotFoundError,
    PolicyNotFoundError,
    PolicyOverlapError,
)
from hrms.models.employee import Employee
from hrms.models.holiday import Holiday
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_policy import LeavePolicy
from hrms.models.leave_request import LeaveRequest, LeaveStatus
from hrms.models.leave_type import LeaveType

logger = logging.getLogger(__name__)


@dataclass
class LeaveBalanceCalculation:
    allocated: float
    used: float
    pending: float
    available: float
    carried_forward: float
    accrued: float


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0


def calculate_working_days(db: Session, start_date: date, end_date: date, tenant_id: int) -> int:
    """
    Count the days in [start_date, end_date] that are neither a weekend day
    nor an active holiday of the tenant.
    """
    holidays = db.query(Holiday.date).filter(
        Holiday.tenant_id == tenant_id,
        Holiday.is_active.is_(True),
        Holiday.date >= start_date,
        Holiday.date <= end_date,
    ).all()
    holiday_dates = {h.date for h in holidays}

    working_days = 0
    current = start_date
    while current <= end_date:
        # Monday=0 ... Saturday=5, Sunday=6
        if current.weekday() < 5 and current not in holiday_dates:
            working_days += 1
        current += timedelta(days=1)
    return working_days


def get_active_policy(
    db: Session,
    leave_type_id: int,
    tenant_id: int,
    today: Optional[date] = None
) -> Optional[LeavePolicy]:
    """Most recently effective active policy for the leave type, if any."""
    today = today or date.today()
    return db.query(LeavePolicy).filter(
        LeavePolicy.leave_type_id == leave_type_id,
        LeavePolicy.tenant_id == tenant_id,
        LeavePolicy.is_active.is_(True),
        LeavePolicy.effective_date <= today,
        or_(LeavePolicy.expiry_date.is_(None), LeavePolicy.expiry_date >= today),
    ).order_by(LeavePolicy.effective_date.desc(), LeavePolicy.id.desc()).first()


def close_superseded_policies(
    db: Session,
    leave_type_id: int,
    tenant_id: int,
    effective_date: date,
    expiry_date: Optional[date] = None
) -> List[LeavePolicy]:
    """
    Make room for a new policy window starting at ``effective_date``.

    Active policies that started earlier and are still open on that date are
    expired the day before. An active policy starting on or after that date
    would overlap the new window and raises PolicyOverlapError. Changes are
    flushed, not committed.
    """
    query = db.query(LeavePolicy).filter(
        LeavePolicy.leave_type_id == leave_type_id,
        LeavePolicy.tenant_id == tenant_id,
        LeavePolicy.is_active.is_(True),
        or_(LeavePolicy.expiry_date.is_(None), LeavePolicy.expiry_date >= effective_date),
    )
    if expiry_date is not None:
        query = query.filter(LeavePolicy.effective_date <= expiry_date)
    overlapping = query.all()

    if any(p.effective_date >= effective_date for p in overlapping):
        raise PolicyOverlapError()

    for policy in overlapping:
        policy.expiry_date = effective_date - timedelta(days=1)
        logger.info(f"Leave policy {policy.id} expires on {policy.expiry_date} (superseded)")

    db.flush()
    return overlapping


def _get_employee(db: Session, employee_id: int, tenant_id: int) -> Optional[Employee]:
    return db.query(Employee).filter(
        Employee.id == employee_id,
        Employee.tenant_id == tenant_id
    ).first()


def _sum_request_days(
    db: Session,
    employee_id: int,
    leave_type_id: int,
    tenant_id: int,
    status: LeaveStatus,
    year_start: date,
    year_end: date
) -> float:
    total = db.query(func.coalesce(func.sum(LeaveRequest.total_days), 0.0)).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.leave_type_id == leave_type_id,
        LeaveRequest.tenant_id == tenant_id,
        LeaveRequest.status == status.value,
        LeaveRequest.start_date >= year_start,
        LeaveRequest.end_date <= year_end,
    ).scalar()
    return float(total or 0.0)


def calculate_leave_balance(
    db: Session,
    employee_id: int,
    leave_type_id: int,
    year: int,
    tenant_id: int,
    today: Optional[date] = None
) -> LeaveBalanceCalculation:
    """
    Compute the balance of one employee for one leave type and calendar year.

    Raises:
        PolicyNotFoundError: no active policy for the leave type
        EmployeeNotFoundError: employee does not exist in the tenant
    """
    today = today or date.today()

    policy = get_active_policy(db, leave_type_id, tenant_id, today)
    if not policy:
        raise PolicyNotFoundError()

    employee = _get_employee(db, employee_id, tenant_id)
    if not employee:
        raise EmployeeNotFoundError()

    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)
    hire_date = employee.hire_date

    # Prorate by the months remaining when hired during the year
    allocated = float(policy.max_days_per_year)
    if hire_date > year_end:
        allocated = 0.0
    elif hire_date > year_start:
        months_remaining = 12 - (hire_date.month - 1)
        allocated = float(math.floor(policy.max_days_per_year * months_remaining / 12))

    accrued = 0.0
    if policy.accrual_rate and policy.accrual_rate > 0:
        end = today if today < year_end else year_end
        if end > year_start:
            months_elapsed = (end.year - year_start.year) * 12 + (end.month - year_start.month)
            accrued = float(math.floor(policy.accrual_rate * months_elapsed))

    used = _sum_request_days(
        db, employee_id, leave_type_id, tenant_id, LeaveStatus.APPROVED, year_start, year_end
    )
    pending = _sum_request_days(
        db, employee_id, leave_type_id, tenant_id, LeaveStatus.PENDING, year_start, year_end
    )

    carried_forward = 0.0
    if policy.max_carry_forward and policy.max_carry_forward > 0 and year > hire_date.year:
        previous = db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year - 1,
            LeaveBalance.tenant_id == tenant_id,
        ).first()
        if previous:
            carried_forward = min(previous.available, policy.max_carry_forward)

    available = allocated + carried_forward + accrued - used - pending

    return LeaveBalanceCalculation(
        allocated=allocated,
        used=used,
        pending=pending,
        available=available,
        carried_forward=carried_forward,
        accrued=accrued,
    )


def update_leave_balance(
    db: Session,
    employee_id: int,
    leave_type_id: int,
    year: int,
    tenant_id: int,
    today: Optional[date] = None
) -> LeaveBalance:
    """
    Recompute and upsert the balance keyed by (employee, leave type, year).

    Read-then-upsert without row locks: concurrent submissions for the same
    key can race, and the last writer wins.
    """
    calculation = calculate_leave_balance(db, employee_id, leave_type_id, year, tenant_id, today)

    balance = db.query(LeaveBalance).filter(
        LeaveBalance.employee_id == employee_id,
        LeaveBalance.leave_type_id == leave_type_id,
        LeaveBalance.year == year,
    ).first()
    if balance is None:
        balance = LeaveBalance(
            employee_id=employee_id,
            leave_type_id=leave_type_id,
            year=year,
            tenant_id=tenant_id,
        )
        db.add(balance)

    balance.allocated = calculation.allocated
    balance.used = calculation.used
    balance.pending = calculation.pending
    balance.available = calculation.available
    balance.carried_forward = calculation.carried_forward
    balance.accrued = calculation.accrued
    balance.last_updated = datetime.now(timezone.utc)
    db.flush()
    return balance


def initialize_employee_leave_balances(
    db: Session,
    employee_id: int,
    tenant_id: int,
    year: Optional[int] = None,
    today: Optional[date] = None
) -> List[LeaveBalance]:
    """Create or refresh a balance for every active leave type of the tenant."""
    year = year or (today or date.today()).year

    if not _get_employee(db, employee_id, tenant_id):
        raise EmployeeNotFoundError()

    leave_types = db.query(LeaveType).filter(
        LeaveType.tenant_id == tenant_id,
        LeaveType.is_active.is_(True)
    ).order_by(LeaveType.name).all()

    balances = []
    for leave_type in leave_types:
        try:
            balances.append(update_leave_balance(db, employee_id, leave_type.id, year, tenant_id, today))
        except PolicyNotFoundError:
            logger.warning(
                f"Skipping balance for employee {employee_id}: leave type {leave_type.code} has no active policy"
            )
    return balances


def validate_leave_request(
    db: Session,
    employee_id: int,
    leave_type_id: int,
    start_date: date,
    end_date: date,
    tenant_id: int,
    today: Optional[date] = None
) -> ValidationResult:
    """
    Validate a prospective leave request against the leave policy.

    Every check runs and contributes its own message; the request is valid
    only when no message was collected.
    """
    today = today or date.today()
    result = ValidationResult()

    policy = get_active_policy(db, leave_type_id, tenant_id, today)
    if not policy:
        result.errors.append("No active leave policy found for this leave type")
        return result

    employee = _get_employee(db, employee_id, tenant_id)
    if not employee:
        result.errors.append("Employee not found")
        return result

    if policy.probation_period_days > 0:
        days_since_hire = (today - employee.hire_date).days
        if days_since_hire < policy.probation_period_days:
            result.errors.append(
                f"Cannot apply for leave during probation period ({policy.probation_period_days} days)"
            )

    if policy.min_days_notice > 0:
        days_notice = (start_date - today).days
        if days_notice < policy.min_days_notice:
            result.errors.append(f"Minimum {policy.min_days_notice} days notice required")

    working_days = calculate_working_days(db, start_date, end_date, tenant_id)

    if policy.max_days_per_request and working_days > policy.max_days_per_request:
        result.errors.append(f"Maximum {_fmt(policy.max_days_per_request)} days allowed per request")

    balance = calculate_leave_balance(db, employee_id, leave_type_id, start_date.year, tenant_id, today)
    if not policy.allow_negative_balance and working_days > balance.available:
        result.errors.append(
            f"Insufficient leave balance. Available: {_fmt(balance.available)} days, "
            f"Requested: {working_days} days"
        )

    overlapping = db.query(LeaveRequest.id).filter(
        LeaveRequest.employee_id == employee_id,
        LeaveRequest.tenant_id == tenant_id,
        LeaveRequest.status.in_([LeaveStatus.PENDING.value, LeaveStatus.APPROVED.value]),
        LeaveRequest.start_date <= end_date,
        LeaveRequest.end_date >= start_date,
    ).first()
    if overlapping:
        result.errors.append("Leave request overlaps with existing request")

    return result


def process_leave_request_decision(
    db: Session,
    request_id: int,
    decision: Union[LeaveStatus, str],
    decided_by: int,
    reason: Optional[str] = None,
    tenant_id: Optional[int] = None,
    today: Optional[date] = None
) -> LeaveRequest:
    """
    Move a PENDING request to APPROVED or REJECTED and refresh the balance
    of the request's year.

    Raises:
        LeaveRequestNotFoundError: unknown request (or other tenant's)
        InvalidStateTransitionError: request already decided
    """
    try:
        decision = LeaveStatus(decision)
    except ValueError:
        decision = None
    if decision not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
        raise AppException("Valid decision (APPROVED or REJECTED) is required", error_code="INVALID_DECISION")

    query = db.query(LeaveRequest).filter(LeaveRequest.id == request_id)
    if tenant_id is not None:
        query = query.filter(LeaveRequest.tenant_id == tenant_id)
    leave_request = query.first()

    if not leave_request:
        raise LeaveRequestNotFoundError()

    if leave_request.status != LeaveStatus.PENDING.value:
        raise InvalidStateTransitionError()

    now = datetime.now(timezone.utc)
    leave_request.status = decision.value
    leave_request.updated_at = now
    if decision == LeaveStatus.APPROVED:
        leave_request.approved_at = now
        leave_request.approved_by = decided_by
    else:
        leave_request.rejected_at = now
        leave_request.rejected_by = decided_by
        leave_request.rejection_reason = reason
    db.flush()

    logger.info(
        f"Leave request {leave_request.id} {decision.value.lower()} by user {decided_by}",
        extra={"tenant_id": leave_request.tenant_id},
    )

    update_leave_balance(
        db,
        leave_request.employee_id,
        leave_request.leave_type_id,
        leave_request.start_date.year,
        leave_request.tenant_id,
        today,
    )
    return leave_request


def _fmt(days: float) -> str:
    """Render whole-day amounts without a trailing .0"""
    return str(int(days)) if float(days).is_integer() else str(days)
