"""
Leave Router

HTTP endpoints for leave types, policies, requests, balances and holidays.
Business rules live in app services; reads go through the per-request
data provider (live database or demo fixtures).
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from hrms.core.config import settings
from hrms.core.exceptions import (
    AppException,
    DuplicateLeaveTypeError,
    LeaveTypeNotFoundError,
    LeaveValidationError,
)
from hrms.core.limiter import limiter, write_limit
from hrms.core.schemas import ApiResponse, Pagination
from hrms.database import get_db
from hrms.models.employee import Employee
from hrms.models.holiday import Holiday
from hrms.models.leave_policy import LeavePolicy
from hrms.models.leave_request import LeaveRequest, LeaveStatus
from hrms.models.leave_type import LeaveType
from hrms.models.user import User
from hrms.routers.auth_deps import get_current_user, require_leave_admin, require_leave_approver
from hrms.schemas.auth import TokenData
from hrms.schemas.leave import (
    HolidayCreate,
    LeaveDecisionRequest,
    LeavePolicyCreate,
    LeaveRequestCreate,
    LeaveTypeCreate,
    balance_to_response,
    holiday_to_response,
    leave_request_to_response,
    leave_type_to_response,
    policy_to_response,
)
from hrms.services import leave_service
from hrms.services.approver_routing import resolve_approver
from hrms.services.data_provider import LeaveDataProvider, LeaveRequestFilters, get_data_provider
from hrms.services.notification import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


def _respond(status_code: int, data: Optional[dict] = None, message: Optional[str] = None,
             pagination: Optional[Pagination] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.ok(data=data, message=message, pagination=pagination).to_dict(),
    )


def _not_implemented() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_501_NOT_IMPLEMENTED,
        content=ApiResponse.fail("Not implemented").to_dict(),
    )


def _first_user_with_role(db: Session, tenant_id: int, role: str) -> Optional[int]:
    row = db.query(User.id).filter(
        User.tenant_id == tenant_id,
        User.role == role,
        User.is_active.is_(True),
    ).order_by(User.id.asc()).first()
    return row.id if row else None


def _load_request(db: Session, request_id: int) -> LeaveRequest:
    return db.query(LeaveRequest).options(
        joinedload(LeaveRequest.employee).joinedload(Employee.branch),
        joinedload(LeaveRequest.leave_type),
    ).filter(LeaveRequest.id == request_id).one()


# --- Leave types ---

@router.get("/types")
def get_leave_types(
    current_user: TokenData = Depends(get_current_user),
    provider: LeaveDataProvider = Depends(get_data_provider),
):
    leave_types = provider.list_leave_types(current_user.tenant_id)
    return _respond(200, {"leaveTypes": [lt.dump() for lt in leave_types]})


@router.post("/types")
def create_leave_type(
    payload: LeaveTypeCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_leave_admin()),
):
    if not payload.name or not payload.code:
        raise AppException("Name and code are required", error_code="MISSING_FIELDS")

    existing = db.query(LeaveType).filter(
        LeaveType.code == payload.code,
        LeaveType.tenant_id == current_user.tenant_id
    ).first()
    if existing:
        raise DuplicateLeaveTypeError()

    leave_type = LeaveType(
        name=payload.name,
        code=payload.code,
        description=payload.description,
        color=payload.color,
        tenant_id=current_user.tenant_id,
    )
    db.add(leave_type)
    db.commit()
    db.refresh(leave_type)
    return _respond(201, {"leaveType": leave_type_to_response(leave_type).dump()}, "Leave type created successfully")


@router.put("/types/{leave_type_id}")
def update_leave_type(leave_type_id: int, current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


@router.delete("/types/{leave_type_id}")
def delete_leave_type(leave_type_id: int, current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


# --- Policies ---

@router.get("/policies")
def get_leave_policies(
    leave_type_id: Optional[int] = Query(None, alias="leaveTypeId"),
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    query = db.query(LeavePolicy).filter(
        LeavePolicy.tenant_id == current_user.tenant_id,
        LeavePolicy.is_active.is_(True),
    )
    if leave_type_id:
        query = query.filter(LeavePolicy.leave_type_id == leave_type_id)
    policies = query.order_by(LeavePolicy.leave_type_id, LeavePolicy.effective_date.desc()).all()
    return _respond(200, {"leavePolicies": [policy_to_response(p).dump() for p in policies]})


@router.post("/policies")
def create_leave_policy(
    payload: LeavePolicyCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_leave_admin()),
):
    leave_type = db.query(LeaveType).filter(
        LeaveType.id == payload.leave_type_id,
        LeaveType.tenant_id == current_user.tenant_id,
    ).first()
    if not leave_type:
        raise LeaveTypeNotFoundError()

    effective_date = payload.effective_date or date.today()
    if payload.expiry_date and payload.expiry_date < effective_date:
        raise AppException("Expiry date must be on or after effective date", error_code="INVALID_POLICY_DATES")

    leave_service.close_superseded_policies(
        db, leave_type.id, current_user.tenant_id, effective_date, payload.expiry_date
    )

    policy = LeavePolicy(
        tenant_id=current_user.tenant_id,
        leave_type_id=leave_type.id,
        name=payload.name,
        description=payload.description,
        max_days_per_year=payload.max_days_per_year,
        accrual_rate=payload.accrual_rate,
        max_carry_forward=payload.max_carry_forward,
        probation_period_days=payload.probation_period_days,
        min_days_notice=payload.min_days_notice,
        max_days_per_request=payload.max_days_per_request,
        allow_negative_balance=payload.allow_negative_balance,
        requires_approval=payload.requires_approval,
        effective_date=effective_date,
        expiry_date=payload.expiry_date,
    )
    db.add(policy)
    db.commit()
    db.refresh(policy)
    return _respond(201, {"leavePolicy": policy_to_response(policy).dump()}, "Leave policy created successfully")


# --- Requests ---

@router.post("/requests")
@limiter.limit(write_limit)
def submit_leave_request(
    request: Request,
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(get_current_user),
):
    tenant_id = current_user.tenant_id

    if payload.end_date < payload.start_date:
        raise AppException("End date must be on or after start date", error_code="INVALID_DATE_RANGE")

    validation = leave_service.validate_leave_request(
        db, payload.employee_id, payload.leave_type_id, payload.start_date, payload.end_date, tenant_id
    )
    if not validation.is_valid:
        logger.info(
            f"Leave request for employee {payload.employee_id} rejected by validation",
            extra={"errors": validation.errors},
        )
        raise LeaveValidationError(validation.errors)

    try:
        total_days = leave_service.calculate_working_days(db, payload.start_date, payload.end_date, tenant_id)

        employee = db.query(Employee).options(
            joinedload(Employee.user),
            joinedload(Employee.branch),
        ).filter(Employee.id == payload.employee_id, Employee.tenant_id == tenant_id).one()

        assignment = resolve_approver(
            employee,
            find_user_by_role=lambda role: _first_user_with_role(db, tenant_id, role),
            hr_role=settings.hr_role,
            fallback_role=settings.fallback_approver_role,
        )

        leave_request = LeaveRequest(
            tenant_id=tenant_id,
            employee_id=employee.id,
            leave_type_id=payload.leave_type_id,
            branch_id=employee.branch_id,
            start_date=payload.start_date,
            end_date=payload.end_date,
            total_days=total_days,
            reason=payload.reason,
            comments=assignment.comment,
            approver_id=assignment.user_id,
            approver_role=assignment.role,
            status=LeaveStatus.PENDING.value,
        )
        db.add(leave_request)
        db.flush()

        leave_service.update_leave_balance(
            db, employee.id, payload.leave_type_id, payload.start_date.year, tenant_id
        )
        NotificationService.notify_approver(db, leave_request)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Submit leave request error")
        raise AppException(
            "Internal server error while submitting leave request",
            status_code=500,
            error_code="DATABASE_ERROR",
        )

    leave_request = _load_request(db, leave_request.id)
    logger.info(
        f"Leave request {leave_request.id} submitted for employee {employee.id}",
        extra={"approver_id": assignment.user_id, "approver_role": assignment.role},
    )
    return _respond(
        201,
        {"leaveRequest": leave_request_to_response(leave_request).dump()},
        "Leave request submitted successfully",
    )


@router.get("/requests")
def get_leave_requests(
    employee_id: Optional[int] = Query(None, alias="employeeId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    leave_type_id: Optional[int] = Query(None, alias="leaveTypeId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    branch_id: Optional[int] = Query(None, alias="branchId"),
    branch_name: Optional[str] = Query(None, alias="branchName"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: TokenData = Depends(get_current_user),
    provider: LeaveDataProvider = Depends(get_data_provider),
):
    filters = LeaveRequestFilters(
        employee_id=employee_id,
        status=status_filter,
        leave_type_id=leave_type_id,
        start_date=start_date,
        end_date=end_date,
        branch_id=branch_id,
        branch_name=branch_name,
    )
    result = provider.list_leave_requests(current_user, filters, page, limit or settings.default_page_size)
    return _respond(
        200,
        {"leaveRequests": [r.dump() for r in result.items]},
        pagination=Pagination(total=result.total, page=result.page, limit=result.limit),
    )


@router.get("/requests/{request_id}")
def get_leave_request_by_id(request_id: int, current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


@router.post("/requests/{request_id}/cancel")
def cancel_leave_request(request_id: int, current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


@router.put("/requests/{request_id}/decision")
def process_leave_request(
    request_id: int,
    payload: LeaveDecisionRequest,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_leave_approver()),
):
    decision = payload.decision or ""
    if decision not in (LeaveStatus.APPROVED.value, LeaveStatus.REJECTED.value):
        raise AppException("Valid decision (APPROVED or REJECTED) is required", error_code="INVALID_DECISION")

    leave_request = leave_service.process_leave_request_decision(
        db,
        request_id,
        decision,
        current_user.user_id,
        reason=payload.reason,
        tenant_id=current_user.tenant_id,
    )
    NotificationService.notify_decision(db, leave_request)
    db.commit()

    leave_request = _load_request(db, leave_request.id)
    return _respond(
        200,
        {"leaveRequest": leave_request_to_response(leave_request).dump()},
        f"Leave request {decision.lower()} successfully",
    )


# --- Balances ---

@router.get("/balances/{employee_id}")
def get_leave_balances(
    employee_id: int,
    year: Optional[int] = None,
    current_user: TokenData = Depends(get_current_user),
    provider: LeaveDataProvider = Depends(get_data_provider),
):
    year = year or date.today().year
    balances = provider.list_leave_balances(current_user.tenant_id, employee_id, year)
    return _respond(200, {"leaveBalances": [b.dump() for b in balances], "year": year})


@router.post("/balances/{employee_id}/initialize")
def initialize_leave_balances(
    employee_id: int,
    year: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_leave_admin()),
):
    year = year or date.today().year
    balances = leave_service.initialize_employee_leave_balances(db, employee_id, current_user.tenant_id, year)
    db.commit()
    for balance in balances:
        db.refresh(balance)
    return _respond(200, {"leaveBalances": [balance_to_response(b).dump() for b in balances], "year": year})


# --- Holidays ---

@router.get("/holidays")
def get_holidays(
    year: Optional[int] = None,
    current_user: TokenData = Depends(get_current_user),
    provider: LeaveDataProvider = Depends(get_data_provider),
):
    year = year or date.today().year
    holidays = provider.list_holidays(current_user.tenant_id, year)
    return _respond(200, {"holidays": [h.dump() for h in holidays], "year": year})


@router.post("/holidays")
def create_holiday(
    payload: HolidayCreate,
    db: Session = Depends(get_db),
    current_user: TokenData = Depends(require_leave_admin()),
):
    if not payload.name or not payload.date:
        raise AppException("Name and date are required", error_code="MISSING_FIELDS")

    holiday = Holiday(
        name=payload.name,
        date=payload.date,
        type=payload.type or "PUBLIC",
        description=payload.description,
        is_recurring=payload.is_recurring,
        tenant_id=current_user.tenant_id,
    )
    db.add(holiday)
    db.commit()
    db.refresh(holiday)
    return _respond(201, {"holiday": holiday_to_response(holiday).dump()}, "Holiday created successfully")


# --- Not yet available ---

@router.get("/calendar")
def get_leave_calendar(current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


@router.get("/statistics")
def get_leave_statistics(current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()


@router.get("/export")
def export_leave_data(current_user: TokenData = Depends(get_current_user)):
    return _not_implemented()
