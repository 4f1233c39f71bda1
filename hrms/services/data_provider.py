"""
Read-side data providers for the leave endpoints.

A provider is chosen once per request from the caller's identity: demo
accounts get FixtureLeaveDataProvider, everyone else LiveLeaveDataProvider.
Writes never go through a provider.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fastapi import Depends
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from hrms.core.config import settings
from hrms.database import get_db
from hrms.models.branch import Branch
from hrms.models.employee import Employee
from hrms.models.holiday import Holiday
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_request import LeaveRequest, LeaveStatus
from hrms.models.leave_type import LeaveType
from hrms.models.user import UserRole
from hrms.routers.auth_deps import get_current_user
from hrms.schemas.auth import TokenData
from hrms.schemas.leave import (
    BranchSummary,
    EmployeeSummary,
    HolidayResponse,
    LeaveBalanceResponse,
    LeaveRequestPage,
    LeaveRequestResponse,
    LeaveTypeResponse,
    LeaveTypeSummary,
    balance_to_response,
    holiday_to_response,
    leave_request_to_response,
    leave_type_to_response,
)

logger = logging.getLogger(__name__)


@dataclass
class LeaveRequestFilters:
    employee_id: Optional[int] = None
    status: Optional[str] = None
    leave_type_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    branch_id: Optional[int] = None
    branch_name: Optional[str] = None


class LeaveDataProvider(ABC):
    @abstractmethod
    def list_leave_types(self, tenant_id: int) -> List[LeaveTypeResponse]:
        ...

    @abstractmethod
    def list_leave_requests(
        self, viewer: TokenData, filters: LeaveRequestFilters, page: int, limit: int
    ) -> LeaveRequestPage:
        ...

    @abstractmethod
    def list_leave_balances(self, tenant_id: int, employee_id: int, year: int) -> List[LeaveBalanceResponse]:
        ...

    @abstractmethod
    def list_holidays(self, tenant_id: int, year: int) -> List[HolidayResponse]:
        ...


class LiveLeaveDataProvider(LeaveDataProvider):
    def __init__(self, db: Session):
        self.db = db

    def list_leave_types(self, tenant_id: int) -> List[LeaveTypeResponse]:
        leave_types = self.db.query(LeaveType).filter(
            LeaveType.tenant_id == tenant_id,
            LeaveType.is_active.is_(True)
        ).order_by(LeaveType.name.asc()).all()

        request_counts = dict(
            self.db.query(LeaveRequest.leave_type_id, func.count(LeaveRequest.id))
            .filter(LeaveRequest.tenant_id == tenant_id)
            .group_by(LeaveRequest.leave_type_id)
            .all()
        )
        balance_counts = dict(
            self.db.query(LeaveBalance.leave_type_id, func.count(LeaveBalance.id))
            .filter(LeaveBalance.tenant_id == tenant_id)
            .group_by(LeaveBalance.leave_type_id)
            .all()
        )
        return [
            leave_type_to_response(lt, request_counts.get(lt.id, 0), balance_counts.get(lt.id, 0))
            for lt in leave_types
        ]

    def _viewer_branch_id(self, viewer: TokenData) -> Optional[int]:
        employee = self.db.query(Employee).filter(
            Employee.user_id == viewer.user_id,
            Employee.tenant_id == viewer.tenant_id
        ).first()
        return employee.branch_id if employee else None

    def list_leave_requests(
        self, viewer: TokenData, filters: LeaveRequestFilters, page: int, limit: int
    ) -> LeaveRequestPage:
        query = self.db.query(LeaveRequest).filter(LeaveRequest.tenant_id == viewer.tenant_id)

        if filters.employee_id:
            query = query.filter(LeaveRequest.employee_id == filters.employee_id)
        if filters.status:
            query = query.filter(LeaveRequest.status == filters.status.upper())
        if filters.leave_type_id:
            query = query.filter(LeaveRequest.leave_type_id == filters.leave_type_id)
        if filters.start_date and filters.end_date:
            query = query.filter(
                LeaveRequest.start_date >= filters.start_date,
                LeaveRequest.end_date <= filters.end_date,
            )

        # Operations managers only see their own branch
        if viewer.role == UserRole.OPS_MANAGER.value:
            branch_id = self._viewer_branch_id(viewer)
            if branch_id:
                query = query.filter(LeaveRequest.branch_id == branch_id)

        if filters.branch_id:
            query = query.filter(LeaveRequest.branch_id == filters.branch_id)
        if filters.branch_name:
            query = query.join(Employee, LeaveRequest.employee_id == Employee.id).join(
                Branch, Employee.branch_id == Branch.id
            ).filter(func.lower(Branch.name) == filters.branch_name.lower())

        total = query.count()
        rows = query.options(
            joinedload(LeaveRequest.employee).joinedload(Employee.branch),
            joinedload(LeaveRequest.leave_type),
        ).order_by(
            LeaveRequest.applied_at.desc(), LeaveRequest.id.desc()
        ).offset((page - 1) * limit).limit(limit).all()

        return LeaveRequestPage(
            items=[leave_request_to_response(r) for r in rows],
            total=total,
            page=page,
            limit=limit,
        )

    def list_leave_balances(self, tenant_id: int, employee_id: int, year: int) -> List[LeaveBalanceResponse]:
        balances = self.db.query(LeaveBalance).join(
            LeaveType, LeaveBalance.leave_type_id == LeaveType.id
        ).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.year == year,
            LeaveBalance.tenant_id == tenant_id,
        ).order_by(LeaveType.name.asc()).all()
        return [balance_to_response(b) for b in balances]

    def list_holidays(self, tenant_id: int, year: int) -> List[HolidayResponse]:
        holidays = self.db.query(Holiday).filter(
            Holiday.tenant_id == tenant_id,
            Holiday.is_active.is_(True),
            Holiday.date >= date(year, 1, 1),
            Holiday.date <= date(year, 12, 31),
        ).order_by(Holiday.date.asc()).all()
        return [holiday_to_response(h) for h in holidays]


# --- Demo fixtures ---

DEMO_LEAVE_TYPES = [
    {"id": 1, "name": "Annual Leave", "code": "AL", "color": "#4CAF50", "max_days": 21},
    {"id": 2, "name": "Compassionate Leave", "code": "CL", "color": "#9C27B0", "max_days": 15},
    {"id": 3, "name": "Maternity Leave", "code": "ML", "color": "#E91E63", "max_days": 84},
    {"id": 4, "name": "Paternity Leave", "code": "PL", "color": "#2196F3", "max_days": 14},
    {"id": 5, "name": "Sick Leave", "code": "SL", "color": "#FF9800", "max_days": 14},
]

DEMO_BRANCH = BranchSummary(id=1, name="Demo Branch", manager_user_id=900)

# (employee_id, leave_type_id, month, start_day, end_day, total_days, status)
DEMO_REQUESTS = [
    (101, 1, 2, 3, 7, 5, LeaveStatus.APPROVED),
    (102, 5, 3, 10, 11, 2, LeaveStatus.APPROVED),
    (103, 1, 4, 14, 18, 5, LeaveStatus.PENDING),
    (101, 2, 5, 5, 6, 2, LeaveStatus.REJECTED),
    (104, 4, 6, 2, 13, 10, LeaveStatus.PENDING),
    (102, 1, 7, 7, 11, 5, LeaveStatus.PENDING),
]

DEMO_EMPLOYEES = {
    101: ("EMP101", "Amina", "Wanjiru", "Cashier"),
    102: ("EMP102", "Brian", "Otieno", "Chef"),
    103: ("EMP103", "Carol", "Njeri", "Waiter"),
    104: ("EMP104", "David", "Kamau", "Barista"),
}


class FixtureLeaveDataProvider(LeaveDataProvider):
    """Deterministic demo data; never touches the database."""

    def __init__(self, year: Optional[int] = None):
        self.year = year or date.today().year

    def _leave_type_summary(self, leave_type_id: int) -> Optional[LeaveTypeSummary]:
        for lt in DEMO_LEAVE_TYPES:
            if lt["id"] == leave_type_id:
                return LeaveTypeSummary(id=lt["id"], name=lt["name"], code=lt["code"], color=lt["color"])
        return None

    def list_leave_types(self, tenant_id: int) -> List[LeaveTypeResponse]:
        request_counts: Dict[int, int] = {}
        for row in DEMO_REQUESTS:
            request_counts[row[1]] = request_counts.get(row[1], 0) + 1
        return [
            LeaveTypeResponse(
                id=lt["id"],
                name=lt["name"],
                code=lt["code"],
                color=lt["color"],
                description=f"{lt['name']}: {lt['max_days']} days per year",
                request_count=request_counts.get(lt["id"], 0),
                balance_count=len(DEMO_EMPLOYEES),
            )
            for lt in DEMO_LEAVE_TYPES
        ]

    def _requests(self) -> List[LeaveRequestResponse]:
        applied = datetime(self.year, 1, 2, 9, 0, tzinfo=timezone.utc)
        requests = []
        for index, (employee_id, leave_type_id, month, start, end, days, status) in enumerate(DEMO_REQUESTS, start=1):
            number, first, last, position = DEMO_EMPLOYEES[employee_id]
            requests.append(LeaveRequestResponse(
                id=index,
                employee_id=employee_id,
                leave_type_id=leave_type_id,
                branch_id=DEMO_BRANCH.id,
                start_date=date(self.year, month, start),
                end_date=date(self.year, month, end),
                total_days=days,
                status=status.value,
                reason="Demo leave request",
                comments="Routed to BRANCH_MANAGER",
                approver_id=DEMO_BRANCH.manager_user_id,
                approver_role="BRANCH_MANAGER",
                applied_at=applied,
                employee=EmployeeSummary(
                    id=employee_id,
                    employee_number=number,
                    first_name=first,
                    last_name=last,
                    position=position,
                    branch=DEMO_BRANCH,
                ),
                leave_type=self._leave_type_summary(leave_type_id),
                manager_user_id=DEMO_BRANCH.manager_user_id,
            ))
        return requests

    def list_leave_requests(
        self, viewer: TokenData, filters: LeaveRequestFilters, page: int, limit: int
    ) -> LeaveRequestPage:
        items = self._requests()
        if filters.employee_id:
            items = [r for r in items if r.employee_id == filters.employee_id]
        if filters.status:
            items = [r for r in items if r.status == filters.status.upper()]
        if filters.leave_type_id:
            items = [r for r in items if r.leave_type_id == filters.leave_type_id]
        if filters.start_date and filters.end_date:
            items = [
                r for r in items
                if r.start_date >= filters.start_date and r.end_date <= filters.end_date
            ]
        if filters.branch_id:
            items = [r for r in items if r.branch_id == filters.branch_id]
        if filters.branch_name:
            items = [r for r in items if r.employee.branch.name.lower() == filters.branch_name.lower()]

        start = (page - 1) * limit
        return LeaveRequestPage(items=items[start:start + limit], total=len(items), page=page, limit=limit)

    def list_leave_balances(self, tenant_id: int, employee_id: int, year: int) -> List[LeaveBalanceResponse]:
        balances = []
        for lt in DEMO_LEAVE_TYPES:
            used = sum(
                row[5] for row in DEMO_REQUESTS
                if row[0] == employee_id and row[1] == lt["id"] and row[6] == LeaveStatus.APPROVED
            )
            pending = sum(
                row[5] for row in DEMO_REQUESTS
                if row[0] == employee_id and row[1] == lt["id"] and row[6] == LeaveStatus.PENDING
            )
            allocated = float(lt["max_days"])
            balances.append(LeaveBalanceResponse(
                employee_id=employee_id,
                leave_type_id=lt["id"],
                year=year,
                allocated=allocated,
                used=used,
                pending=pending,
                available=allocated - used - pending,
                carried_forward=0,
                accrued=0,
                leave_type=self._leave_type_summary(lt["id"]),
            ))
        return balances

    def list_holidays(self, tenant_id: int, year: int) -> List[HolidayResponse]:
        fixtures = [
            (1, "New Year's Day", date(year, 1, 1)),
            (2, "Labour Day", date(year, 5, 1)),
            (3, "Madaraka Day", date(year, 6, 1)),
            (4, "Mashujaa Day", date(year, 10, 20)),
            (5, "Jamhuri Day", date(year, 12, 12)),
            (6, "Christmas Day", date(year, 12, 25)),
        ]
        return [
            HolidayResponse(id=i, name=name, date=d, type="PUBLIC", is_recurring=True)
            for i, name, d in fixtures
        ]


def get_data_provider(
    current_user: TokenData = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> LeaveDataProvider:
    if current_user.is_demo and settings.demo_mode_enabled:
        logger.info(f"Serving demo fixtures to user {current_user.user_id}")
        return FixtureLeaveDataProvider()
    return LiveLeaveDataProvider(db)
