# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    tenant, user, branch, employee,
    leave_type, leave_policy, leave_balance, leave_request,
    holiday, notification
)

# Explicit class exports for cleaner imports
from .tenant import Tenant
from .user import User, UserRole
from .branch import Branch
from .employee import Employee
from .leave_type import LeaveType
from .leave_policy import LeavePolicy
from .leave_balance import LeaveBalance
from .leave_request import LeaveRequest, LeaveStatus
from .holiday import Holiday
from .notification import Notification

__all__ = [
    "Tenant",
    "User",
    "UserRole",
    "Branch",
    "Employee",
    "LeaveType",
    "LeavePolicy",
    "LeaveBalance",
    "LeaveRequest",
    "LeaveStatus",
    "Holiday",
    "Notification",
]
