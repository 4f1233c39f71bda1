"""
Resolve who must decide a submitted leave request.

Decision table, first match wins:
1. Operations manager (user role OPS_MANAGER or position "Operations Manager") -> HR
2. Employee's branch has a manager -> that manager (BRANCH_MANAGER)
3. Anyone else (no branch, or branch without manager) -> HR fallback

No HTTP or database access happens here; user lookups are injected.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from hrms.models.employee import Employee
from hrms.models.user import UserRole

logger = logging.getLogger(__name__)

BRANCH_MANAGER_ROLE = "BRANCH_MANAGER"
OPERATIONS_MANAGER_POSITION = "Operations Manager"


@dataclass(frozen=True)
class ApproverAssignment:
    user_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return self.user_id is not None

    @property
    def comment(self) -> Optional[str]:
        return f"Routed to {self.role}" if self.role else None


def is_operations_manager(employee: Employee) -> bool:
    user_role = employee.user.role if employee.user is not None else None
    return user_role == UserRole.OPS_MANAGER.value or employee.position == OPERATIONS_MANAGER_POSITION


def resolve_approver(
    employee: Employee,
    find_user_by_role: Callable[[str], Optional[int]],
    hr_role: str,
    fallback_role: str,
) -> ApproverAssignment:
    """
    Args:
        employee: the applicant, with `user` and `branch` loaded
        find_user_by_role: returns the id of the first tenant user holding a role
        hr_role: role that decides requests from operations managers
        fallback_role: role that decides when no branch manager is available

    Returns:
        The assignment; empty when no suitable HR user exists.
    """
    if is_operations_manager(employee):
        logger.info(f"Employee {employee.id} is an operations manager, routing to {hr_role}")
        return _assign_role(find_user_by_role, hr_role)

    branch = employee.branch
    if branch is not None and branch.manager_user_id:
        logger.info(
            f"Routing employee {employee.id} to branch manager {branch.manager_user_id} (branch {branch.name})"
        )
        return ApproverAssignment(user_id=branch.manager_user_id, role=BRANCH_MANAGER_ROLE)

    if branch is not None:
        logger.info(f"Branch {branch.name} has no manager, falling back to {fallback_role}")
    return _assign_role(find_user_by_role, fallback_role)


def _assign_role(find_user_by_role: Callable[[str], Optional[int]], role: str) -> ApproverAssignment:
    user_id = find_user_by_role(role)
    if user_id is None:
        logger.warning(f"No user with role {role} available to approve leave")
        return ApproverAssignment()
    return ApproverAssignment(user_id=user_id, role=role)
