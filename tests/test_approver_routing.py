from hrms.models.branch import Branch
from hrms.models.employee import Employee
from hrms.models.user import User, UserRole
from hrms.services.approver_routing import (
    BRANCH_MANAGER_ROLE,
    OPERATIONS_MANAGER_POSITION,
    ApproverAssignment,
    resolve_approver,
)

HR_USERS = {"HR_MANAGER": 11, "HR": 12}


def _employee(role=UserRole.EMPLOYEE, position="Cashier", branch=None):
    return Employee(id=1, position=position, user=User(role=role.value), branch=branch)


def _resolve(employee, users=HR_USERS, calls=None):
    def find_user_by_role(role):
        if calls is not None:
            calls.append(role)
        return users.get(role)
    return resolve_approver(employee, find_user_by_role, hr_role="HR_MANAGER", fallback_role="HR")


def test_operations_manager_by_role_goes_to_hr():
    assignment = _resolve(_employee(role=UserRole.OPS_MANAGER))
    assert assignment == ApproverAssignment(user_id=11, role="HR_MANAGER")
    assert assignment.comment == "Routed to HR_MANAGER"


def test_operations_manager_by_position_skips_branch_manager():
    branch = Branch(name="Westlands", manager_user_id=7)
    assignment = _resolve(_employee(position=OPERATIONS_MANAGER_POSITION, branch=branch))
    assert assignment.user_id == 11
    assert assignment.role == "HR_MANAGER"


def test_branch_staff_go_to_branch_manager():
    calls = []
    assignment = _resolve(_employee(branch=Branch(name="Westlands", manager_user_id=7)), calls=calls)
    assert assignment == ApproverAssignment(user_id=7, role=BRANCH_MANAGER_ROLE)
    assert assignment.comment == "Routed to BRANCH_MANAGER"
    assert calls == []


def test_branch_without_manager_falls_back():
    assignment = _resolve(_employee(branch=Branch(name="Kilimani", manager_user_id=None)))
    assert assignment == ApproverAssignment(user_id=12, role="HR")


def test_employee_without_branch_falls_back():
    assignment = _resolve(_employee())
    assert assignment.user_id == 12
    assert assignment.role == "HR"


def test_employee_without_login_is_routed_by_branch():
    employee = Employee(id=2, position="Chef", user=None, branch=Branch(name="Westlands", manager_user_id=7))
    assert _resolve(employee).user_id == 7


def test_no_hr_user_leaves_request_unassigned():
    assignment = _resolve(_employee(), users={})
    assert not assignment.is_assigned
    assert assignment.role is None
    assert assignment.comment is None
