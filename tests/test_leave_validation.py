from datetime import date, timedelta

from hrms.models.leave_request import LeaveStatus
from hrms.services.leave_service import validate_leave_request

TODAY = date(2025, 2, 3)
MONDAY = date(2025, 3, 3)
FRIDAY = date(2025, 3, 7)


def _validate(db_session, employee, leave_type, start=MONDAY, end=FRIDAY, today=TODAY):
    return validate_leave_request(db_session, employee.id, leave_type.id, start, end, employee.tenant_id, today=today)


def test_valid_request(db_session, make_employee, annual_leave, annual_policy):
    result = _validate(db_session, make_employee(), annual_leave)
    assert result.is_valid
    assert result.errors == []


def test_missing_policy_short_circuits(db_session, make_employee, annual_leave):
    result = _validate(db_session, make_employee(), annual_leave)
    assert not result.is_valid
    assert result.errors == ["No active leave policy found for this leave type"]


def test_unknown_employee(db_session, tenant, annual_leave, annual_policy):
    result = validate_leave_request(db_session, 9999, annual_leave.id, MONDAY, FRIDAY, tenant.id, today=TODAY)
    assert result.errors == ["Employee not found"]


def test_employee_of_other_tenant_is_unknown(db_session, make_employee, other_tenant, annual_leave, annual_policy):
    outsider = make_employee(tenant_id=other_tenant.id)
    result = validate_leave_request(
        db_session, outsider.id, annual_leave.id, MONDAY, FRIDAY, annual_leave.tenant_id, today=TODAY
    )
    assert result.errors == ["Employee not found"]


def test_probation_period(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, probation_period_days=90)
    employee = make_employee(hire_date=TODAY - timedelta(days=30))

    result = _validate(db_session, employee, annual_leave)

    assert "Cannot apply for leave during probation period (90 days)" in result.errors


def test_probation_completed(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, probation_period_days=90)
    employee = make_employee(hire_date=TODAY - timedelta(days=90))

    assert _validate(db_session, employee, annual_leave).is_valid


def test_minimum_notice(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, min_days_notice=7)

    result = _validate(db_session, make_employee(), annual_leave, today=MONDAY - timedelta(days=3))

    assert result.errors == ["Minimum 7 days notice required"]


def test_minimum_notice_met_exactly(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, min_days_notice=7)

    result = _validate(db_session, make_employee(), annual_leave, today=MONDAY - timedelta(days=7))

    assert result.is_valid


def test_maximum_days_per_request(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, max_days_per_request=3)

    result = _validate(db_session, make_employee(), annual_leave)

    assert result.errors == ["Maximum 3 days allowed per request"]


def test_insufficient_balance(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, max_days_per_year=5)

    result = _validate(db_session, make_employee(), annual_leave, end=FRIDAY + timedelta(days=7))

    assert result.errors == ["Insufficient leave balance. Available: 5 days, Requested: 10 days"]


def test_negative_balance_allowed(db_session, make_employee, annual_leave, make_policy):
    make_policy(annual_leave, max_days_per_year=5, allow_negative_balance=True)

    result = _validate(db_session, make_employee(), annual_leave, end=FRIDAY + timedelta(days=7))

    assert result.is_valid


def test_overlap_with_pending_request(db_session, make_employee, annual_leave, annual_policy, make_request):
    employee = make_employee()
    make_request(employee, annual_leave, FRIDAY, FRIDAY + timedelta(days=3), 2)

    result = _validate(db_session, employee, annual_leave)

    assert result.errors == ["Leave request overlaps with existing request"]


def test_overlap_with_approved_request_of_another_type(db_session, make_employee, annual_leave, annual_policy,
                                                       make_leave_type, make_request):
    employee = make_employee()
    sick = make_leave_type("SL", "Sick Leave")
    make_request(employee, sick, MONDAY, MONDAY, 1, LeaveStatus.APPROVED)

    result = _validate(db_session, employee, annual_leave)

    assert "Leave request overlaps with existing request" in result.errors


def test_rejected_request_does_not_overlap(db_session, make_employee, annual_leave, annual_policy, make_request):
    employee = make_employee()
    make_request(employee, annual_leave, MONDAY, FRIDAY, 5, LeaveStatus.REJECTED)

    assert _validate(db_session, employee, annual_leave).is_valid


def test_adjacent_request_does_not_overlap(db_session, make_employee, annual_leave, annual_policy, make_request):
    employee = make_employee()
    make_request(employee, annual_leave, FRIDAY + timedelta(days=3), FRIDAY + timedelta(days=4), 2)

    assert _validate(db_session, employee, annual_leave).is_valid


def test_all_failures_are_reported(db_session, make_employee, annual_leave, make_policy, make_request):
    make_policy(
        annual_leave,
        max_days_per_year=2,
        probation_period_days=365,
        min_days_notice=60,
        max_days_per_request=3,
    )
    employee = make_employee(hire_date=TODAY - timedelta(days=10))
    make_request(employee, annual_leave, MONDAY, MONDAY, 1)

    result = _validate(db_session, employee, annual_leave)

    assert result.errors == [
        "Cannot apply for leave during probation period (365 days)",
        "Minimum 60 days notice required",
        "Maximum 3 days allowed per request",
        "Insufficient leave balance. Available: 1 days, Requested: 5 days",
        "Leave request overlaps with existing request",
    ]


def test_zero_working_day_request_is_accepted(db_session, make_employee, annual_leave, annual_policy):
    saturday = date(2025, 3, 8)
    result = _validate(db_session, make_employee(), annual_leave, start=saturday, end=saturday + timedelta(days=1))
    assert result.is_valid
