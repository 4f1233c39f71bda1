from datetime import date

import pytest

from hrms.core.exceptions import AppException, InvalidStateTransitionError, LeaveRequestNotFoundError
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_request import LeaveStatus
from hrms.services.leave_service import process_leave_request_decision

TODAY = date(2025, 2, 3)


@pytest.fixture
def pending_request(make_employee, annual_leave, annual_policy, make_request):
    employee = make_employee()
    return make_request(employee, annual_leave, date(2025, 3, 3), date(2025, 3, 7), 5)


def _balance(db_session, leave_request):
    return db_session.query(LeaveBalance).filter(
        LeaveBalance.employee_id == leave_request.employee_id,
        LeaveBalance.leave_type_id == leave_request.leave_type_id,
        LeaveBalance.year == 2025,
    ).one()


def test_approve_pending_request(db_session, pending_request, hr_user):
    result = process_leave_request_decision(
        db_session, pending_request.id, LeaveStatus.APPROVED, hr_user.id, today=TODAY
    )
    db_session.commit()

    assert result.status == LeaveStatus.APPROVED.value
    assert result.approved_by == hr_user.id
    assert result.approved_at is not None
    assert result.rejected_at is None

    balance = _balance(db_session, pending_request)
    assert balance.used == 5
    assert balance.pending == 0
    assert balance.available == 16


def test_reject_pending_request_with_reason(db_session, pending_request, hr_user):
    result = process_leave_request_decision(
        db_session, pending_request.id, "REJECTED", hr_user.id, reason="Peak season", today=TODAY
    )
    db_session.commit()

    assert result.status == LeaveStatus.REJECTED.value
    assert result.rejected_by == hr_user.id
    assert result.rejection_reason == "Peak season"
    assert result.approved_by is None

    balance = _balance(db_session, pending_request)
    assert balance.used == 0
    assert balance.pending == 0
    assert balance.available == 21


def test_decided_request_cannot_be_decided_again(db_session, pending_request, hr_user):
    """A second decision leaves the approved request and its balance as they were."""
    process_leave_request_decision(db_session, pending_request.id, "APPROVED", hr_user.id, today=TODAY)
    db_session.commit()
    approved_at = pending_request.approved_at
    balance = _balance(db_session, pending_request)
    before = (balance.allocated, balance.used, balance.pending, balance.available)

    with pytest.raises(InvalidStateTransitionError):
        process_leave_request_decision(db_session, pending_request.id, "REJECTED", hr_user.id, today=TODAY)
    db_session.rollback()

    assert pending_request.status == LeaveStatus.APPROVED.value
    assert pending_request.approved_by == hr_user.id
    assert pending_request.approved_at == approved_at
    assert pending_request.rejected_at is None
    assert pending_request.rejected_by is None
    assert pending_request.rejection_reason is None

    balance = _balance(db_session, pending_request)
    assert (balance.allocated, balance.used, balance.pending, balance.available) == before
    assert balance.used == 5


def test_unknown_request(db_session, tenant, hr_user):
    with pytest.raises(LeaveRequestNotFoundError):
        process_leave_request_decision(db_session, 9999, "APPROVED", hr_user.id, tenant_id=tenant.id)


def test_request_of_other_tenant_is_not_found(db_session, pending_request, other_tenant, hr_user):
    with pytest.raises(LeaveRequestNotFoundError):
        process_leave_request_decision(
            db_session, pending_request.id, "APPROVED", hr_user.id, tenant_id=other_tenant.id
        )


@pytest.mark.parametrize("decision", ["PENDING", "MAYBE", ""])
def test_invalid_decision(db_session, pending_request, hr_user, decision):
    with pytest.raises(AppException) as exc_info:
        process_leave_request_decision(db_session, pending_request.id, decision, hr_user.id)
    assert exc_info.value.status_code == 400
    db_session.refresh(pending_request)
    assert pending_request.status == LeaveStatus.PENDING.value
