from datetime import date

from fastapi import status

from hrms.core.config import settings
from hrms.models.user import UserRole
from hrms.schemas.auth import TokenData
from hrms.services.data_provider import FixtureLeaveDataProvider, LeaveRequestFilters


def _demo_headers(make_user, get_token):
    demo_user = make_user(UserRole.EMPLOYEE, is_demo=True)
    return {"Authorization": f"Bearer {get_token(demo_user)}"}


def test_demo_user_gets_fixture_leave_types(client, make_user, get_token):
    """Demo accounts see fixture data even when the tenant has none."""
    response = client.get("/api/leave/types", headers=_demo_headers(make_user, get_token))

    assert response.status_code == status.HTTP_200_OK
    codes = [t["code"] for t in response.json()["data"]["leaveTypes"]]
    assert codes == ["AL", "CL", "ML", "PL", "SL"]


def test_demo_requests_are_paginated(client, make_user, get_token):
    response = client.get(
        "/api/leave/requests",
        headers=_demo_headers(make_user, get_token),
        params={"limit": 4, "page": 2}
    )

    body = response.json()
    assert body["pagination"] == {"total": 6, "page": 2, "limit": 4}
    assert len(body["data"]["leaveRequests"]) == 2


def test_demo_balances(client, make_user, get_token):
    response = client.get(
        "/api/leave/balances/101",
        headers=_demo_headers(make_user, get_token),
        params={"year": 2025}
    )

    balances = {b["leaveType"]["code"]: b for b in response.json()["data"]["leaveBalances"]}
    assert balances["AL"]["used"] == 5
    assert balances["AL"]["pending"] == 0
    assert balances["AL"]["available"] == 16
    assert balances["CL"]["used"] == 0


def test_demo_holidays(client, make_user, get_token):
    response = client.get(
        "/api/leave/holidays",
        headers=_demo_headers(make_user, get_token),
        params={"year": 2025}
    )

    holidays = response.json()["data"]["holidays"]
    assert len(holidays) == 6
    assert holidays[0]["date"] == "2025-01-01"


def test_regular_user_gets_live_data(client, staff_user, get_token):
    response = client.get("/api/leave/types", headers={"Authorization": f"Bearer {get_token(staff_user)}"})
    assert response.json()["data"]["leaveTypes"] == []


def test_demo_mode_can_be_disabled(client, make_user, get_token, monkeypatch):
    monkeypatch.setattr(settings, "demo_mode_enabled", False)

    response = client.get("/api/leave/types", headers=_demo_headers(make_user, get_token))

    assert response.json()["data"]["leaveTypes"] == []


def test_fixture_provider_filters():
    provider = FixtureLeaveDataProvider(year=2025)
    viewer = TokenData(user_id=1, role="EMPLOYEE", tenant_id=1, is_demo=True)

    pending = provider.list_leave_requests(viewer, LeaveRequestFilters(status="pending"), page=1, limit=10)
    assert pending.total == 3
    assert {r.status for r in pending.items} == {"PENDING"}

    for_employee = provider.list_leave_requests(viewer, LeaveRequestFilters(employee_id=101), page=1, limit=10)
    assert [r.start_date for r in for_employee.items] == [date(2025, 2, 3), date(2025, 5, 5)]


def test_fixture_provider_date_and_branch_filters():
    """Fixture listings honour the same date-range and branch filters as live ones."""
    provider = FixtureLeaveDataProvider(year=2025)
    viewer = TokenData(user_id=1, role="ADMIN", tenant_id=1, is_demo=True)

    in_range = provider.list_leave_requests(
        viewer, LeaveRequestFilters(start_date=date(2025, 3, 1), end_date=date(2025, 6, 10)), page=1, limit=10
    )
    assert in_range.total == 3
    assert [r.start_date for r in in_range.items] == [date(2025, 3, 10), date(2025, 4, 14), date(2025, 5, 5)]

    only_start = provider.list_leave_requests(
        viewer, LeaveRequestFilters(start_date=date(2025, 6, 1)), page=1, limit=10
    )
    assert only_start.total == 6

    by_name = provider.list_leave_requests(viewer, LeaveRequestFilters(branch_name="demo branch"), page=1, limit=10)
    assert by_name.total == 6
    other_name = provider.list_leave_requests(viewer, LeaveRequestFilters(branch_name="Kilimani"), page=1, limit=10)
    assert other_name.total == 0
    assert other_name.items == []

    by_id = provider.list_leave_requests(viewer, LeaveRequestFilters(branch_id=1), page=1, limit=10)
    assert by_id.total == 6
    other_id = provider.list_leave_requests(viewer, LeaveRequestFilters(branch_id=2), page=1, limit=10)
    assert other_id.total == 0
