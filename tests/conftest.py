import os
import uuid
from datetime import date

import pytest

# Set env before importing app components
os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["DEMO_MODE_ENABLED"] = "true"

from fastapi.testclient import TestClient

from hrms.database import Database, get_db
from hrms.main import create_app
from hrms.models import (
    Branch, Employee, LeavePolicy, LeaveRequest, LeaveStatus, LeaveType, Tenant, User, UserRole
)
from hrms.services import auth as auth_service

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope="function")
def database():
    """A fresh in-memory database per test function."""
    database = Database("sqlite://")
    database.connect()
    database.create_all()
    yield database
    database.disconnect()


@pytest.fixture(scope="function")
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture(scope="function")
def tenant(db_session):
    """Create a default tenant for tests."""
    tenant = Tenant(name="Alpha Hospitality", slug=f"alpha-{uuid.uuid4()}")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope="function")
def other_tenant(db_session):
    tenant = Tenant(name="Beta Hotels", slug=f"beta-{uuid.uuid4()}")
    db_session.add(tenant)
    db_session.commit()
    return tenant


@pytest.fixture(scope="function")
def make_user(db_session, tenant):
    def _make_user(role=UserRole.EMPLOYEE, tenant_id=None, is_demo=False, is_active=True,
                   first_name="Test", last_name="User"):
        user = User(
            email=f"{role.value.lower()}-{uuid.uuid4().hex[:8]}@alpha.test",
            hashed_password=auth_service.get_password_hash(TEST_PASSWORD),
            first_name=first_name,
            last_name=last_name,
            role=role.value,
            tenant_id=tenant_id or tenant.id,
            is_active=is_active,
            is_demo=is_demo,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user(UserRole.ADMIN, first_name="System", last_name="Admin")


@pytest.fixture(scope="function")
def hr_user(make_user):
    return make_user(UserRole.HR, first_name="Peter", last_name="Mwangi")


@pytest.fixture(scope="function")
def branch_manager_user(make_user):
    return make_user(UserRole.EMPLOYEE, first_name="James", last_name="Kariuki")


@pytest.fixture(scope="function")
def staff_user(make_user):
    return make_user(UserRole.EMPLOYEE, first_name="Mary", last_name="Wambui")


@pytest.fixture(scope="function")
def branch(db_session, tenant, branch_manager_user):
    branch = Branch(tenant_id=tenant.id, name="Westlands", manager_user_id=branch_manager_user.id)
    db_session.add(branch)
    db_session.commit()
    return branch


@pytest.fixture(scope="function")
def make_employee(db_session, tenant):
    counter = {"n": 0}

    def _make_employee(hire_date=date(2020, 1, 6), branch=None, user=None, position="Cashier", tenant_id=None):
        counter["n"] += 1
        employee = Employee(
            tenant_id=tenant_id or tenant.id,
            user_id=user.id if user else None,
            branch_id=branch.id if branch else None,
            employee_number=f"EMP{counter['n']:03d}",
            first_name=user.first_name if user else "Anon",
            last_name=user.last_name if user else f"Employee{counter['n']}",
            position=position,
            hire_date=hire_date,
        )
        db_session.add(employee)
        db_session.commit()
        return employee
    return _make_employee


@pytest.fixture(scope="function")
def employee(make_employee, branch, staff_user):
    """Branch staff member linked to a login."""
    return make_employee(branch=branch, user=staff_user)


@pytest.fixture(scope="function")
def make_leave_type(db_session, tenant):
    def _make_leave_type(code="AL", name="Annual Leave", tenant_id=None):
        leave_type = LeaveType(tenant_id=tenant_id or tenant.id, code=code, name=name)
        db_session.add(leave_type)
        db_session.commit()
        return leave_type
    return _make_leave_type


@pytest.fixture(scope="function")
def make_policy(db_session, tenant):
    def _make_policy(leave_type, **overrides):
        values = dict(
            tenant_id=leave_type.tenant_id,
            leave_type_id=leave_type.id,
            name=f"{leave_type.name} Policy",
            max_days_per_year=21,
            accrual_rate=0,
            max_carry_forward=0,
            probation_period_days=0,
            min_days_notice=0,
            max_days_per_request=None,
            allow_negative_balance=False,
            effective_date=date(2000, 1, 1),
        )
        values.update(overrides)
        policy = LeavePolicy(**values)
        db_session.add(policy)
        db_session.commit()
        return policy
    return _make_policy


@pytest.fixture(scope="function")
def annual_leave(make_leave_type):
    return make_leave_type("AL", "Annual Leave")


@pytest.fixture(scope="function")
def annual_policy(make_policy, annual_leave):
    return make_policy(annual_leave)


@pytest.fixture(scope="function")
def make_request(db_session):
    def _make_request(employee, leave_type, start_date, end_date, total_days, status=LeaveStatus.PENDING):
        leave_request = LeaveRequest(
            tenant_id=employee.tenant_id,
            employee_id=employee.id,
            leave_type_id=leave_type.id,
            branch_id=employee.branch_id,
            start_date=start_date,
            end_date=end_date,
            total_days=total_days,
            status=status.value,
        )
        db_session.add(leave_request)
        db_session.commit()
        return leave_request
    return _make_request


@pytest.fixture(scope="function")
def get_token():
    """Helper fixture to create access tokens carrying the tenant context."""
    def _get_token(user):
        return auth_service.create_access_token(data={
            "sub": str(user.id),
            "email": user.email,
            "role": user.role,
            "tenant_id": user.tenant_id,
            "is_demo": user.is_demo,
        })
    return _get_token


@pytest.fixture(scope="function")
def app(database):
    return create_app(database)


@pytest.fixture(scope="function")
def client(app, db_session):
    """TestClient that uses the test database session via dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
