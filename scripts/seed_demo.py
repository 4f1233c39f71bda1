"""
Seeds a demo tenant: users for every approver role, one branch with staff,
the standard leave types with policies, and the public holidays of the
current year. Safe to re-run; existing rows are left alone.
"""
from datetime import date

from hrms.core.config import settings
from hrms.database import Database
from hrms.models import Branch, Employee, Holiday, LeavePolicy, LeaveType, Tenant, User
from hrms.models.user import UserRole
from hrms.services import auth as auth_service
from hrms.services.approver_routing import OPERATIONS_MANAGER_POSITION
from hrms.services.leave_service import initialize_employee_leave_balances

DEFAULT_PASSWORD = "123456"

USERS = [
    ("admin@example.com", "Admin", "User", UserRole.ADMIN, False),
    ("hr.manager@example.com", "Grace", "Muthoni", UserRole.HR_MANAGER, False),
    ("hr@example.com", "Peter", "Mwangi", UserRole.HR, False),
    ("ops.manager@example.com", "Faith", "Achieng", UserRole.OPS_MANAGER, False),
    ("branch.manager@example.com", "James", "Kariuki", UserRole.EMPLOYEE, False),
    ("staff@example.com", "Mary", "Wambui", UserRole.EMPLOYEE, False),
    ("demo@example.com", "Demo", "Visitor", UserRole.EMPLOYEE, True),
]

# (name, code, color, max_days_per_year, accrual_rate, max_carry_forward,
#  probation_period_days, min_days_notice, max_days_per_request)
LEAVE_TYPES = [
    ("Annual Leave", "AL", "#4CAF50", 21, 1.75, 7, 90, 7, None),
    ("Sick Leave", "SL", "#FF9800", 14, 0, 0, 0, 0, 7),
    ("Maternity Leave", "ML", "#E91E63", 84, 0, 0, 0, 14, None),
    ("Paternity Leave", "PL", "#2196F3", 14, 0, 0, 0, 7, None),
    ("Compassionate Leave", "CL", "#9C27B0", 15, 0, 0, 0, 0, 5),
]

HOLIDAYS = [
    ("New Year's Day", 1, 1),
    ("Labour Day", 5, 1),
    ("Madaraka Day", 6, 1),
    ("Mashujaa Day", 10, 20),
    ("Jamhuri Day", 12, 12),
    ("Christmas Day", 12, 25),
]


def _ensure_user(db, tenant, email, first_name, last_name, role, is_demo):
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(
        tenant_id=tenant.id,
        email=email,
        hashed_password=auth_service.get_password_hash(DEFAULT_PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role.value,
        is_active=True,
        is_demo=is_demo,
    )
    db.add(user)
    db.flush()
    print(f"Created user {email} ({role.value})")
    return user


def _ensure_employee(db, tenant, branch, user, number, position, hire_date):
    employee = db.query(Employee).filter(
        Employee.tenant_id == tenant.id,
        Employee.employee_number == number
    ).first()
    if employee:
        return employee
    employee = Employee(
        tenant_id=tenant.id,
        user_id=user.id,
        branch_id=branch.id,
        employee_number=number,
        first_name=user.first_name,
        last_name=user.last_name,
        position=position,
        hire_date=hire_date,
    )
    db.add(employee)
    db.flush()
    print(f"Created employee {number} ({position})")
    return employee


def seed():
    database = Database(settings.database_url)
    database.connect()
    database.create_all()
    db = database.session()
    try:
        # 1. Ensure a tenant exists
        tenant = db.query(Tenant).filter(Tenant.slug == "demo").first()
        if not tenant:
            tenant = Tenant(name="Demo Hospitality Group", slug="demo")
            db.add(tenant)
            db.flush()
            print(f"Created tenant: {tenant.name}")

        # 2. Users
        users = {
            email: _ensure_user(db, tenant, email, first, last, role, is_demo)
            for email, first, last, role, is_demo in USERS
        }

        # 3. Branch managed by the branch manager
        branch = db.query(Branch).filter(Branch.tenant_id == tenant.id, Branch.name == "Westlands").first()
        if not branch:
            branch = Branch(
                tenant_id=tenant.id,
                name="Westlands",
                location="Nairobi",
                manager_user_id=users["branch.manager@example.com"].id,
            )
            db.add(branch)
            db.flush()
            print(f"Created branch: {branch.name}")

        # 4. Leave types and their policies
        year_start = date(date.today().year, 1, 1)
        for name, code, color, max_days, accrual, carry, probation, notice, per_request in LEAVE_TYPES:
            leave_type = db.query(LeaveType).filter(
                LeaveType.tenant_id == tenant.id,
                LeaveType.code == code
            ).first()
            if leave_type:
                continue
            leave_type = LeaveType(tenant_id=tenant.id, name=name, code=code, color=color)
            db.add(leave_type)
            db.flush()
            db.add(LeavePolicy(
                tenant_id=tenant.id,
                leave_type_id=leave_type.id,
                name=f"{name} Policy",
                max_days_per_year=max_days,
                accrual_rate=accrual,
                max_carry_forward=carry,
                probation_period_days=probation,
                min_days_notice=notice,
                max_days_per_request=per_request,
                effective_date=year_start,
            ))
            print(f"Created leave type {code} with policy")

        # 5. Holidays
        for name, month, day in HOLIDAYS:
            holiday_date = date(year_start.year, month, day)
            exists = db.query(Holiday).filter(
                Holiday.tenant_id == tenant.id,
                Holiday.date == holiday_date
            ).first()
            if not exists:
                db.add(Holiday(tenant_id=tenant.id, name=name, date=holiday_date, is_recurring=True))
        db.flush()

        # 6. Staff and their opening balances
        staff = [
            _ensure_employee(db, tenant, branch, users["ops.manager@example.com"], "EMP001",
                             OPERATIONS_MANAGER_POSITION, date(2021, 3, 1)),
            _ensure_employee(db, tenant, branch, users["branch.manager@example.com"], "EMP002",
                             "Branch Manager", date(2022, 6, 15)),
            _ensure_employee(db, tenant, branch, users["staff@example.com"], "EMP003",
                             "Cashier", date(2023, 1, 9)),
        ]
        for employee in staff:
            initialize_employee_leave_balances(db, employee.id, tenant.id, year_start.year)

        db.commit()
        print(f"Demo data ready. All users share the password '{DEFAULT_PASSWORD}'")
    finally:
        db.close()
        database.disconnect()


if __name__ == "__main__":
    seed()
