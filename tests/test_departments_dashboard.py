from datetime import date, timedelta

from conftest import auth_header
from elms.enums import DEFAULT_LEAVE_BALANCE, Department
from elms.models.leave_model import LeaveRequest


def add_leave(db, user, status="pending", days=2, offset=5):
    start = date.today() + timedelta(days=offset)
    leave = LeaveRequest(
        user_id=user.id,
        department=user.department,
        leave_type="cl",
        start_date=start,
        end_date=start + timedelta(days=days - 1),
        days=days,
        reason="Personal work",
        status=status,
    )
    db.add(leave)
    db.commit()
    return leave


def test_departments_are_listed_with_counts(client, admin, hod_ece, employee):
    res = client.get("/api/departments/", headers=auth_header(employee))

    assert res.status_code == 200
    departments = {d["code"]: d for d in res.json()["data"]["departments"]}
    assert len(departments) == len(Department)
    assert departments["CSE"]["employeeCount"] == 2
    assert departments["ECE"]["employeeCount"] == 1
    assert departments["AIDS & ML"]["name"] == Department.AIDS_ML.value


def test_department_employees_respects_department_scope(client, admin, hod_cse, hod_ece, employee):
    own = client.get("/api/departments/cse/employees", headers=auth_header(hod_cse))
    other = client.get("/api/departments/ECE/employees", headers=auth_header(hod_cse))
    by_admin = client.get("/api/departments/ECE/employees", headers=auth_header(admin))
    by_employee = client.get("/api/departments/CSE/employees", headers=auth_header(employee))

    assert own.status_code == 200
    assert {u["email"] for u in own.json()["data"]["users"]} == {"admin@mic.edu", "hod.cse@mic.edu", "amit.singh@mic.edu"}
    assert other.status_code == 403
    assert by_admin.json()["data"]["count"] == 1
    assert by_employee.status_code == 403


def test_unknown_department_is_404(client, admin):
    res = client.get("/api/departments/ASTRO/stats", headers=auth_header(admin))

    assert res.status_code == 404


def test_department_stats(client, db, hod_cse, employee):
    add_leave(db, employee, status="approved")
    add_leave(db, employee, status="pending", offset=20)

    res = client.get("/api/departments/CSE/stats", headers=auth_header(hod_cse))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["department"] == Department.CSE.value
    assert data["totalEmployees"] == 2
    assert data["byRole"] == {"admin": 0, "hod": 1, "employee": 1}
    assert data["leaves"]["approved"] == 1
    assert data["leaves"]["pending"] == 1


def test_admin_dashboard(client, db, admin, hod_ece, employee, make_user):
    make_user(email="inactive@mic.edu", is_active=False)
    add_leave(db, employee)

    res = client.get("/api/dashboard/admin", headers=auth_header(admin))
    denied = client.get("/api/dashboard/admin", headers=auth_header(hod_ece))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["totalEmployees"] == 3
    assert data["inactiveEmployees"] == 1
    assert data["leaves"]["pending"] == 1
    assert len(data["recentLeaves"]) == 1
    assert denied.status_code == 403


def test_hod_dashboard_shows_pending_approvals_for_own_department(client, db, hod_cse, employee, make_user):
    ece_staff = make_user(email="ece.staff@mic.edu", department=Department.ECE)
    add_leave(db, employee)
    add_leave(db, ece_staff)

    res = client.get("/api/dashboard/hod", headers=auth_header(hod_cse))

    assert res.status_code == 200
    pending = res.json()["data"]["pendingApprovals"]
    assert [l["userId"] for l in pending] == [employee.id]


def test_hod_dashboard_is_for_hods(client, admin, employee):
    assert client.get("/api/dashboard/hod", headers=auth_header(employee)).status_code == 403


def test_employee_dashboard(client, db, employee):
    add_leave(db, employee, status="approved", days=3)
    add_leave(db, employee, status="rejected", offset=30)

    res = client.get("/api/dashboard/employee", headers=auth_header(employee))

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["leaveBalance"] == DEFAULT_LEAVE_BALANCE
    assert data["daysTaken"] == 3
    assert data["leaves"]["rejected"] == 1
    assert len(data["recentLeaves"]) == 2
