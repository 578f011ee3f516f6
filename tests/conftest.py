import os
import tempfile
from datetime import date

import pytest

# The app reads its settings at import time; point it at a throwaway SQLite
# file and give it a signing key before anything from ``elms`` is imported.
_DB_DIR = tempfile.mkdtemp(prefix="elms-tests-")
os.environ.setdefault("DATABASE_URL", "sqlite:///" + os.path.join(_DB_DIR, "elms-test.db"))
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("APP_ENV", "testing")

from fastapi.testclient import TestClient  # noqa: E402

from elms.database import Base, SessionLocal, engine, load_models  # noqa: E402
from elms.enums import Department, Role, default_leave_balance  # noqa: E402
from elms.security import hash_password, token_for_user  # noqa: E402

load_models()
from elms.models.user_model import User  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="session")
def client():
    from elms.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(email=None, password="secret123", role=Role.EMPLOYEE, department=Department.CSE,
                   is_active=True, employee_id=None, name=None):
        counter["n"] += 1
        n = counter["n"]
        pwd_hash, salt = hash_password(password)
        user = User(
            employee_id=employee_id or f"TST2025{n:04d}",
            name=name or f"Test User {n}",
            email=email or f"user{n}@mic.edu",
            password_hash=pwd_hash,
            password_salt=salt,
            role=role.value,
            department=department.value,
            designation="Assistant Professor",
            qualification="M.Tech",
            mobile_no="98765432%02d" % n,
            date_of_birth=date(1990, 1, 15),
            date_of_joining=date(2022, 6, 1),
            is_active=is_active,
            leave_balance=default_leave_balance(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def auth_header(user):
    return {"Authorization": f"Bearer {token_for_user(user)}"}


@pytest.fixture
def admin(make_user):
    return make_user(email="admin@mic.edu", password="admin123", role=Role.ADMIN)


@pytest.fixture
def hod_cse(make_user):
    return make_user(email="hod.cse@mic.edu", password="hod123", role=Role.HOD, department=Department.CSE)


@pytest.fixture
def hod_ece(make_user):
    return make_user(email="hod.ece@mic.edu", password="hod123", role=Role.HOD, department=Department.ECE)


@pytest.fixture
def employee(make_user):
    return make_user(email="amit.singh@mic.edu", password="employee123", role=Role.EMPLOYEE, department=Department.CSE)
