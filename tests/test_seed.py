from elms.enums import Role
from elms.models.user_model import User
from elms.seed import SEED_USERS, seed_users
from elms.security import authenticate


def test_seed_replaces_users_with_demo_set(db, make_user):
    make_user(email="leftover@mic.edu")

    created = seed_users(db)

    assert created == len(SEED_USERS)
    users = db.query(User).all()
    assert len(users) == len(SEED_USERS)
    assert "leftover@mic.edu" not in {u.email for u in users}
    assert all(u.employee_id.startswith("MIC") for u in users)
    assert {u.role for u in users} == {r.value for r in Role}


def test_seeded_accounts_can_log_in(db):
    seed_users(db)

    assert authenticate(db, "admin@mic.edu", "admin123").role == "admin"
    assert authenticate(db, "hod.cse@mic.edu", "hod123").role == "hod"
