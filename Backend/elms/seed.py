"""Replace all users with a demo set. Run with ``python -m elms.seed``."""
from datetime import date, datetime
import logging

from elms.database import SessionLocal, init_db
from elms.enums import Department, Role, default_leave_balance
from elms.models.leave_model import LeaveRequest
from elms.models.user_model import User
from elms.security import hash_password

logger = logging.getLogger(__name__)

SEED_USERS = [
    ("Dr. Rajesh Kumar", "admin@mic.edu", "admin123", Role.ADMIN, Department.CSE,
     "System Administrator", "Ph.D. in Computer Science, M.Tech CSE", "9876543210", date(1985, 1, 15), date(2020, 1, 1)),
    ("Dr. Priya Sharma", "hod.cse@mic.edu", "hod123", Role.HOD, Department.CSE,
     "Head of Department", "Ph.D. in Computer Science & Engineering, M.Tech CSE", "9876543211", date(1980, 3, 20), date(2018, 6, 1)),
    ("Dr. Suresh Reddy", "hod.ece@mic.edu", "hod123", Role.HOD, Department.ECE,
     "Head of Department", "Ph.D. in Electronics & Communication Engineering, M.Tech ECE", "9876543213", date(1978, 5, 12), date(2017, 8, 1)),
    ("Prof. Amit Singh", "amit.singh@mic.edu", "employee123", Role.EMPLOYEE, Department.CSE,
     "Assistant Professor", "M.Tech in Computer Science & Engineering, B.Tech CSE", "9876543212", date(1990, 7, 10), date(2021, 3, 15)),
    ("Dr. Sneha Patel", "sneha.patel@mic.edu", "employee123", Role.EMPLOYEE, Department.AIDS_ML,
     "Associate Professor", "Ph.D. in Artificial Intelligence, M.Tech AI & ML, B.Tech CSE", "9876543214", date(1992, 11, 25), date(2022, 1, 10)),
    ("Prof. Vikram Joshi", "vikram.joshi@mic.edu", "employee123", Role.EMPLOYEE, Department.ECE,
     "Assistant Professor", "M.Tech in Electronics & Communication Engineering, B.E. ECE", "9876543215", date(1988, 5, 12), date(2019, 8, 20)),
    ("Dr. Arun Gupta", "arun.gupta@mic.edu", "employee123", Role.EMPLOYEE, Department.MECH,
     "Associate Professor", "Ph.D. in Mechanical Engineering, M.Tech Mechanical, B.E. Mech", "9876543216", date(1985, 4, 18), date(2018, 12, 1)),
    ("Prof. Kavita Sharma", "kavita.sharma@mic.edu", "employee123", Role.EMPLOYEE, Department.IT_MCA,
     "Assistant Professor", "M.Tech in Information Technology, MCA, B.Tech IT", "9876543217", date(1991, 8, 22), date(2020, 7, 15)),
    ("Dr. Meera Nair", "meera.nair@mic.edu", "employee123", Role.EMPLOYEE, Department.BED,
     "Assistant Professor", "M.Ed., B.Ed., M.A. Education", "9876543218", date(1987, 12, 3), date(2020, 9, 10)),
]


def seed_users(db) -> int:
    db.query(LeaveRequest).delete(synchronize_session=False)
    db.query(User).delete(synchronize_session=False)
    logger.info("Cleared existing users")

    year = datetime.utcnow().year
    for index, (name, email, password, role, department, designation, qualification,
                mobile_no, dob, doj) in enumerate(SEED_USERS, start=1):
        pwd_hash, salt = hash_password(password)
        db.add(User(
            employee_id=f"MIC{year}{index:04d}",
            name=name,
            email=email,
            password_hash=pwd_hash,
            password_salt=salt,
            role=role.value,
            department=department.value,
            designation=designation,
            qualification=qualification,
            mobile_no=mobile_no,
            date_of_birth=dob,
            date_of_joining=doj,
            leave_balance=default_leave_balance(),
        ))
    db.commit()
    return len(SEED_USERS)


def main():
    init_db()
    db = SessionLocal()
    try:
        created = seed_users(db)
    finally:
        db.close()
    logger.info("Created %d users", created)
    for name, email, _password, role, *_ in SEED_USERS:
        logger.info("%s (%s): %s", name, role.value, email)


if __name__ == "__main__":
    main()
