# excel_import.py
"""
Bulk employee import from an .xlsx workbook.

Layout of the sheet (first worksheet):
    row 1   headers
    row 2   required/optional marker row
    row 3+  one employee per row, ten positional columns

Rows are validated independently. Valid rows are created concurrently on a
bounded thread pool; each worker owns its session and the store's unique
constraints decide races between rows. Row errors are collected, never raised.
"""
import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from io import BytesIO
from typing import Any, Callable, Dict, List, Optional

import openpyxl
from openpyxl.cell.rich_text import CellRichText
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from elms.config import DEFAULT_IMPORT_PASSWORD_SUFFIX, IMPORT_MAX_WORKERS, is_development
from elms.enums import Department, Role, default_leave_balance
from elms.exceptions import ValidationError
from elms.models.user_model import User, generate_employee_code
from elms.security import hash_password

logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 3
EXCEL_EPOCH_OFFSET = 25569  # serial number of 1970-01-01
EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
UNIX_EPOCH = date(1970, 1, 1)

COLUMNS = (
    "employee_id",
    "name",
    "email",
    "role",
    "department",
    "designation",
    "qualification",
    "mobile_no",
    "date_of_birth",
    "date_of_joining",
)

REQUIRED_FIELDS = (
    ("name", "Name is required"),
    ("email", "Email is required"),
    ("department", "Department is required"),
    ("role", "Role is required"),
    ("designation", "Designation is required"),
    ("qualification", "Qualification is required"),
    ("mobile_no", "Mobile number is required"),
    ("date_of_birth", "Date of birth is required"),
)

# same bounds as registration; the columns are sized to the upper limits
LENGTH_LIMITS = (
    ("employee_id", (5, 50), "Employee ID must be between 5 and 50 characters"),
    ("name", (2, 50), "Name must be between 2 and 50 characters"),
    ("designation", (2, 100), "Designation must be between 2 and 100 characters"),
    ("qualification", (2, 200), "Qualification must be between 2 and 200 characters"),
)


class InvalidDate(ValueError):
    pass


@dataclass
class ImportRow:
    row_number: int
    employee_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    role: Any = None
    department: Any = None
    designation: Optional[str] = None
    qualification: Optional[str] = None
    mobile_no: Any = None
    date_of_birth: Any = None
    date_of_joining: Any = None
    password: str = ""


@dataclass
class ImportResult:
    processed: int = 0
    successful: List[int] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    processing_time: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_success(self, row_number: int):
        with self._lock:
            self.successful.append(row_number)

    def add_error(self, row_number: int, messages: List[str]):
        with self._lock:
            self.errors.append({"row": row_number, "errors": list(messages)})

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


# ---------------------------------------------------------------------------
# Cell and field normalization
# ---------------------------------------------------------------------------

def unwrap_cell(value):
    """Plain Python value for a cell: rich text flattened, strings stripped."""
    if isinstance(value, CellRichText):
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def as_text(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def normalize_mobile(value) -> str:
    """Strip everything but digits."""
    return re.sub(r"\D", "", str(value))


def default_password(email: Optional[str]) -> str:
    if not email:
        return ""
    return email.split("@")[0] + DEFAULT_IMPORT_PASSWORD_SUFFIX


def _build_date(year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(str(exc))


def parse_sheet_date(value) -> date:
    """
    Accepts native dates, ``DD-MM-YYYY``, ``DD.MM.YY`` / ``DD.MM.YYYY`` and
    spreadsheet serial numbers. Raises InvalidDate for anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise InvalidDate("boolean is not a date")
    if isinstance(value, (int, float)):
        if value != value:  # NaN
            raise InvalidDate("NaN")
        try:
            return UNIX_EPOCH + timedelta(days=value - EXCEL_EPOCH_OFFSET)
        except OverflowError as exc:
            raise InvalidDate(str(exc))
    if isinstance(value, str):
        text = value.strip()
        match = re.fullmatch(r"(\d{1,2})-(\d{1,2})-(\d{4})", text)
        if match:
            day, month, year = (int(part) for part in match.groups())
            return _build_date(year, month, day)
        match = re.fullmatch(r"(\d{1,2})\.(\d{1,2})\.(\d{2}|\d{4})", text)
        if match:
            day, month, year_text = match.groups()
            year = 2000 + int(year_text) if len(year_text) == 2 else int(year_text)
            return _build_date(year, int(month), int(day))
    raise InvalidDate(f"unsupported date value {value!r}")


# ---------------------------------------------------------------------------
# Row extraction and validation
# ---------------------------------------------------------------------------

def extract_row(row_number: int, values) -> ImportRow:
    cells = [unwrap_cell(v) for v in list(values)[:len(COLUMNS)]]
    cells += [None] * (len(COLUMNS) - len(cells))
    row = ImportRow(row_number=row_number, **dict(zip(COLUMNS, cells)))
    row.employee_id = as_text(row.employee_id)
    row.name = as_text(row.name)
    row.email = as_text(row.email)
    if row.email:
        row.email = row.email.lower()
    row.designation = as_text(row.designation)
    row.qualification = as_text(row.qualification)
    row.password = default_password(row.email)
    return row


def validate_row(row: ImportRow) -> List[str]:
    """Validate and normalize ``row`` in place; returns the error messages."""
    errors = [message for name, message in REQUIRED_FIELDS if getattr(row, name) in (None, "")]

    for name, (low, high), message in LENGTH_LIMITS:
        value = getattr(row, name)
        if value and not low <= len(value) <= high:
            errors.append(message)

    if row.email and not EMAIL_PATTERN.fullmatch(row.email):
        errors.append("Please provide a valid email")

    if row.role is not None:
        role = Role.parse(row.role)
        if role is None:
            errors.append("Role must be 'admin', 'hod', or 'employee'")
        else:
            row.role = role

    if row.department is not None:
        department = Department.parse(row.department)
        if department is None:
            errors.append("Department is not a recognised department")
        else:
            row.department = department

    if row.mobile_no is not None:
        row.mobile_no = normalize_mobile(row.mobile_no)
        if len(row.mobile_no) != 10:
            errors.append("Mobile number must be 10 digits")

    if row.date_of_birth is not None:
        try:
            row.date_of_birth = parse_sheet_date(row.date_of_birth)
        except InvalidDate:
            logger.debug("Row %s: bad date of birth %r", row.row_number, row.date_of_birth)
            errors.append("Date of Birth is invalid")

    if row.date_of_joining is not None:
        try:
            row.date_of_joining = parse_sheet_date(row.date_of_joining)
        except InvalidDate:
            logger.debug("Row %s: bad date of joining %r", row.row_number, row.date_of_joining)
            errors.append("Date of Joining is invalid")

    return errors


# ---------------------------------------------------------------------------
# Record creation
# ---------------------------------------------------------------------------

def _conflict_message(db: Session, row: ImportRow) -> str:
    if db.query(User.id).filter(User.email == row.email).first():
        return "Email already exists"
    if row.employee_id and db.query(User.id).filter(User.employee_id == row.employee_id).first():
        return "Employee ID already exists"
    return "Employee record conflicts with an existing record"


def create_user_from_row(db: Session, row: ImportRow) -> Optional[str]:
    """Insert one validated row. Returns a conflict message, or None on success."""
    if db.query(User.id).filter(User.email == row.email).first():
        return "Email already exists"
    if row.employee_id and db.query(User.id).filter(User.employee_id == row.employee_id).first():
        return "Employee ID already exists"

    pwd_hash, salt = hash_password(row.password)
    user = User(
        employee_id=row.employee_id,
        name=row.name,
        email=row.email,
        password_hash=pwd_hash,
        password_salt=salt,
        role=row.role.value,
        department=row.department.value,
        designation=row.designation,
        qualification=row.qualification,
        mobile_no=row.mobile_no,
        date_of_birth=row.date_of_birth,
        date_of_joining=row.date_of_joining or datetime.utcnow().date(),
        is_active=True,
        leave_balance=default_leave_balance(),
    )
    try:
        db.add(user)
        db.flush()
        if not user.employee_id:
            user.employee_id = generate_employee_code(user.id)
            db.flush()
        db.commit()
    except IntegrityError:
        db.rollback()
        return _conflict_message(db, row)
    return None


def _create_row_task(session_factory: Callable[[], Session], row: ImportRow, result: ImportResult):
    db = session_factory()
    try:
        conflict = create_user_from_row(db, row)
        if conflict:
            logger.info("Row %s skipped: %s", row.row_number, conflict)
            result.add_error(row.row_number, [conflict])
        else:
            logger.info("Row %s imported (%s)", row.row_number, row.email)
            result.add_success(row.row_number)
    except Exception as exc:
        db.rollback()
        logger.exception("Error creating user at row %s", row.row_number)
        message = "Error creating user"
        if is_development():
            message = f"{message}: {exc}"
        result.add_error(row.row_number, [message])
    finally:
        db.close()


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def load_worksheet(content: bytes):
    try:
        workbook = openpyxl.load_workbook(BytesIO(content), data_only=True, rich_text=True)
    except Exception as exc:
        logger.warning("Could not parse Excel file data: %s", exc)
        raise ValidationError("Could not parse Excel file data", errors=[{"msg": "Could not parse Excel file data", "details": str(exc)}])

    if not workbook.worksheets:
        raise ValidationError("Invalid Excel file: no worksheet found")
    worksheet = workbook.worksheets[0]
    logger.info("Using worksheet %r with %s rows", worksheet.title, worksheet.max_row)
    return worksheet


def import_worksheet(worksheet, session_factory: Callable[[], Session], max_workers: int = IMPORT_MAX_WORKERS,
                     started_at: Optional[float] = None) -> ImportResult:
    started_at = time.perf_counter() if started_at is None else started_at
    result = ImportResult()

    with ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="excel-import") as pool:
        for row_number, values in enumerate(worksheet.iter_rows(min_row=FIRST_DATA_ROW, values_only=True), start=FIRST_DATA_ROW):
            if all(unwrap_cell(v) is None for v in values):
                continue
            result.processed += 1

            row = extract_row(row_number, values)
            errors = validate_row(row)
            if errors:
                result.add_error(row_number, errors)
                continue

            pool.submit(_create_row_task, session_factory, row, result)
        # leaving the block joins every submitted row

    result.errors.sort(key=lambda item: item["row"])
    result.successful.sort()
    result.processing_time = time.perf_counter() - started_at
    return result


def import_employees(content: bytes, session_factory: Callable[[], Session], max_workers: int = IMPORT_MAX_WORKERS,
                     started_at: Optional[float] = None) -> ImportResult:
    worksheet = load_worksheet(content)
    return import_worksheet(worksheet, session_factory, max_workers=max_workers, started_at=started_at)
