import base64
import binascii
import time
from io import BytesIO
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
import openpyxl
from openpyxl.styles import Font, PatternFill, Alignment

from elms.access import ADMIN_ONLY, Identity, require_roles
from elms.database import SessionLocal
from elms.excel_import import import_employees
from elms.exceptions import ValidationError
from elms.schemas.user_schema import ExcelUploadRequest
from elms.utils import error_resp, success_resp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/excel", tags=["excel"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

TEMPLATE_COLUMNS = [
    ("Employee ID", 20),
    ("Name*", 25),
    ("Email*", 30),
    ("Role*", 15),
    ("Department*", 40),
    ("Designation*", 20),
    ("Qualification*", 20),
    ("Mobile Number*", 15),
    ("Date of Birth*", 20),
    ("Date of Joining", 20),
]

TEMPLATE_MARKERS = [
    "Optional",
    "* Required",
    "* Required",
    "* admin, hod, or employee",
    "* Required",
    "* Required",
    "* Required",
    "* 10 digits",
    "* DD-MM-YYYY format",
    "DD-MM-YYYY format (optional)",
]

TEMPLATE_SAMPLE = [
    "MIC20250001",
    "John Doe",
    "john.doe@mic.edu",
    "employee",
    "Computer Science & Engineering (CSE)",
    "Assistant Professor",
    "M.Tech",
    "9876543210",
    "15-01-1990",
    "01-06-2022",
]


def build_template() -> BytesIO:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Employees"

    ws.append([header for header, _ in TEMPLATE_COLUMNS])
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_font = Font(bold=True, color="FFFFFF")
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)

    ws.append(TEMPLATE_MARKERS)
    for cell in ws[2]:
        cell.font = Font(italic=True, color="808080")

    ws.append(TEMPLATE_SAMPLE)
    # keep sample values as text so dates and numbers are not reinterpreted
    for cell in ws[3]:
        cell.number_format = "@"

    for i, (_, width) in enumerate(TEMPLATE_COLUMNS, 1):
        ws.column_dimensions[openpyxl.utils.get_column_letter(i)].width = width

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


@router.get("/template")
def download_template(identity: Identity = Depends(require_roles(ADMIN_ONLY))):
    """Employee import template: headers, marker row and one sample row"""
    return StreamingResponse(
        build_template(),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=employee-template.xlsx"},
    )


def _decode_payload(file_data: str) -> bytes:
    # data URLs from FileReader carry a "data:...;base64," prefix
    if file_data.startswith("data:") and "," in file_data:
        file_data = file_data.split(",", 1)[1]
    # encoders may wrap base64 across lines
    file_data = "".join(file_data.split())
    try:
        return base64.b64decode(file_data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("File data is not valid base64")


@router.post("/upload")
def upload_employees(body: ExcelUploadRequest, identity: Identity = Depends(require_roles(ADMIN_ONLY))):
    started_at = time.perf_counter()
    logger.info("Excel upload %r (%d chars) from %s", body.file_name, len(body.file_data), identity.email)

    content = _decode_payload(body.file_data)
    if not content:
        raise ValidationError("No file data provided")

    result = import_employees(content, SessionLocal, started_at=started_at)
    imported = len(result.successful)

    if result.has_errors:
        logger.info("Excel upload processed %d rows, %d imported, %d with errors",
                    result.processed, imported, len(result.errors))
        return error_resp(
            f"Processed {result.processed} rows with {len(result.errors)} errors",
            status_code=400,
            errors=result.errors,
            data={"processed": result.processed, "successful": imported},
        )

    logger.info("Excel upload completed successfully in %.2f seconds", result.processing_time)
    return success_resp(
        f"Successfully imported {imported} employees",
        {
            "processed": result.processed,
            "successful": imported,
            "processingTime": f"{result.processing_time:.2f} seconds",
        },
    )
