import base64
from io import BytesIO

import openpyxl

from conftest import auth_header
from elms.models.user_model import User
from test_excel_import import employee_row, workbook_bytes


def upload_payload(content, prefix=""):
    return {"fileData": prefix + base64.b64encode(content).decode(), "fileName": "employees.xlsx"}


def test_admin_downloads_template(client, admin):
    res = client.get("/api/excel/template", headers=auth_header(admin))

    assert res.status_code == 200
    assert res.headers["content-type"].startswith("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
    assert "employee-template.xlsx" in res.headers["content-disposition"]

    ws = openpyxl.load_workbook(BytesIO(res.content)).active
    headers = [cell.value for cell in ws[1]]
    assert headers[0] == "Employee ID"
    assert headers[2] == "Email*"
    assert len(headers) == 10
    assert ws["C3"].value == "john.doe@mic.edu"


def test_template_is_admin_only(client, employee, hod_cse):
    assert client.get("/api/excel/template", headers=auth_header(employee)).status_code == 403
    assert client.get("/api/excel/template", headers=auth_header(hod_cse)).status_code == 403
    assert client.get("/api/excel/template").status_code == 401


def test_downloaded_template_imports_its_sample_row(client, db, admin):
    template = client.get("/api/excel/template", headers=auth_header(admin)).content

    res = client.post("/api/excel/upload", json=upload_payload(template), headers=auth_header(admin))

    assert res.status_code == 200
    assert res.json()["data"]["successful"] == 1
    assert db.query(User).filter(User.email == "john.doe@mic.edu").count() == 1


def test_upload_creates_employees(client, db, admin):
    content = workbook_bytes([employee_row("x1@mic.edu"), employee_row("x2@mic.edu", department="ece")])

    res = client.post("/api/excel/upload", json=upload_payload(content), headers=auth_header(admin))

    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "Successfully imported 2 employees"
    assert body["data"]["processed"] == 2
    assert body["data"]["successful"] == 2
    assert body["data"]["processingTime"].endswith(" seconds")
    assert db.query(User).filter(User.email.in_(["x1@mic.edu", "x2@mic.edu"])).count() == 2


def test_upload_accepts_data_url_prefix(client, admin):
    content = workbook_bytes([employee_row("prefixed@mic.edu")])
    prefix = "data:application/vnd.openxmlformats-officedocument.spreadsheetml.sheet;base64,"

    res = client.post("/api/excel/upload", json=upload_payload(content, prefix), headers=auth_header(admin))

    assert res.status_code == 200


def test_upload_with_row_errors_reports_them_and_keeps_good_rows(client, db, admin):
    content = workbook_bytes([
        employee_row("ok@mic.edu"),
        employee_row("admin@mic.edu"),
        employee_row("bad-mobile@mic.edu", mobile="123"),
    ])

    res = client.post("/api/excel/upload", json=upload_payload(content), headers=auth_header(admin))

    assert res.status_code == 400
    body = res.json()
    assert body["success"] is False
    assert body["message"] == "Processed 3 rows with 2 errors"
    assert body["data"] == {"processed": 3, "successful": 1}
    assert body["errors"] == [
        {"row": 4, "errors": ["Email already exists"]},
        {"row": 5, "errors": ["Mobile number must be 10 digits"]},
    ]
    assert db.query(User).filter(User.email == "ok@mic.edu").count() == 1


def test_upload_rejects_bad_payloads(client, admin):
    not_base64 = client.post("/api/excel/upload", json={"fileData": "%%%not base64%%%", "fileName": "x.xlsx"},
                             headers=auth_header(admin))
    not_xlsx = client.post("/api/excel/upload", json=upload_payload(b"plain text, not a workbook"),
                           headers=auth_header(admin))
    missing = client.post("/api/excel/upload", json={"fileName": "x.xlsx"}, headers=auth_header(admin))

    assert not_base64.status_code == 400
    assert not_xlsx.status_code == 400
    assert not_xlsx.json()["message"] == "Could not parse Excel file data"
    assert missing.status_code == 400


def test_upload_is_admin_only(client, hod_cse):
    content = workbook_bytes([employee_row("sneaky@mic.edu")])

    res = client.post("/api/excel/upload", json=upload_payload(content), headers=auth_header(hod_cse))

    assert res.status_code == 403


def test_upload_accepts_line_wrapped_base64(client, admin):
    encoded = base64.encodebytes(workbook_bytes([employee_row("wrapped@mic.edu")])).decode()
    assert "\n" in encoded

    res = client.post("/api/excel/upload", json={"fileData": encoded, "fileName": "employees.xlsx"},
                      headers=auth_header(admin))

    assert res.status_code == 200
    assert res.json()["data"]["successful"] == 1


def test_malformed_base64_is_reported_as_such(client, admin):
    res = client.post("/api/excel/upload", json={"fileData": "%%%not base64%%%", "fileName": "x.xlsx"},
                      headers=auth_header(admin))

    assert res.status_code == 400
    assert res.json()["message"] == "File data is not valid base64"
