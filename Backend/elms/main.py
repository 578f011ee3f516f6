# main.py
from datetime import datetime
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException

from elms.config import cors_origins, is_development, require_jwt_secret
from elms.database import init_db
from elms.exceptions import AppError
from elms.routers import auth_router, users_router, leaves_router, departments_router, dashboard_router, excel_router
from elms.utils import error_resp, success_resp

logger = logging.getLogger("uvicorn.error")

# Refuse to start without a signing key
require_jwt_secret()

# Initialize database
init_db()

app = FastAPI(title="ELMS API", version="1.0.0", description="Employee Leave Management System API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(leaves_router.router)
app.include_router(departments_router.router)
app.include_router(dashboard_router.router)
app.include_router(excel_router.router)


# Exception handlers to return uniform error shape
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        message = exc.message if is_development() else "Internal server error"
        return error_resp(message, status_code=exc.status_code)
    return error_resp(exc.message, status_code=exc.status_code, errors=exc.errors, data=exc.data)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "msg": err.get("msg", "Invalid value")})
    return error_resp("Validation errors", status_code=400, errors=errors)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    # exc.detail may be dict or str
    msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == 404 and msg == "Not Found":
        msg = "Route not found"
    return error_resp(msg or "Error", status_code=exc.status_code)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    message = str(exc) if is_development() else "Internal server error"
    return error_resp(message, status_code=500)


@app.get("/api")
def api_root():
    return success_resp("Welcome to ELMS API", {
        "endpoints": [
            "/api/health",
            "/api/auth",
            "/api/users",
            "/api/leaves",
            "/api/departments",
            "/api/dashboard",
            "/api/excel",
        ]
    })


@app.get("/api/health")
def health_check():
    return {"status": "OK", "message": "ELMS API is running", "timestamp": datetime.utcnow().isoformat()}


# -------------------------
# Custom OpenAPI (Bearer)
# -------------------------
def custom_openapi():
    # Return cached schema if already generated
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=getattr(app, "description", None),
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {}).setdefault("securitySchemes", {})
    openapi_schema["components"]["securitySchemes"]["BearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }

    for path, path_item in openapi_schema.get("paths", {}).items():
        if path.startswith("/api/health") or path == "/api/auth/login":
            continue
        for method, operation in path_item.items():
            if not isinstance(operation, dict):
                continue
            security = operation.setdefault("security", [])
            if {"BearerAuth": []} not in security:
                security.append({"BearerAuth": []})

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi
