from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from typing import Any, List, Optional


def success_resp(message: str, data: Any = None, status_code: int = 200):
    """
    Standardized Success Response
    """
    content = {"success": True, "message": message}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_resp(message: str, status_code: int = 500, errors: Optional[List[Any]] = None, data: Any = None):
    """
    Standardized Error Response
    """
    content = {"success": False, "message": message}
    if data is not None:
        content["data"] = data
    if errors is not None:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))
