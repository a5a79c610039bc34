import logging
from typing import Any, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_response(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    """Uniform error envelope: {"success": false, "error": ..., "details": ...}."""
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _invalid_fields(exc: RequestValidationError) -> List[str]:
    fields = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    return fields


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    logger.error(f"HTTP {exc.status_code}: {exc.detail} - {request.url}")
    return error_response(exc.status_code, str(exc.detail))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = _invalid_fields(exc)
    logger.warning(f"Rejected request to {request.url.path}: invalid fields {fields}")
    details = [f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()]
    return error_response(400, f"Missing or invalid fields: {', '.join(fields)}", details)
