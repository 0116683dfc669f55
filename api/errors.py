from typing import Any, Iterable

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

MSG_INVALID_REQUEST = "Invalid request data"


def format_errors(errors: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Pydantic error list -> [{path, message}] with the offending field path."""
    out = []
    for err in errors:
        loc = [p for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        out.append({"path": list(loc), "message": err.get("msg", "Invalid value")})
    return out


def invalid_request(errors: list[dict[str, Any]], message: str = MSG_INVALID_REQUEST) -> HTTPException:
    return HTTPException(status_code=400, detail={"message": message, "errors": errors})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": {"message": MSG_INVALID_REQUEST, "errors": format_errors(exc.errors())}},
    )
