"""
Error taxonomy for the establishment API.

Every failure a caller can observe is one of four kinds. They subclass
HTTPException so routes and services raise them the same way they would raise
any other HTTP error; the handlers below render them in the standard
envelope::

    {"error": {"code": "NOT_FOUND", "message": "...", "status": 404}}

The CSRF middleware uses the same envelope for its 403 rejection and reports
it as UNAUTHORIZED; status, not code, separates it from a missing identity.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from logbook_shared.schemas.common import ErrorCode

log = structlog.get_logger()


class LogbookError(HTTPException):
    """Base class for errors with a machine-readable kind."""

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR
    status: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(status_code=self.status, detail=self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "status": self.status,
            }
        }


class AuthorizationError(LogbookError):
    code = ErrorCode.UNAUTHORIZED
    status = 401
    default_message = "You must be signed in to perform this action"


class NotFoundError(LogbookError):
    code = ErrorCode.NOT_FOUND
    status = 404
    default_message = "Not found"


class ValidationFailure(LogbookError):
    code = ErrorCode.VALIDATION_FAILED
    status = 422
    default_message = "Invalid input"

    def __init__(self, fields: list[dict[str, str]], message: Optional[str] = None):
        self.fields = fields
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc: ValidationError | RequestValidationError) -> "ValidationFailure":
        return cls(_field_errors(exc.errors()))

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["error"]["fields"] = self.fields
        return body


class InternalError(LogbookError):
    """Unexpected storage failure. The message never carries storage detail."""

    code = ErrorCode.INTERNAL_SERVER_ERROR
    status = 500


def _field_errors(errors) -> list[dict[str, str]]:
    fields = []
    for err in errors:
        # Drop the request section ("body", "path") FastAPI prefixes to locations
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        fields.append({"field": ".".join(loc) or "__root__", "message": err.get("msg", "Invalid value")})
    return fields


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

async def logbook_error_handler(request: Request, exc: LogbookError) -> JSONResponse:
    return JSONResponse(status_code=exc.status, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    failure = ValidationFailure.from_pydantic(exc)
    log.info("request.validation_failed", path=request.url.path, fields=failure.fields)
    return JSONResponse(status_code=failure.status, content=failure.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LogbookError, logbook_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
