from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standard error payload returned by the MCP endpoint for transport-level
    failures:
    {
        "error": "payload_too_large",
        "message": "Request body too large",
        "code": 413,
        "details": {...}
    }
    """

    error: str = Field(..., description="Machine-readable error type")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None, description="Optional structured error details"
    )


def error_response(
    status_code: int,
    *,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Helper to build a JSONResponse with a standardised error body.
    """
    payload = ErrorResponse(
        error=error,
        message=message,
        code=status_code,
        details=details,
    )
    return JSONResponse(
        status_code=status_code,
        content=payload.model_dump(exclude_none=True),
        headers=headers,
    )


def bad_request(message: str, *, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return error_response(
        status.HTTP_400_BAD_REQUEST, error="bad_request", message=message, details=details
    )


def not_found(message: str, *, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return error_response(
        status.HTTP_404_NOT_FOUND, error="not_found", message=message, details=details
    )


def method_not_allowed(allowed: str = "GET, POST, DELETE") -> JSONResponse:
    return error_response(
        status.HTTP_405_METHOD_NOT_ALLOWED,
        error="method_not_allowed",
        message="Method not allowed",
        headers={"Allow": allowed},
    )


def payload_too_large(limit: int) -> JSONResponse:
    return error_response(
        413,
        error="payload_too_large",
        message="Request body too large",
        details={"max_bytes": limit},
    )


def internal_error(message: str, *, details: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        error="internal_error",
        message=message,
        details=details,
    )


__all__ = [
    "ErrorResponse",
    "error_response",
    "bad_request",
    "not_found",
    "method_not_allowed",
    "payload_too_large",
    "internal_error",
]
