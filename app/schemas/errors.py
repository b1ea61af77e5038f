"""
schemas/errors.py — Error envelope returned by every non-2xx response

One shape for HTTP errors, request validation failures and unhandled
exceptions. request_id matches the X-Request-ID response header so a
report from the frontend can be traced to its log lines.

Used by: the exception handlers in main.py
"""

from pydantic import BaseModel


class ValidationIssue(BaseModel):
    loc: list[str | int]
    msg: str
    type: str


class ErrorResponse(BaseModel):
    error: str
    status_code: int
    request_id: str = ""
    detail: list[ValidationIssue] | None = None
