"""
schemas/files.py — Pydantic models for the pre-signed upload flow

Called by: routers/files.py
Depends on: pydantic
"""

from __future__ import annotations

from pydantic import Field

from .common import CamelModel


class UploadUrlRequest(CamelModel):
    file_name: str = Field(..., min_length=1, max_length=500)
    file_type: str = Field(..., min_length=1)
    file_size: int = Field(..., ge=0)


class UploadConfirm(CamelModel):
    file_id: str = Field(..., min_length=1)
    file_key: str = Field(..., min_length=1)
    # Either a request id or a task id
    request_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1, max_length=500)
    file_size: int | str
    mime_type: str = Field(..., min_length=1)
