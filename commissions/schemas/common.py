"""Common schema module."""

from __future__ import annotations

from pydantic import BaseModel, Field


class APIEnvelope(BaseModel):
    status: str = "ok"
    message: str | None = None


class Pagination(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1)
    total: int = Field(default=0, ge=0)
    pages: int = Field(default=0, ge=0)


class ErrorEnvelope(BaseModel):
    status: str = "error"
    error_code: str
    detail: str
