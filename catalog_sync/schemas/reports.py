"""Schemas for the admin endpoints (/v1/admin)."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    detail: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Format: { "error": { "code": str, "message": str, "detail": object } }"""

    error: ErrorDetail


class JobReportOut(BaseModel):
    """One persisted import run."""

    id: int
    job_type: str = Field(alias="jobType")
    job_status: str = Field(alias="jobStatus")
    command_line: str = Field(alias="commandLine")
    pid: int | None = None
    started_at: datetime = Field(alias="startedAt")
    finished_at: datetime | None = Field(alias="finishedAt", default=None)
    report_data: dict[str, Any] | None = Field(alias="reportData", default=None)

    model_config = {"populate_by_name": True}


class MappingCacheStats(BaseModel):
    total: int
    by_type: dict[str, int] = Field(alias="byType")
    oldest: datetime | None = None
    newest: datetime | None = None

    model_config = {"populate_by_name": True}
