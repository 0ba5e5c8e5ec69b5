"""Pydantic schemas for API request/response validation."""

from catalog_sync.schemas.reports import (
    ErrorDetail,
    ErrorResponse,
    JobReportOut,
    MappingCacheStats,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "JobReportOut",
    "MappingCacheStats",
]
