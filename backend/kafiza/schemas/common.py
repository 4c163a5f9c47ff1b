"""
Kafiza Backend — Shared Pydantic Schemas
==========================================

What:  The response envelope, pagination models and helpers shared by every
       resource kind.
How:   All public models serialize with camelCase aliases (`farmName`,
       `totalPages`) and accept either camelCase or snake_case on input.

Envelope:
    Success: {"success": true, "data": ..., "message": "...", "pagination": {...}}
    Failure: {"success": false, "error": "not_found", "message": "...", "requestId": "..."}
"""

import math
import re
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Simple shape check: something@something.tld, no whitespace
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Lower-cases an email address and rejects malformed ones."""
    if value is None:
        return value
    value = value.strip().lower()
    if not EMAIL_PATTERN.match(value):
        raise ValueError(f"Invalid email address '{value}'")
    return value


def clean_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    """Trims tag strings and drops empty ones."""
    if values is None:
        return values
    return [v.strip() for v in values if v and v.strip()]


class CamelModel(BaseModel):
    """Base for every API model: camelCase on the wire, ORM-readable."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Pagination
# ══════════════════════════════════════════════════════════════════════════


class PaginationParams(CamelModel):
    """
    Request-side pagination cursor.

    Deliberately unconstrained: the repository owns the range checks so that
    every caller, HTTP or not, gets the same ValidationError.
    """
    page: int = 1
    limit: int = 10
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None


class PaginationMeta(CamelModel):
    """Response-side pagination block."""
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class Page(BaseModel, Generic[T]):
    """One page of records plus its pagination block."""
    items: List[T]
    pagination: PaginationMeta


# ══════════════════════════════════════════════════════════════════════════
# Envelope
# ══════════════════════════════════════════════════════════════════════════


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope returned by every route."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    pagination: Optional[PaginationMeta] = None


class ErrorResponse(CamelModel):
    """
    Failure envelope returned by the global exception handlers.

    Fields:
        error: Machine-readable kind (validation_error, not_found, ...)
        message: Human-readable description safe to show to users
        details: Extra context for validation failures
        request_id: Correlation ID for tracing this error in server logs
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class DeleteResult(CamelModel):
    deleted: bool = True


class HealthResponse(CamelModel):
    """Health probe payload; `database` is connected or disconnected."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
    timestamp: datetime = Field(description="Time of the probe (UTC)")
