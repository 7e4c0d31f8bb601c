"""Shared service-layer helper functions."""

from __future__ import annotations

from typing import Any

from merchctl.services.result import ServiceError, ServiceResult


def error_result(op: str, code: str, message: str, **detail: Any) -> ServiceResult:
    """Build a failed ServiceResult with a structured error."""
    return ServiceResult(
        ok=False,
        op=op,
        error=ServiceError(code=code, message=message, detail=detail),
    )
