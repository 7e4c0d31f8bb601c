"""Tests for ServiceResult and ServiceError."""

import json

import pytest

from merchctl.services._helpers import error_result
from merchctl.services.result import ServiceError, ServiceResult


class TestServiceResult:
    def test_success_construction(self) -> None:
        result = ServiceResult(ok=True, op="place", data={"outcome": "placed"})
        assert result.ok is True
        assert result.op == "place"
        assert result.data == {"outcome": "placed"}
        assert result.warnings == []
        assert result.error is None
        assert result.meta is None

    def test_conflict_is_not_an_error(self) -> None:
        result = ServiceResult(
            ok=True,
            op="place",
            data={"outcome": "conflict"},
            warnings=['Order 2 is already used by "Summer"'],
        )
        assert result.ok is True
        assert result.error is None
        assert len(result.warnings) == 1

    def test_json_serialization(self) -> None:
        result = ServiceResult(
            ok=True,
            op="list",
            data={"scopes": []},
            meta={"duration_ms": 42},
        )
        parsed = json.loads(result.model_dump_json())
        assert parsed["ok"] is True
        assert parsed["op"] == "list"
        assert parsed["data"]["scopes"] == []
        assert parsed["meta"]["duration_ms"] == 42

    def test_frozen(self) -> None:
        result = ServiceResult(ok=True, op="test")
        with pytest.raises(Exception):
            result.ok = False  # type: ignore[misc]


class TestServiceError:
    def test_with_detail(self) -> None:
        error = ServiceError(
            code="IO_ERROR",
            message="Persistence failed during relocate",
            detail={"step": "relocate", "completed_steps": ["place", "relist"]},
        )
        assert error.detail["step"] == "relocate"

    def test_default_detail(self) -> None:
        error = ServiceError(code="NOT_FOUND", message="bad")
        assert error.detail == {}


class TestErrorResult:
    def test_builds_failed_result(self) -> None:
        result = error_result("place", "OUT_OF_BOUNDS", "full", max_slots=3)
        assert result.ok is False
        assert result.op == "place"
        assert result.error is not None
        assert result.error.code == "OUT_OF_BOUNDS"
        assert result.error.detail == {"max_slots": 3}
