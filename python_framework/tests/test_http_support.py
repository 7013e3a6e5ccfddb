"""Tests for HTTP integration — status mapping and response builders."""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

import pytest

from railway import ErrorCode, FailureDescription, Result
from railway.http_support import (
    ErrorResponse,
    HttpStatusMapper,
    build_fastapi_response,
    build_response,
    to_jsonable,
)


class _Kind(Enum):
    ALIAS_ALREADY_EXISTS = "ALIAS_ALREADY_EXISTS"


class _Status(Enum):
    DEPLOYED = "Deployed"


@dataclass(frozen=True)
class _Binding:
    hostname: str
    distribution_id: str
    status: _Status
    bound_at: datetime


class TestHttpStatusMapper:
    @pytest.mark.parametrize(
        "code,expected_status",
        [
            (ErrorCode.VALIDATION_ERROR, 400),
            (ErrorCode.NOT_FOUND, 404),
            (ErrorCode.CONFLICT_ERROR, 409),
            (ErrorCode.BUSINESS_RULE_ERROR, 422),
            (ErrorCode.TECHNICAL_ERROR, 500),
            (ErrorCode.CONFIGURATION_ERROR, 500),
            (ErrorCode.EXTERNAL_SERVICE_ERROR, 502),
            (ErrorCode.TIMEOUT_ERROR, 504),
            (ErrorCode.UNKNOWN_ERROR, 500),
        ],
    )
    def test_error_code_to_http_status(self, code, expected_status):
        assert HttpStatusMapper.map_error_code(code) == expected_status

    def test_map_failure_description(self):
        failure = FailureDescription(ErrorCode.NOT_FOUND, "missing")
        assert HttpStatusMapper.map_failure(failure) == 404


class TestToJsonable:
    def test_dataclass_with_enum_and_datetime(self):
        binding = _Binding("shop.example.com", "D1", _Status.DEPLOYED, datetime(2026, 1, 2, tzinfo=UTC))

        assert to_jsonable(binding) == {
            "hostname": "shop.example.com",
            "distribution_id": "D1",
            "status": "Deployed",
            "bound_at": "2026-01-02T00:00:00+00:00",
        }

    def test_tuples_become_lists(self):
        assert to_jsonable({"aliases": ("a", "b")}) == {"aliases": ["a", "b"]}

    def test_unknown_objects_become_strings(self):
        assert to_jsonable(Decimal("1.5")) == "1.5"


class TestErrorResponse:
    def test_from_failure(self):
        failure = FailureDescription(ErrorCode.VALIDATION_ERROR, "bad input")
        response = ErrorResponse.from_failure(failure)
        assert response.error_code == "VALIDATION_ERROR"
        assert response.message == "bad input"
        assert response.kind is None
        assert response.details == {}
        assert response.timestamp is not None

    def test_from_failure_with_kind_and_details(self):
        failure = FailureDescription.create(
            ErrorCode.CONFLICT_ERROR,
            "shop.example.com is already bound",
            kind=_Kind.ALIAS_ALREADY_EXISTS,
            hostname="shop.example.com",
            steps=("unregistered_from_source",),
        )

        d = ErrorResponse.from_failure(failure).to_dict()

        assert d["kind"] == "ALIAS_ALREADY_EXISTS"
        assert d["details"] == {"hostname": "shop.example.com", "steps": ["unregistered_from_source"]}


class TestBuildResponse:
    def test_success_response(self):
        body, status = build_response(Result.success({"id": "D1"}))
        assert status == 200
        assert body == {"id": "D1"}

    def test_success_with_custom_status_and_serializer(self):
        body, status = build_response(
            Result.success("arn:1"), success_status=201, serialize=lambda arn: {"arn": arn}
        )
        assert status == 201
        assert body == {"arn": "arn:1"}

    def test_failure_response(self):
        result = Result.failure(ErrorCode.NOT_FOUND, "Distribution not found")
        body, status = build_response(result)
        assert status == 404
        assert body["error_code"] == "NOT_FOUND"
        assert body["message"] == "Distribution not found"

    def test_business_rule_response(self):
        result = Result.failure(ErrorCode.BUSINESS_RULE_ERROR, "No capacity")
        _, status = build_response(result)
        assert status == 422


class TestBuildFastapiResponse:
    def test_json_response(self):
        response = build_fastapi_response(Result.success({"id": "D1"}), success_status=201)

        assert response.status_code == 201
        assert json.loads(response.body) == {"id": "D1"}

    def test_failure_json_response(self):
        response = build_fastapi_response(Result.failure(ErrorCode.TIMEOUT_ERROR, "slow"))

        assert response.status_code == 504
        assert json.loads(response.body)["error_code"] == "TIMEOUT_ERROR"
