"""Tests for FailureDescription and ErrorCode."""

from enum import Enum

import pytest

from railway import ErrorCode, FailureDescription


class _Kind(Enum):
    STALE = "STALE"


class TestErrorCode:
    def test_all_9_error_codes_exist(self):
        assert len(list(ErrorCode)) == 9

    def test_client_error_codes(self):
        client_codes = {
            ErrorCode.VALIDATION_ERROR,
            ErrorCode.NOT_FOUND,
            ErrorCode.CONFLICT_ERROR,
            ErrorCode.BUSINESS_RULE_ERROR,
        }
        assert len(client_codes) == 4

    def test_error_code_values_are_strings(self):
        for code in ErrorCode:
            assert code.value == code.name


class TestFailureDescription:
    def test_creation_with_code_and_message(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "Hostname is required")
        assert desc.code == ErrorCode.VALIDATION_ERROR
        assert desc.message == "Hostname is required"
        assert desc.exception is None
        assert desc.kind is None
        assert desc.details == {}

    def test_creation_with_exception(self):
        ex = ValueError("bad")
        desc = FailureDescription(ErrorCode.EXTERNAL_SERVICE_ERROR, "update failed", ex)
        assert desc.exception is ex

    def test_create_collects_details(self):
        desc = FailureDescription.create(
            ErrorCode.NOT_FOUND, "missing", kind=_Kind.STALE, resource="Distribution", identifier="D1"
        )
        assert desc.code == ErrorCode.NOT_FOUND
        assert desc.details == {"resource": "Distribution", "identifier": "D1"}
        assert desc.is_kind(_Kind.STALE)

    def test_details_are_read_only(self):
        desc = FailureDescription.create(ErrorCode.NOT_FOUND, "missing", identifier="D1")
        with pytest.raises(TypeError):
            desc.details["identifier"] = "D2"  # type: ignore[index]

    def test_with_details_extends_and_overrides(self):
        original = FailureDescription.create(ErrorCode.CONFLICT_ERROR, "x", distribution_id="D1", hostname="a")

        enriched = original.with_details(hostname="shop.example.com", step="unregister")

        assert enriched.details == {
            "distribution_id": "D1",
            "hostname": "shop.example.com",
            "step": "unregister",
        }
        assert original.details["hostname"] == "a"
        assert enriched.code == original.code

    def test_is_kind_false_without_kind(self):
        assert not FailureDescription(ErrorCode.CONFLICT_ERROR, "x").is_kind(_Kind.STALE)

    def test_immutability(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "test")
        with pytest.raises(AttributeError):
            desc.message = "changed"  # type: ignore

    def test_timestamp_is_utc(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "test")
        assert desc.timestamp.tzinfo is not None

    def test_full_stack_trace_without_exception(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "just a message")
        assert desc.full_stack_trace() == "just a message"

    def test_full_stack_trace_with_exception(self):
        try:
            raise ValueError("boom")
        except ValueError as e:
            desc = FailureDescription(ErrorCode.TECHNICAL_ERROR, "parse failed", e)
            trace = desc.full_stack_trace()
            assert "parse failed" in trace
            assert "ValueError" in trace
            assert "boom" in trace

    def test_equality_ignores_timestamp_and_details(self):
        a = FailureDescription.create(ErrorCode.NOT_FOUND, "x", identifier="D1")
        b = FailureDescription.create(ErrorCode.NOT_FOUND, "x", identifier="D2")
        assert a == b
