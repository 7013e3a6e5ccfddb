"""Unit tests for the first-fit distribution finder."""

from __future__ import annotations

from railway import ErrorCode, FailureDescription, ResultAssertions

from cdn_domains.domain.errors import FailureKind
from cdn_domains.finder import find_distribution
from tests.conftest import FakeDistributionClient


class TestFindDistribution:
    def test_returns_first_match_in_order(self) -> None:
        """
        GIVEN D1 and D2 both satisfy the predicate
        WHEN the pool is scanned
        THEN D1 is returned and D2 is never read.
        """
        client = FakeDistributionClient({"D1": [], "D2": []})

        result = find_distribution(client, ["D1", "D2"], lambda d: True)

        assert result.value().id == "D1"
        assert client.calls == [("get", "D1")]

    def test_skips_non_matching_candidates(self) -> None:
        client = FakeDistributionClient({"D1": ["a.example.com"], "D2": []})

        result = find_distribution(client, ["D1", "D2"], lambda d: d.alias_count == 0)

        assert result.value().id == "D2"
        assert client.calls == [("get", "D1"), ("get", "D2")]

    def test_skips_missing_candidates(self) -> None:
        client = FakeDistributionClient({"D2": []})

        result = find_distribution(client, ["GONE", "D2"], lambda d: True)

        assert result.value().id == "D2"

    def test_no_match_reports_number_scanned(self) -> None:
        """
        GIVEN no candidate satisfies the predicate
        WHEN the pool is scanned
        THEN NO_MATCHING_DISTRIBUTION is returned with the count of candidates read.
        """
        client = FakeDistributionClient({"D1": [], "D2": []})

        result = find_distribution(client, ["D1", "D2"], lambda d: False)

        error = ResultAssertions.assert_failure_kind(result, FailureKind.NO_MATCHING_DISTRIBUTION)
        assert error.code is ErrorCode.NOT_FOUND
        assert error.details["candidates"] == 2

    def test_empty_candidates_issue_no_calls(self) -> None:
        client = FakeDistributionClient()

        result = find_distribution(client, [], lambda d: True)

        ResultAssertions.assert_failure_kind(result, FailureKind.NO_MATCHING_DISTRIBUTION)
        assert client.calls == []

    def test_other_failures_abort_the_scan(self) -> None:
        client = FakeDistributionClient({"D1": [], "D2": []})
        client.fail_on("get", "D1", FailureDescription(ErrorCode.TIMEOUT_ERROR, "timed out"))

        result = find_distribution(client, ["D1", "D2"], lambda d: True)

        ResultAssertions.assert_failure(result, ErrorCode.TIMEOUT_ERROR)
        assert client.calls == [("get", "D1")]
