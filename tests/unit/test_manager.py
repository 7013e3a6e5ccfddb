"""
Unit tests for the DomainManager facade.

Verifies delegation, the distribution operations implemented directly on the
manager, and that unexpected exceptions come back as TECHNICAL_ERROR failures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from railway import ErrorCode, ResultAssertions
from railway.result import Result

from cdn_domains.allocator import AliasAllocator
from cdn_domains.domain.models import (
    Certificate,
    CertificateState,
    CertificateUpload,
    DistributionStatus,
    ManagedCertificate,
)
from cdn_domains.manager import DomainManager
from tests.conftest import FakeDistributionClient

NOW = datetime(2026, 6, 1, tzinfo=UTC)


@pytest.fixture()
def coordinator() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def authority() -> MagicMock:
    return MagicMock()


@pytest.fixture()
def manager(
    pool_client: FakeDistributionClient, coordinator: MagicMock, authority: MagicMock,
) -> DomainManager:
    return DomainManager(
        allocator=AliasAllocator(pool_client, pool=["D1", "D2", "D3"], capacity=2),
        coordinator=coordinator,
        distributions=pool_client,
        authority=authority,
        retire_min_age=timedelta(hours=1),
        retire_statuses=["ISSUED"],
        clock=lambda: NOW,
    )


class TestCustomDomains:
    def test_register_and_is_registered(self, manager: DomainManager) -> None:
        manager.register("shop.example.com")

        assert manager.is_registered("shop.example.com").value() is True
        assert manager.find_binding("shop.example.com").value().distribution_id == "D1"

    def test_unregister(self, manager: DomainManager, pool_client: FakeDistributionClient) -> None:
        manager.register("shop.example.com")

        result = manager.unregister("shop.example.com")

        assert result.value().removed is True
        assert pool_client.aliases_of("D1") == []

    def test_transfer_domain(self, manager: DomainManager, pool_client: FakeDistributionClient) -> None:
        manager.register("shop.example.com", "D1")

        result = manager.transfer_domain("shop.example.com", "D1", "D3")

        ResultAssertions.assert_success(result)
        assert pool_client.aliases_of("D3") == ["shop.example.com"]


class TestCertificates:
    def test_upload_delegates_to_coordinator(self, manager: DomainManager, coordinator: MagicMock) -> None:
        upload = CertificateUpload("BODY", "KEY")
        expected = Certificate("www.example.com", "www.example.com", CertificateState.ACTIVE)
        coordinator.upload_certificate.return_value = Result.success(expected)

        result = manager.upload_certificate(upload)

        assert result.value() is expected
        coordinator.upload_certificate.assert_called_once_with(upload)

    def test_unexpected_exception_becomes_technical_error(
        self, manager: DomainManager, coordinator: MagicMock,
    ) -> None:
        """
        GIVEN the coordinator raises instead of returning a Result
        WHEN the manager runs the operation
        THEN a TECHNICAL_ERROR failure is returned rather than an exception.
        """
        coordinator.get_certificate_status.side_effect = RuntimeError("boom")

        result = manager.get_certificate_status("arn:1")

        error = ResultAssertions.assert_failure(result, ErrorCode.TECHNICAL_ERROR)
        assert "boom" in error.message

    def test_request_managed_certificate(self, manager: DomainManager, coordinator: MagicMock) -> None:
        coordinator.request_managed_certificate.return_value = Result.success("arn:1")

        assert manager.request_managed_certificate("example.com").value() == "arn:1"

    def test_resend_and_delete_managed(self, manager: DomainManager, coordinator: MagicMock) -> None:
        coordinator.resend_validation_email.return_value = Result.success("arn:1")
        coordinator.delete_managed_certificate.return_value = Result.success("arn:1")

        manager.resend_validation_email("example.com", "arn:1")
        manager.delete_managed_certificate("arn:1")

        coordinator.resend_validation_email.assert_called_once_with("example.com", "arn:1")
        coordinator.delete_managed_certificate.assert_called_once_with("arn:1")

    def test_retire_unused_certificates_uses_clock_and_settings(
        self, manager: DomainManager, authority: MagicMock,
    ) -> None:
        authority.list_certificates.return_value = Result.success(["arn:1"])
        authority.describe_certificate.return_value = Result.success(
            ManagedCertificate("arn:1", "*.example.com", "ISSUED", created_at=NOW - timedelta(hours=2))
        )
        authority.delete_certificate.return_value = Result.success("arn:1")

        ResultAssertions.assert_success_value(manager.retire_unused_certificates(), 1)


class TestDistributions:
    def test_get_distribution_status(self, manager: DomainManager) -> None:
        assert manager.get_distribution_status("D1").value() is DistributionStatus.DEPLOYED

    def test_get_status_of_missing_distribution(self, manager: DomainManager) -> None:
        ResultAssertions.assert_failure(manager.get_distribution_status("NOPE"), ErrorCode.NOT_FOUND)

    def test_disable_distribution(self, manager: DomainManager, pool_client: FakeDistributionClient) -> None:
        """
        GIVEN an enabled distribution
        WHEN it is disabled
        THEN a conditional update sets Enabled to false.
        """
        result = manager.disable_distribution("D1")

        ResultAssertions.assert_success(result)
        assert pool_client.is_enabled("D1") is False
        assert pool_client.count("update", "D1") == 1

    def test_disable_already_disabled_is_noop(
        self, manager: DomainManager, pool_client: FakeDistributionClient,
    ) -> None:
        pool_client.add("D9", enabled=False)

        ResultAssertions.assert_success(manager.disable_distribution("D9"))
        assert pool_client.count("update", "D9") == 0

    def test_delete_distribution(self, manager: DomainManager, pool_client: FakeDistributionClient) -> None:
        assert manager.delete_distribution("D2").value() == "D2"
        assert not pool_client.exists("D2")
