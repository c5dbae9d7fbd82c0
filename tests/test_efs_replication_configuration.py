"""Tests for the aws_efs_replication_configuration resource."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from stratus.errors import ResourceError
from stratus.services.efs.replication_configuration import (
    Destination,
    ReplicationConfiguration,
    expand_destination,
    find_replication_configurations,
    flatten_destination,
)
from stratus.specop import Absent, Ensure

CREATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
SOURCE_ARN = "arn:aws:elasticfilesystem:us-east-1:123456789012:file-system/fs-0123456789abcdef0"


def _replication(status: str, region: str = "us-west-2") -> dict:
    return {
        "SourceFileSystemId": "fs-0123456789abcdef0",
        "SourceFileSystemRegion": "us-east-1",
        "SourceFileSystemArn": SOURCE_ARN,
        "OriginalSourceFileSystemArn": SOURCE_ARN,
        "CreationTime": CREATED,
        "Destinations": [{"Status": status, "FileSystemId": "fs-0fedcba9876543210", "Region": region}],
    }


def _describe(stubber, status: str, region: str = "us-west-2") -> None:
    stubber.add_response(
        "describe_replication_configurations",
        {"Replications": [_replication(status, region)]},
        {"FileSystemId": "fs-0123456789abcdef0"},
    )


def _describe_not_found(stubber) -> None:
    stubber.add_client_error(
        "describe_replication_configurations",
        service_error_code="ReplicationNotFound",
        expected_params={"FileSystemId": "fs-0123456789abcdef0"},
    )


def _delete(stubber) -> None:
    stubber.add_response(
        "delete_replication_configuration",
        {},
        {"SourceFileSystemId": "fs-0123456789abcdef0"},
    )


def _create(stubber, region: str) -> None:
    stubber.add_response(
        "create_replication_configuration",
        _replication("ENABLING", region),
        {"SourceFileSystemId": "fs-0123456789abcdef0", "Destinations": [{"Region": region}]},
    )


def _resource(region: str = "us-west-2") -> ReplicationConfiguration:
    return ReplicationConfiguration(
        source_file_system_id="fs-0123456789abcdef0",
        destination=[{"region": region}],
    )


class TestSchema:
    def test_destination_requires_location(self):
        with pytest.raises(ValidationError, match="availability_zone_name or region"):
            Destination(file_system_id="fs-1")

    def test_destination_region_validated(self):
        with pytest.raises(ValidationError, match="not a valid region name"):
            Destination(region="west")

    def test_desired_state(self):
        resource = _resource()
        assert resource.desired() == {
            "source_file_system_id": "fs-0123456789abcdef0",
            "destination": {"region": "us-west-2"},
        }

    def test_default_timeouts(self):
        assert _resource().timeout("create") == 1200
        assert _resource().timeout("delete") == 1200

    def test_expand_destination(self):
        destination = Destination(availability_zone_name="us-west-2a", kms_key_id="key-1", file_system_id="fs-2")
        assert expand_destination(destination) == {
            "AvailabilityZoneName": "us-west-2a",
            "KmsKeyId": "key-1",
            "FileSystemId": "fs-2",
        }

    def test_flatten_destination(self):
        assert flatten_destination({"Status": "ENABLED", "FileSystemId": "fs-2", "Region": "us-west-2"}) == {
            "file_system_id": "fs-2",
            "region": "us-west-2",
            "status": "ENABLED",
        }


class TestCreate:
    def test_ensure_creates_and_waits(self, ctx, stub):
        efs = stub("efs")
        _describe_not_found(efs)
        _create(efs, "us-west-2")
        _describe(efs, "ENABLING")
        _describe(efs, "ENABLED")
        _describe(efs, "ENABLED")

        Ensure(_resource(), "replica")(ctx)

        state = ctx.outputs["aws_efs_replication_configuration"]["replica"]
        assert state["id"] == "fs-0123456789abcdef0"
        assert state["creation_time"] == CREATED.isoformat()
        assert state["source_file_system_region"] == "us-east-1"
        assert state["destination"] == {
            "file_system_id": "fs-0fedcba9876543210",
            "region": "us-west-2",
            "status": "ENABLED",
            "availability_zone_name": None,
            "kms_key_id": None,
        }

    def test_ensure_noop_when_enabled(self, ctx, stub):
        efs = stub("efs")
        _describe(efs, "ENABLED")

        Ensure(_resource())(ctx)

    def test_create_failure_wrapped(self, ctx, stub):
        efs = stub("efs")
        _describe_not_found(efs)
        efs.add_client_error(
            "create_replication_configuration",
            service_error_code="ValidationException",
            service_message="bad destination",
        )

        with pytest.raises(ResourceError, match=r"creating EFS Replication Configuration \(fs-0123456789abcdef0\)"):
            Ensure(_resource())(ctx)

    def test_unexpected_status_while_waiting(self, ctx, stub):
        efs = stub("efs")
        _describe_not_found(efs)
        _create(efs, "us-west-2")
        _describe(efs, "ERROR")

        with pytest.raises(ResourceError, match="waiting for EFS Replication Configuration"):
            Ensure(_resource())(ctx)

    def test_empty_destinations_is_not_found(self, ctx, stub):
        efs = stub("efs")
        replication = {**_replication("ENABLED"), "Destinations": []}
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [replication]},
            {"FileSystemId": "fs-0123456789abcdef0"},
        )

        assert _resource().read(ctx) is None


class TestRead:
    def test_describe_follows_pages(self, ctx, stub):
        efs = stub("efs")
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [], "NextToken": "page-2"},
            {"FileSystemId": "fs-0123456789abcdef0"},
        )
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [_replication("ENABLED")]},
            {"FileSystemId": "fs-0123456789abcdef0", "NextToken": "page-2"},
        )

        state = _resource().read(ctx)
        assert state["id"] == "fs-0123456789abcdef0"
        assert state["destination"]["status"] == "ENABLED"

    def test_collects_every_page(self, ctx, stub):
        efs = stub("efs")
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [_replication("ENABLED")], "NextToken": "page-2"},
            {"FileSystemId": "fs-0123456789abcdef0"},
        )
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [_replication("ENABLING", "eu-west-1")]},
            {"FileSystemId": "fs-0123456789abcdef0", "NextToken": "page-2"},
        )

        found = find_replication_configurations(ctx.conn("efs"), FileSystemId="fs-0123456789abcdef0")
        assert [r["Destinations"][0]["Region"] for r in found] == ["us-west-2", "eu-west-1"]

    def test_not_found_on_later_page(self, ctx, stub):
        efs = stub("efs")
        efs.add_response(
            "describe_replication_configurations",
            {"Replications": [], "NextToken": "page-2"},
            {"FileSystemId": "fs-0123456789abcdef0"},
        )
        efs.add_client_error(
            "describe_replication_configurations",
            service_error_code="FileSystemNotFound",
            expected_params={"FileSystemId": "fs-0123456789abcdef0", "NextToken": "page-2"},
        )

        assert _resource().read(ctx) is None

    def test_access_denied_wrapped(self, ctx, stub):
        efs = stub("efs")
        efs.add_client_error(
            "describe_replication_configurations",
            service_error_code="AccessDeniedException",
            service_message="not authorized",
            expected_params={"FileSystemId": "fs-0123456789abcdef0"},
        )

        with pytest.raises(ResourceError, match=r"reading EFS Replication Configuration \(fs-0123456789abcdef0\)"):
            Ensure(_resource())(ctx)


class TestDelete:
    def test_absent_deletes_destination_then_source(self, ctx, stub):
        source = stub("efs")
        destination = stub("efs", "us-west-2")

        _describe(source, "ENABLED")
        _delete(destination)
        _describe_not_found(destination)
        _describe_not_found(destination)
        _delete(source)
        _describe_not_found(source)
        _describe_not_found(source)

        Absent(_resource())(ctx)

    def test_delete_tolerates_missing(self, ctx, stub):
        source = stub("efs")
        destination = stub("efs", "us-west-2")

        _describe(source, "ENABLED")
        destination.add_client_error(
            "delete_replication_configuration",
            service_error_code="ReplicationNotFound",
            expected_params={"SourceFileSystemId": "fs-0123456789abcdef0"},
        )
        source.add_client_error(
            "delete_replication_configuration",
            service_error_code="FileSystemNotFound",
            expected_params={"SourceFileSystemId": "fs-0123456789abcdef0"},
        )

        Absent(_resource())(ctx)

    def test_replace_deletes_in_previous_region(self, ctx, stub):
        source = stub("efs")
        previous = stub("efs", "us-west-2")

        _describe(source, "ENABLED", region="us-west-2")
        _delete(previous)
        _describe_not_found(previous)
        _describe_not_found(previous)
        _delete(source)
        _describe_not_found(source)
        _describe_not_found(source)
        _create(source, "eu-west-1")
        _describe(source, "ENABLED", region="eu-west-1")
        _describe(source, "ENABLED", region="eu-west-1")

        Ensure(_resource("eu-west-1"), "replica")(ctx)

        assert ctx.outputs["aws_efs_replication_configuration"]["replica"]["destination"]["region"] == "eu-west-1"
