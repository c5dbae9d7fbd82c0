"""aws_efs_replication_configuration."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, ClassVar

from botocore.exceptions import ClientError
from pydantic import field_validator, model_validator

from ... import names
from ...context import Context
from ...errors import (
    EmptyResultError,
    NotFoundError,
    ResourceError,
    assert_single_result,
    error_code_equals,
)
from ...resource import Resource
from ...retry import StateChangeConf
from ...schema import Block, Schema, Timeouts, force_new, valid_region_name

logger = logging.getLogger(__name__)

ERR_FILE_SYSTEM_NOT_FOUND = "FileSystemNotFound"
ERR_REPLICATION_NOT_FOUND = "ReplicationNotFound"

STATUS_ENABLED = "ENABLED"
STATUS_ENABLING = "ENABLING"
STATUS_DELETING = "DELETING"


class Destination(Schema):
    availability_zone_name: str | None = None
    file_system_id: str | None = None
    kms_key_id: str | None = None
    region: str | None = None

    check_region = field_validator("region")(valid_region_name)

    @model_validator(mode="after")
    def check_location(self) -> Destination:
        if not self.availability_zone_name and not self.region:
            raise ValueError("destination: one of availability_zone_name or region must be set")
        return self


class ReplicationConfiguration(Resource):
    """Replicates an EFS file system to a new or existing file system in another location."""

    type_name: ClassVar[str] = "aws_efs_replication_configuration"
    display_name: ClassVar[str] = "EFS Replication Configuration"
    default_timeouts: ClassVar[Timeouts] = Timeouts(
        create=timedelta(minutes=20),
        delete=timedelta(minutes=20),
    )

    source_file_system_id: str = force_new()
    destination: Block[Destination] = force_new()

    def identify(self, ctx: Context) -> str:
        return self.source_file_system_id

    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        replication = find_replication_configuration_by_id(ctx.conn(names.EFS), identifier)
        return self._flatten(replication)

    def create(self, ctx: Context) -> str:
        conn = ctx.conn(names.EFS)
        fs_id = self.source_file_system_id

        try:
            conn.create_replication_configuration(
                SourceFileSystemId=fs_id,
                Destinations=[expand_destination(self.destination)],
            )
        except ClientError as err:
            raise ResourceError(f"creating {self.display_name} ({fs_id}): {err}") from err

        try:
            wait_replication_configuration_created(conn, fs_id, self.timeout("create"))
        except Exception as err:
            raise ResourceError(f"waiting for {self.display_name} ({fs_id}) create: {err}") from err

        return fs_id

    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        fs_id = state["id"]

        # Deletion must happen in the destination file system's region first.
        region = state.get(names.ATTR_DESTINATION, {}).get(names.ATTR_REGION) or self.destination.region
        region_conn = ctx.conn(names.EFS, region=region)
        delete_replication_configuration(region_conn, fs_id, self.timeout("delete"))

        # Then in the source region.
        delete_replication_configuration(ctx.conn(names.EFS), fs_id, self.timeout("delete"))

    def _flatten(self, replication: dict[str, Any]) -> dict[str, Any]:
        destination = flatten_destination(replication["Destinations"][0])

        # availability_zone_name and kms_key_id aren't returned by the read API.
        destination["availability_zone_name"] = self.destination.availability_zone_name
        destination[names.ATTR_KMS_KEY_ID] = self.destination.kms_key_id

        creation_time = replication.get("CreationTime")
        return {
            names.ATTR_ID: replication["SourceFileSystemId"],
            names.ATTR_CREATION_TIME: creation_time.isoformat() if creation_time else None,
            names.ATTR_DESTINATION: destination,
            "original_source_file_system_arn": replication.get("OriginalSourceFileSystemArn"),
            "source_file_system_arn": replication.get("SourceFileSystemArn"),
            "source_file_system_id": replication["SourceFileSystemId"],
            "source_file_system_region": replication.get("SourceFileSystemRegion"),
        }


def delete_replication_configuration(conn: Any, fs_id: str, timeout: float) -> None:
    try:
        conn.delete_replication_configuration(SourceFileSystemId=fs_id)
    except ClientError as err:
        if error_code_equals(err, ERR_FILE_SYSTEM_NOT_FOUND, ERR_REPLICATION_NOT_FOUND):
            return
        raise ResourceError(f"deleting EFS Replication Configuration ({fs_id}): {err}") from err

    try:
        wait_replication_configuration_deleted(conn, fs_id, timeout)
    except Exception as err:
        raise ResourceError(f"waiting for EFS Replication Configuration ({fs_id}) delete: {err}") from err


def find_replication_configurations(conn: Any, **request: Any) -> list[dict[str, Any]]:
    paginator = conn.get_paginator("describe_replication_configurations")
    output: list[dict[str, Any]] = []

    try:
        for page in paginator.paginate(**request):
            output.extend(r for r in page.get("Replications", []) if r)
    except ClientError as err:
        if error_code_equals(err, ERR_FILE_SYSTEM_NOT_FOUND, ERR_REPLICATION_NOT_FOUND):
            raise NotFoundError(last_error=err, last_request=request) from err
        raise

    return output


def find_replication_configuration_by_id(conn: Any, fs_id: str) -> dict[str, Any]:
    request = {"FileSystemId": fs_id}
    output = assert_single_result(find_replication_configurations(conn, **request), request)

    if not output.get("Destinations"):
        raise EmptyResultError(request)

    return output


def status_replication_configuration(conn: Any, fs_id: str):
    def refresh() -> tuple[Any, str]:
        try:
            output = find_replication_configuration_by_id(conn, fs_id)
        except NotFoundError:
            return None, ""
        return output, output["Destinations"][0].get("Status", "")

    return refresh


def wait_replication_configuration_created(conn: Any, fs_id: str, timeout: float) -> dict[str, Any] | None:
    state_conf = StateChangeConf(
        pending=[STATUS_ENABLING],
        target=[STATUS_ENABLED],
        refresh=status_replication_configuration(conn, fs_id),
        timeout=timeout,
    )
    return state_conf.wait_for_state()


def wait_replication_configuration_deleted(conn: Any, fs_id: str, timeout: float) -> dict[str, Any] | None:
    state_conf = StateChangeConf(
        pending=[STATUS_DELETING],
        target=[],
        refresh=status_replication_configuration(conn, fs_id),
        timeout=timeout,
        continuous_target_occurence=2,
    )
    return state_conf.wait_for_state()


def expand_destination(destination: Destination) -> dict[str, str]:
    api_object: dict[str, str] = {}

    if destination.availability_zone_name:
        api_object["AvailabilityZoneName"] = destination.availability_zone_name
    if destination.kms_key_id:
        api_object["KmsKeyId"] = destination.kms_key_id
    if destination.region:
        api_object["Region"] = destination.region
    if destination.file_system_id:
        api_object["FileSystemId"] = destination.file_system_id

    return api_object


def flatten_destination(api_object: dict[str, Any]) -> dict[str, Any]:
    tf_map: dict[str, Any] = {}

    if "FileSystemId" in api_object:
        tf_map[names.ATTR_FILE_SYSTEM_ID] = api_object["FileSystemId"]
    if "Region" in api_object:
        tf_map[names.ATTR_REGION] = api_object["Region"]
    if "Status" in api_object:
        tf_map[names.ATTR_STATUS] = api_object["Status"]

    return tf_map
