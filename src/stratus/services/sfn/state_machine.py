"""aws_sfn_state_machine resource and data source."""

from __future__ import annotations

import json
import logging
from datetime import timedelta
from typing import Any, ClassVar

from botocore.exceptions import ClientError
from pydantic import Field, PrivateAttr, field_validator

from ... import names
from ...context import Context
from ...errors import NotFoundError, ResourceError, assert_single_result, error_code_equals, error_message_contains
from ...resource import DataSource, Resource
from ...retry import StateChangeConf, retry_when
from ...schema import Block, Schema, Timeouts, force_new, is_unresolved, valid_arn, write_only
from .tags import api_tags, list_tags, update_tags

logger = logging.getLogger(__name__)

ERR_STATE_MACHINE_DOES_NOT_EXIST = "StateMachineDoesNotExist"

STATUS_ACTIVE = "ACTIVE"
STATUS_DELETING = "DELETING"

TYPE_STANDARD = "STANDARD"
TYPE_EXPRESS = "EXPRESS"

LOG_LEVELS = ("ALL", "ERROR", "FATAL", "OFF")

_IAM_PROPAGATION_TIMEOUT = 120.0
_IAM_NOT_PROPAGATED = (
    "Neither the global service principal states.amazonaws.com, "
    "nor the regional one is authorized to assume the provided role"
)


def normalize_definition(value: str) -> str:
    """Return the definition as canonical JSON so formatting changes aren't drift."""
    try:
        return json.dumps(json.loads(value), sort_keys=True, separators=(",", ":"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"definition is not valid JSON: {exc}") from exc


class LoggingConfiguration(Schema):
    level: str | None = None
    include_execution_data: bool | None = None
    log_destination: str | None = None

    @field_validator("level")
    @classmethod
    def check_level(cls, value: str | None) -> str | None:
        if value is not None and not is_unresolved(value) and value not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return value


class TracingConfiguration(Schema):
    enabled: bool | None = None


def expand_logging_configuration(config: LoggingConfiguration) -> dict[str, Any]:
    api_object: dict[str, Any] = {}
    if config.level:
        api_object["level"] = config.level
    if config.include_execution_data is not None:
        api_object["includeExecutionData"] = config.include_execution_data
    if config.log_destination:
        api_object["destinations"] = [{"cloudWatchLogsLogGroup": {"logGroupArn": config.log_destination}}]
    return api_object


def flatten_logging_configuration(api_object: dict[str, Any] | None) -> dict[str, Any] | None:
    if not api_object:
        return None
    tf_map: dict[str, Any] = {
        "level": api_object.get("level"),
        "include_execution_data": api_object.get("includeExecutionData"),
    }
    destinations = api_object.get("destinations") or []
    if destinations:
        tf_map["log_destination"] = destinations[0].get("cloudWatchLogsLogGroup", {}).get("logGroupArn")
    return tf_map


def find_state_machine_by_arn(conn: Any, arn: str) -> dict[str, Any]:
    try:
        return conn.describe_state_machine(stateMachineArn=arn)
    except ClientError as err:
        if error_code_equals(err, ERR_STATE_MACHINE_DOES_NOT_EXIST):
            raise NotFoundError(last_error=err, last_request={"stateMachineArn": arn}) from err
        raise


def find_state_machines_by_name(conn: Any, name: str) -> list[dict[str, Any]]:
    paginator = conn.get_paginator("list_state_machines")
    return [
        machine
        for page in paginator.paginate()
        for machine in page.get("stateMachines", [])
        if machine.get("name") == name
    ]


def flatten_state_machine(output: dict[str, Any]) -> dict[str, Any]:
    creation_date = output.get("creationDate")
    return {
        names.ATTR_ID: output["stateMachineArn"],
        names.ATTR_ARN: output["stateMachineArn"],
        names.ATTR_NAME: output["name"],
        "definition": normalize_definition(output["definition"]),
        "role_arn": output["roleArn"],
        names.ATTR_TYPE: output["type"],
        names.ATTR_STATUS: output.get("status"),
        names.ATTR_CREATION_DATE: creation_date.isoformat() if creation_date else None,
        names.ATTR_DESCRIPTION: output.get("description"),
        "revision_id": output.get("revisionId"),
        "logging_configuration": flatten_logging_configuration(output.get("loggingConfiguration")),
        "tracing_configuration": {"enabled": output.get("tracingConfiguration", {}).get("enabled", False)},
    }


class StateMachine(Resource):
    """A Step Functions state machine."""

    type_name: ClassVar[str] = "aws_sfn_state_machine"
    display_name: ClassVar[str] = "Step Functions State Machine"
    default_timeouts: ClassVar[Timeouts] = Timeouts(
        create=timedelta(minutes=5),
        update=timedelta(minutes=1),
        delete=timedelta(minutes=5),
    )

    name: str = force_new()
    definition: str
    role_arn: str
    type: str = force_new(TYPE_STANDARD)
    logging_configuration: Block[LoggingConfiguration | None] = None
    tracing_configuration: Block[TracingConfiguration | None] = None
    publish: bool = write_only(False)
    version_description: str | None = write_only()
    tags: dict[str, str] = Field(default_factory=dict)

    _version_arn: str | None = PrivateAttr(default=None)

    check_role_arn = field_validator("role_arn")(valid_arn)

    @field_validator("definition")
    @classmethod
    def check_definition(cls, value: str) -> str:
        if is_unresolved(value):
            return value
        return normalize_definition(value)

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if is_unresolved(value):
            return value
        value = value.upper()
        if value not in (TYPE_STANDARD, TYPE_EXPRESS):
            raise ValueError(f"type must be {TYPE_STANDARD} or {TYPE_EXPRESS}")
        return value

    def identify(self, ctx: Context) -> str:
        conn = ctx.conn(names.SFN)
        request = {"name": self.name}
        machine = assert_single_result(find_state_machines_by_name(conn, self.name), request)
        return machine["stateMachineArn"]

    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)
        output = find_state_machine_by_arn(conn, identifier)

        if output.get("status") == STATUS_DELETING:
            raise NotFoundError(f"{self.display_name} ({identifier}) is being deleted")

        state = flatten_state_machine(output)
        state["state_machine_version_arn"] = self._version_arn
        state[names.ATTR_TAGS] = list_tags(conn, identifier)
        return state

    def _configuration(self) -> dict[str, Any]:
        request: dict[str, Any] = {}
        if self.logging_configuration is not None:
            request["loggingConfiguration"] = expand_logging_configuration(self.logging_configuration)
        if self.tracing_configuration is not None and self.tracing_configuration.enabled is not None:
            request["tracingConfiguration"] = {"enabled": self.tracing_configuration.enabled}
        if self.version_description:
            request["versionDescription"] = self.version_description
        return request

    def create(self, ctx: Context) -> str:
        conn = ctx.conn(names.SFN)
        request = {
            "name": self.name,
            "definition": self.definition,
            "roleArn": self.role_arn,
            "type": self.type,
            "publish": self.publish,
            **self._configuration(),
            **api_tags(self.tags),
        }

        # IAM is eventually consistent; the execution role may not be assumable yet.
        try:
            output = retry_when(
                lambda: conn.create_state_machine(**request),
                lambda err: error_message_contains(err, "AccessDeniedException", _IAM_NOT_PROPAGATED),
                timeout=_IAM_PROPAGATION_TIMEOUT,
            )
        except ClientError as err:
            raise ResourceError(f"creating {self.display_name} ({self.name}): {err}") from err

        self._version_arn = output.get("stateMachineVersionArn")
        return output["stateMachineArn"]

    def update(self, ctx: Context, state: dict[str, Any], changes: dict[str, Any]) -> None:
        conn = ctx.conn(names.SFN)
        arn = state["id"]

        if set(changes) - {names.ATTR_TAGS}:
            request = {
                "stateMachineArn": arn,
                "definition": self.definition,
                "roleArn": self.role_arn,
                "publish": self.publish,
                **self._configuration(),
            }
            try:
                output = conn.update_state_machine(**request)
            except ClientError as err:
                raise ResourceError(f"updating {self.display_name} ({arn}): {err}") from err
            self._version_arn = output.get("stateMachineVersionArn")

        if names.ATTR_TAGS in changes:
            try:
                update_tags(conn, arn, state.get(names.ATTR_TAGS, {}), self.tags)
            except ClientError as err:
                raise ResourceError(f"updating {self.display_name} ({arn}) tags: {err}") from err

    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        conn = ctx.conn(names.SFN)
        arn = state["id"]

        try:
            conn.delete_state_machine(stateMachineArn=arn)
        except ClientError as err:
            if error_code_equals(err, ERR_STATE_MACHINE_DOES_NOT_EXIST):
                return
            raise ResourceError(f"deleting {self.display_name} ({arn}): {err}") from err

        try:
            wait_state_machine_deleted(conn, arn, self.timeout("delete"))
        except Exception as err:
            raise ResourceError(f"waiting for {self.display_name} ({arn}) delete: {err}") from err


def status_state_machine(conn: Any, arn: str):
    def refresh() -> tuple[Any, str]:
        try:
            output = find_state_machine_by_arn(conn, arn)
        except NotFoundError:
            return None, ""
        return output, output.get("status", "")

    return refresh


def wait_state_machine_deleted(conn: Any, arn: str, timeout: float) -> dict[str, Any] | None:
    state_conf = StateChangeConf(
        pending=[STATUS_ACTIVE, STATUS_DELETING],
        target=[],
        refresh=status_state_machine(conn, arn),
        timeout=timeout,
    )
    return state_conf.wait_for_state()


class StateMachineDataSource(DataSource):
    """Look up a state machine by name."""

    type_name: ClassVar[str] = "aws_sfn_state_machine"
    display_name: ClassVar[str] = "Step Functions State Machine"

    name: str

    def read(self, ctx: Context) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)
        request = {"name": self.name}
        machine = assert_single_result(find_state_machines_by_name(conn, self.name), request)
        return flatten_state_machine(find_state_machine_by_arn(conn, machine["stateMachineArn"]))
