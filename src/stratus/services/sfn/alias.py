"""aws_sfn_alias resource and data source."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from botocore.exceptions import ClientError
from pydantic import field_validator

from ... import names
from ...context import Context
from ...errors import NotFoundError, ResourceError, error_code_equals
from ...resource import DataSource, Resource
from ...schema import Schema, force_new, is_unresolved

logger = logging.getLogger(__name__)

ERR_RESOURCE_NOT_FOUND = "ResourceNotFound"


class Routing(Schema):
    state_machine_version_arn: str
    weight: int


def alias_arn(version_arn: str, name: str) -> str:
    """Derive an alias ARN from one of its version ARNs: ...:stateMachine:<sm>:<version>."""
    state_machine_arn, _, _ = version_arn.rpartition(":")
    return f"{state_machine_arn}:{name}"


def find_alias_by_arn(conn: Any, arn: str) -> dict[str, Any]:
    try:
        return conn.describe_state_machine_alias(stateMachineAliasArn=arn)
    except ClientError as err:
        if error_code_equals(err, ERR_RESOURCE_NOT_FOUND):
            raise NotFoundError(last_error=err, last_request={"stateMachineAliasArn": arn}) from err
        raise


def expand_routing(routes: list[Routing]) -> list[dict[str, Any]]:
    return [{"stateMachineVersionArn": r.state_machine_version_arn, "weight": r.weight} for r in routes]


def flatten_alias(output: dict[str, Any]) -> dict[str, Any]:
    creation_date = output.get("creationDate")
    return {
        names.ATTR_ID: output["stateMachineAliasArn"],
        names.ATTR_ARN: output["stateMachineAliasArn"],
        names.ATTR_NAME: output["name"],
        names.ATTR_DESCRIPTION: output.get("description"),
        names.ATTR_CREATION_DATE: creation_date.isoformat() if creation_date else None,
        "routing_configuration": [
            {"state_machine_version_arn": r["stateMachineVersionArn"], "weight": r["weight"]}
            for r in output.get("routingConfiguration", [])
        ],
    }


class Alias(Resource):
    """A named pointer that routes executions to one or two state machine versions."""

    type_name: ClassVar[str] = "aws_sfn_alias"
    display_name: ClassVar[str] = "Step Functions Alias"

    name: str = force_new()
    description: str | None = None
    routing_configuration: list[Routing]

    @field_validator("routing_configuration")
    @classmethod
    def check_routes(cls, value: list[Routing]) -> list[Routing]:
        if not is_unresolved(value) and not 1 <= len(value) <= 2:
            raise ValueError("routing_configuration must have 1 or 2 entries")
        return value

    def identify(self, ctx: Context) -> str:
        version_arn = self.routing_configuration[0].state_machine_version_arn
        if is_unresolved(version_arn):
            raise NotFoundError(f"unresolved state machine version for alias '{self.name}'")
        return alias_arn(version_arn, self.name)

    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        return flatten_alias(find_alias_by_arn(ctx.conn(names.SFN), identifier))

    def _request(self) -> dict[str, Any]:
        request: dict[str, Any] = {"routingConfiguration": expand_routing(self.routing_configuration)}
        if self.description is not None:
            request["description"] = self.description
        return request

    def create(self, ctx: Context) -> str:
        conn = ctx.conn(names.SFN)
        try:
            output = conn.create_state_machine_alias(name=self.name, **self._request())
        except ClientError as err:
            raise ResourceError(f"creating {self.display_name} ({self.name}): {err}") from err
        return output["stateMachineAliasArn"]

    def update(self, ctx: Context, state: dict[str, Any], changes: dict[str, Any]) -> None:
        conn = ctx.conn(names.SFN)
        arn = state["id"]
        try:
            conn.update_state_machine_alias(stateMachineAliasArn=arn, **self._request())
        except ClientError as err:
            raise ResourceError(f"updating {self.display_name} ({arn}): {err}") from err

    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        conn = ctx.conn(names.SFN)
        arn = state["id"]
        try:
            conn.delete_state_machine_alias(stateMachineAliasArn=arn)
        except ClientError as err:
            if error_code_equals(err, ERR_RESOURCE_NOT_FOUND):
                return
            raise ResourceError(f"deleting {self.display_name} ({arn}): {err}") from err


class AliasDataSource(DataSource):
    """Look up an alias of a state machine by name."""

    type_name: ClassVar[str] = "aws_sfn_alias"
    display_name: ClassVar[str] = "Step Functions Alias"

    name: str
    statemachine_arn: str

    def read(self, ctx: Context) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)
        wanted = f"{self.statemachine_arn}:{self.name}"

        request: dict[str, Any] = {"stateMachineArn": self.statemachine_arn}
        while True:
            page = conn.list_state_machine_aliases(**request)
            for item in page.get("stateMachineAliases", []):
                if item["stateMachineAliasArn"] == wanted:
                    return flatten_alias(find_alias_by_arn(conn, wanted))
            if not page.get("nextToken"):
                break
            request = {**request, "nextToken": page["nextToken"]}

        raise NotFoundError(f"{self.display_name} '{self.name}' not found", last_request=request)
