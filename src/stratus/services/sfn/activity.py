"""aws_sfn_activity resource and data source."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, ClassVar

from botocore.exceptions import ClientError
from pydantic import Field, model_validator

from ... import names
from ...context import Context
from ...errors import NotFoundError, ResourceError, assert_single_result, error_code_equals
from ...resource import DataSource, Resource
from ...retry import StateChangeConf
from ...schema import Timeouts, force_new
from .tags import api_tags, list_tags, update_tags

logger = logging.getLogger(__name__)

ERR_ACTIVITY_DOES_NOT_EXIST = "ActivityDoesNotExist"


def find_activity_by_arn(conn: Any, arn: str) -> dict[str, Any]:
    try:
        return conn.describe_activity(activityArn=arn)
    except ClientError as err:
        if error_code_equals(err, ERR_ACTIVITY_DOES_NOT_EXIST):
            raise NotFoundError(last_error=err, last_request={"activityArn": arn}) from err
        raise


def find_activities_by_name(conn: Any, name: str) -> list[dict[str, Any]]:
    paginator = conn.get_paginator("list_activities")
    return [
        activity
        for page in paginator.paginate()
        for activity in page.get("activities", [])
        if activity.get("name") == name
    ]


def flatten_activity(output: dict[str, Any]) -> dict[str, Any]:
    creation_date = output.get("creationDate")
    return {
        names.ATTR_ID: output["activityArn"],
        names.ATTR_ARN: output["activityArn"],
        names.ATTR_NAME: output["name"],
        names.ATTR_CREATION_DATE: creation_date.isoformat() if creation_date else None,
    }


class Activity(Resource):
    """A Step Functions activity task."""

    type_name: ClassVar[str] = "aws_sfn_activity"
    display_name: ClassVar[str] = "Step Functions Activity"
    default_timeouts: ClassVar[Timeouts] = Timeouts(delete=timedelta(minutes=5))

    name: str = force_new()
    tags: dict[str, str] = Field(default_factory=dict)

    def identify(self, ctx: Context) -> str:
        conn = ctx.conn(names.SFN)
        request = {"name": self.name}
        activity = assert_single_result(find_activities_by_name(conn, self.name), request)
        return activity["activityArn"]

    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)
        state = flatten_activity(find_activity_by_arn(conn, identifier))
        state[names.ATTR_TAGS] = list_tags(conn, identifier)
        return state

    def create(self, ctx: Context) -> str:
        conn = ctx.conn(names.SFN)
        try:
            output = conn.create_activity(name=self.name, **api_tags(self.tags))
        except ClientError as err:
            raise ResourceError(f"creating {self.display_name} ({self.name}): {err}") from err
        return output["activityArn"]

    def update(self, ctx: Context, state: dict[str, Any], changes: dict[str, Any]) -> None:
        if names.ATTR_TAGS in changes:
            conn = ctx.conn(names.SFN)
            try:
                update_tags(conn, state["id"], state.get(names.ATTR_TAGS, {}), self.tags)
            except ClientError as err:
                raise ResourceError(f"updating {self.display_name} ({state['id']}) tags: {err}") from err

    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        conn = ctx.conn(names.SFN)
        arn = state["id"]

        try:
            conn.delete_activity(activityArn=arn)
        except ClientError as err:
            if error_code_equals(err, ERR_ACTIVITY_DOES_NOT_EXIST):
                return
            raise ResourceError(f"deleting {self.display_name} ({arn}): {err}") from err

        def refresh() -> tuple[Any, str]:
            try:
                return find_activity_by_arn(conn, arn), "ACTIVE"
            except NotFoundError:
                return None, ""

        state_conf = StateChangeConf(
            pending=["ACTIVE"],
            target=[],
            refresh=refresh,
            timeout=self.timeout("delete"),
        )
        try:
            state_conf.wait_for_state()
        except Exception as err:
            raise ResourceError(f"waiting for {self.display_name} ({arn}) delete: {err}") from err


class ActivityDataSource(DataSource):
    """Look up an activity by name or ARN."""

    type_name: ClassVar[str] = "aws_sfn_activity"
    display_name: ClassVar[str] = "Step Functions Activity"

    arn: str | None = None
    name: str | None = None

    @model_validator(mode="after")
    def exactly_one_of(self) -> ActivityDataSource:
        if bool(self.arn) == bool(self.name):
            raise ValueError("exactly one of arn or name must be set")
        return self

    def read(self, ctx: Context) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)

        if self.arn:
            output = find_activity_by_arn(conn, self.arn)
        else:
            request = {"name": self.name}
            output = assert_single_result(find_activities_by_name(conn, self.name or ""), request)

        return flatten_activity(output)
