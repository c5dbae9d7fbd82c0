"""aws_media_convert_queue resource and data source."""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from botocore.exceptions import ClientError
from pydantic import Field, field_validator

from ... import names
from ...context import Context
from ...errors import NotFoundError, ResourceError, error_code_equals
from ...resource import DataSource, Resource
from ...schema import Block, Schema, force_new, is_unresolved
from ...tags import diff_tags

logger = logging.getLogger(__name__)

ERR_NOT_FOUND = "NotFoundException"

PRICING_PLAN_ON_DEMAND = "ON_DEMAND"
PRICING_PLAN_RESERVED = "RESERVED"

STATUS_ACTIVE = "ACTIVE"
STATUS_PAUSED = "PAUSED"


class ReservationPlanSettings(Schema):
    commitment: str
    renewal_type: str
    reserved_slots: int


def find_queue_by_name(conn: Any, name: str) -> dict[str, Any]:
    try:
        return conn.get_queue(Name=name)["Queue"]
    except ClientError as err:
        if error_code_equals(err, ERR_NOT_FOUND):
            raise NotFoundError(last_error=err, last_request={"Name": name}) from err
        raise


def list_tags(conn: Any, arn: str) -> dict[str, str]:
    output = conn.list_tags_for_resource(Arn=arn)
    return dict(output.get("ResourceTags", {}).get("Tags", {}))


def update_tags(conn: Any, arn: str, old: dict[str, str], new: dict[str, str]) -> None:
    to_set, to_remove = diff_tags(old, new)
    if to_remove:
        conn.untag_resource(Arn=arn, TagKeys=to_remove)
    if to_set:
        conn.tag_resource(Arn=arn, Tags=to_set)


def expand_reservation_plan_settings(settings: ReservationPlanSettings) -> dict[str, Any]:
    return {
        "Commitment": settings.commitment,
        "RenewalType": settings.renewal_type,
        "ReservedSlots": settings.reserved_slots,
    }


def flatten_reservation_plan(api_object: dict[str, Any] | None) -> dict[str, Any] | None:
    if not api_object:
        return None
    return {
        "commitment": api_object.get("Commitment"),
        "renewal_type": api_object.get("RenewalType"),
        "reserved_slots": api_object.get("ReservedSlots"),
    }


def flatten_queue(queue: dict[str, Any]) -> dict[str, Any]:
    return {
        names.ATTR_ID: queue["Name"],
        names.ATTR_ARN: queue.get("Arn"),
        names.ATTR_NAME: queue["Name"],
        names.ATTR_DESCRIPTION: queue.get("Description"),
        "pricing_plan": queue.get("PricingPlan"),
        "reservation_plan_settings": flatten_reservation_plan(queue.get("ReservationPlan")),
        names.ATTR_STATUS: queue.get("Status"),
    }


class Queue(Resource):
    """A MediaConvert job queue."""

    type_name: ClassVar[str] = "aws_media_convert_queue"
    display_name: ClassVar[str] = "Media Convert Queue"

    name: str = force_new()
    description: str | None = None
    pricing_plan: str = force_new(PRICING_PLAN_ON_DEMAND)
    reservation_plan_settings: Block[ReservationPlanSettings | None] = None
    status: str = STATUS_ACTIVE
    tags: dict[str, str] = Field(default_factory=dict)

    @field_validator("pricing_plan")
    @classmethod
    def check_pricing_plan(cls, value: str) -> str:
        if not is_unresolved(value) and value not in (PRICING_PLAN_ON_DEMAND, PRICING_PLAN_RESERVED):
            raise ValueError(f"pricing_plan must be {PRICING_PLAN_ON_DEMAND} or {PRICING_PLAN_RESERVED}")
        return value

    @field_validator("status")
    @classmethod
    def check_status(cls, value: str) -> str:
        if not is_unresolved(value) and value not in (STATUS_ACTIVE, STATUS_PAUSED):
            raise ValueError(f"status must be {STATUS_ACTIVE} or {STATUS_PAUSED}")
        return value

    def identify(self, ctx: Context) -> str:
        return self.name

    def find_by_id(self, ctx: Context, identifier: str) -> dict[str, Any]:
        conn = ctx.conn(names.MEDIA_CONVERT)
        state = flatten_queue(find_queue_by_name(conn, identifier))
        state[names.ATTR_TAGS] = list_tags(conn, state[names.ATTR_ARN])
        return state

    def create(self, ctx: Context) -> str:
        conn = ctx.conn(names.MEDIA_CONVERT)
        request: dict[str, Any] = {
            "Name": self.name,
            "PricingPlan": self.pricing_plan,
            "Status": self.status,
        }
        if self.description is not None:
            request["Description"] = self.description
        if self.reservation_plan_settings is not None:
            request["ReservationPlanSettings"] = expand_reservation_plan_settings(self.reservation_plan_settings)
        if self.tags:
            request["Tags"] = self.tags

        try:
            output = conn.create_queue(**request)
        except ClientError as err:
            raise ResourceError(f"creating {self.display_name} ({self.name}): {err}") from err
        return output["Queue"]["Name"]

    def update(self, ctx: Context, state: dict[str, Any], changes: dict[str, Any]) -> None:
        conn = ctx.conn(names.MEDIA_CONVERT)
        name = state["id"]

        if set(changes) - {names.ATTR_TAGS}:
            request: dict[str, Any] = {"Name": name, "Status": self.status}
            if self.description is not None:
                request["Description"] = self.description
            if self.reservation_plan_settings is not None:
                request["ReservationPlanSettings"] = expand_reservation_plan_settings(self.reservation_plan_settings)
            try:
                conn.update_queue(**request)
            except ClientError as err:
                raise ResourceError(f"updating {self.display_name} ({name}): {err}") from err

        if names.ATTR_TAGS in changes:
            try:
                update_tags(conn, state[names.ATTR_ARN], state.get(names.ATTR_TAGS, {}), self.tags)
            except ClientError as err:
                raise ResourceError(f"updating {self.display_name} ({name}) tags: {err}") from err

    def delete(self, ctx: Context, state: dict[str, Any]) -> None:
        conn = ctx.conn(names.MEDIA_CONVERT)
        name = state["id"]
        try:
            conn.delete_queue(Name=name)
        except ClientError as err:
            if error_code_equals(err, ERR_NOT_FOUND):
                return
            raise ResourceError(f"deleting {self.display_name} ({name}): {err}") from err


class QueueDataSource(DataSource):
    """Look up a queue by name."""

    type_name: ClassVar[str] = "aws_media_convert_queue"
    display_name: ClassVar[str] = "Media Convert Queue"

    id: str

    def read(self, ctx: Context) -> dict[str, Any]:
        conn = ctx.conn(names.MEDIA_CONVERT)
        state = flatten_queue(find_queue_by_name(conn, self.id))
        state[names.ATTR_TAGS] = list_tags(conn, state[names.ATTR_ARN])
        return state
