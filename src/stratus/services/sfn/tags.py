"""Tag helpers for the Step Functions API."""

from __future__ import annotations

from typing import Any

from ...tags import diff_tags, from_key_value_list, to_key_value_list


def list_tags(conn: Any, arn: str) -> dict[str, str]:
    output = conn.list_tags_for_resource(resourceArn=arn)
    return from_key_value_list(output.get("tags"))


def update_tags(conn: Any, arn: str, old: dict[str, str], new: dict[str, str]) -> None:
    to_set, to_remove = diff_tags(old, new)
    if to_remove:
        conn.untag_resource(resourceArn=arn, tagKeys=to_remove)
    if to_set:
        conn.tag_resource(resourceArn=arn, tags=to_key_value_list(to_set))


def api_tags(tags: dict[str, str]) -> dict[str, Any]:
    """Return the create-request keyword for tags, omitted when empty."""
    return {"tags": to_key_value_list(tags)} if tags else {}
