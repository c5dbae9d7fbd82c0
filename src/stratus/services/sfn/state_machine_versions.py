"""aws_sfn_state_machine_versions data source."""

from __future__ import annotations

from typing import Any, ClassVar

from ... import names
from ...context import Context
from ...resource import DataSource


class StateMachineVersionsDataSource(DataSource):
    """List the published version ARNs of a state machine."""

    type_name: ClassVar[str] = "aws_sfn_state_machine_versions"
    display_name: ClassVar[str] = "Step Functions State Machine Versions"

    statemachine_arn: str

    def read(self, ctx: Context) -> dict[str, Any]:
        conn = ctx.conn(names.SFN)
        versions: list[str] = []

        request: dict[str, Any] = {"stateMachineArn": self.statemachine_arn}
        while True:
            page = conn.list_state_machine_versions(**request)
            versions.extend(v["stateMachineVersionArn"] for v in page.get("stateMachineVersions", []))
            if not page.get("nextToken"):
                break
            request = {**request, "nextToken": page["nextToken"]}

        return {
            names.ATTR_ID: self.statemachine_arn,
            "statemachine_arn": self.statemachine_arn,
            "statemachine_versions": versions,
        }
