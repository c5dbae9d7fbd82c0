"""Registrations for the Step Functions service package."""

from __future__ import annotations

from ... import names, registry
from .activity import Activity, ActivityDataSource
from .alias import Alias, AliasDataSource
from .state_machine import StateMachine, StateMachineDataSource
from .state_machine_versions import StateMachineVersionsDataSource


class ServicePackage(registry.ServicePackage):
    name = names.SFN
    client_name = "stepfunctions"

    def data_sources(self) -> list[registry.Registration]:
        return [
            registry.Registration(factory=ActivityDataSource, type_name="aws_sfn_activity"),
            registry.Registration(factory=AliasDataSource, type_name="aws_sfn_alias"),
            registry.Registration(factory=StateMachineDataSource, type_name="aws_sfn_state_machine"),
            registry.Registration(
                factory=StateMachineVersionsDataSource,
                type_name="aws_sfn_state_machine_versions",
            ),
        ]

    def resources(self) -> list[registry.Registration]:
        return [
            registry.Registration(
                factory=Activity,
                type_name="aws_sfn_activity",
                name="Activity",
                tags=registry.TagsConfig(identifier_attribute=names.ATTR_ID),
            ),
            registry.Registration(factory=Alias, type_name="aws_sfn_alias"),
            registry.Registration(
                factory=StateMachine,
                type_name="aws_sfn_state_machine",
                name="State Machine",
                tags=registry.TagsConfig(identifier_attribute=names.ATTR_ID),
            ),
        ]
