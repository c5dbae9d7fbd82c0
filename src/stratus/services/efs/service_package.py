"""Registrations for the EFS service package."""

from __future__ import annotations

from ... import names, registry
from .replication_configuration import ReplicationConfiguration


class ServicePackage(registry.ServicePackage):
    name = names.EFS

    def resources(self) -> list[registry.Registration]:
        return [
            registry.Registration(
                factory=ReplicationConfiguration,
                type_name="aws_efs_replication_configuration",
                name="Replication Configuration",
            ),
        ]
