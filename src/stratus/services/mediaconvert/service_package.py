"""Registrations for the MediaConvert service package."""

from __future__ import annotations

from ... import names, registry
from .queue import Queue, QueueDataSource


class ServicePackage(registry.ServicePackage):
    name = names.MEDIA_CONVERT

    def data_sources(self) -> list[registry.Registration]:
        return [
            registry.Registration(
                factory=QueueDataSource,
                type_name="aws_media_convert_queue",
                name="Queue",
                tags=registry.TagsConfig(identifier_attribute=names.ATTR_ARN),
            ),
        ]

    def resources(self) -> list[registry.Registration]:
        return [
            registry.Registration(
                factory=Queue,
                type_name="aws_media_convert_queue",
                name="Queue",
                tags=registry.TagsConfig(identifier_attribute=names.ATTR_ARN),
            ),
        ]
