"""Service-package registration: which resources and data sources exist, and how to reach their API."""

from __future__ import annotations

import logging
from abc import ABC
from dataclasses import dataclass
from functools import cache
from typing import TYPE_CHECKING, Any, ClassVar

from .spec import _spec_registry

if TYPE_CHECKING:
    import boto3

    from .config import ProviderConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagsConfig:
    """How a resource's tags are addressed: the state attribute that identifies it."""

    identifier_attribute: str


@dataclass(frozen=True)
class Registration:
    """A resource or data source type provided by a service package."""

    factory: type
    type_name: str
    name: str = ""
    tags: TagsConfig | None = None


class ServicePackage(ABC):
    """One API family: its registrations and its client construction."""

    name: ClassVar[str]
    client_name: ClassVar[str] = ""

    def data_sources(self) -> list[Registration]:
        return []

    def resources(self) -> list[Registration]:
        return []

    def new_client(self, session: boto3.Session, config: ProviderConfig, *, region: str | None = None) -> Any:
        """Return a new boto3 client for this service package's API."""
        kwargs: dict[str, Any] = {}
        use_fips: bool | None = None

        if endpoint := config.endpoint(self.name):
            logger.debug("Setting %s endpoint: %s", self.name, endpoint)
            kwargs["endpoint_url"] = endpoint

            if config.use_fips_endpoint:
                logger.debug("Endpoint set, ignoring use_fips_endpoint setting")
                use_fips = False

        if region:
            kwargs["region_name"] = region

        return session.client(
            self.client_name or self.name,
            config=config.botocore_config(use_fips_endpoint=use_fips),
            **kwargs,
        )


@cache
def service_packages() -> tuple[ServicePackage, ...]:
    """Return every service package the provider ships."""
    from .services import SERVICE_PACKAGES

    return tuple(cls() for cls in SERVICE_PACKAGES)


def service_package(name: str) -> ServicePackage:
    for pkg in service_packages():
        if pkg.name == name:
            return pkg
    raise ValueError(f"Unknown service package: '{name}'")


def resources() -> dict[str, Registration]:
    """Return resource registrations keyed by type name."""
    return {reg.type_name: reg for pkg in service_packages() for reg in pkg.resources()}


def data_sources() -> dict[str, Registration]:
    """Return data source registrations keyed by type name."""
    return {reg.type_name: reg for pkg in service_packages() for reg in pkg.data_sources()}


def lookup_resource(type_name: str) -> type:
    """Return the class for a resource type; custom @spec registrations win."""
    if type_name in _spec_registry:
        return _spec_registry[type_name]
    registered = resources()
    if type_name not in registered:
        raise ValueError(f"Unknown spec type: '{type_name}'")
    return registered[type_name].factory


def lookup_data_source(type_name: str) -> type:
    registered = data_sources()
    if type_name not in registered:
        raise ValueError(f"Unknown data source type: '{type_name}'")
    return registered[type_name].factory
