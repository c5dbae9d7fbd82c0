"""AWS client factory shared by all adapters in a build."""

from __future__ import annotations

import logging
from typing import Any

import boto3

from .config import ProviderConfig
from .registry import service_package

logger = logging.getLogger(__name__)


class AWSClient:
    """Lazily creates a boto3 session and caches one client per (service, region)."""

    def __init__(self, config: ProviderConfig | None = None, *, session: boto3.Session | None = None) -> None:
        self.config = config or ProviderConfig()
        self._session = session
        self._clients: dict[tuple[str, str | None], Any] = {}

    @property
    def session(self) -> boto3.Session:
        if self._session is None:
            logger.debug("Creating AWS session (profile=%s, region=%s)", self.config.profile, self.config.region)
            self._session = boto3.Session(
                aws_access_key_id=self.config.access_key,
                aws_secret_access_key=self.config.secret_key,
                aws_session_token=self.config.token,
                profile_name=self.config.profile,
                region_name=self.config.region,
            )
        return self._session

    @property
    def region(self) -> str | None:
        return self.config.region or self.session.region_name

    def client(self, service: str, region: str | None = None) -> Any:
        """Return the client for a service package, optionally for another region."""
        key = (service, region or None)
        if key not in self._clients:
            logger.debug("Creating %s client (region=%s)", service, region or self.region)
            pkg = service_package(service)
            self._clients[key] = pkg.new_client(self.session, self.config, region=region)
        return self._clients[key]
