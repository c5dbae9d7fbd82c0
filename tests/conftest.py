"""Shared fixtures: fake credentials, no sleeping, and stubbed AWS clients."""

from __future__ import annotations

import pytest
from botocore.stub import Stubber

from stratus import retry
from stratus.config import ProviderConfig
from stratus.conns import AWSClient
from stratus.context import Context
from stratus.projects import Project


@pytest.fixture(autouse=True)
def _aws_environment(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    # retry passes its tenacity sleep into every Retrying it builds.
    monkeypatch.setattr(retry, "sleep", lambda seconds: None)


@pytest.fixture
def aws() -> AWSClient:
    return AWSClient(ProviderConfig(region="us-east-1"))


@pytest.fixture
def ctx(aws) -> Context[Project]:
    return Context(target=Project(name="test"), aws=aws)


@pytest.fixture
def stub(aws):
    """Return a factory that activates a Stubber on the named service client."""
    stubbers: list[Stubber] = []

    def _stub(service: str, region: str | None = None) -> Stubber:
        stubber = Stubber(aws.client(service, region))
        stubber.activate()
        stubbers.append(stubber)
        return stubber

    yield _stub

    for stubber in stubbers:
        stubber.assert_no_pending_responses()
        stubber.deactivate()
