"""Global test configuration.

Shared fixtures: in-memory cloud and DNS stores, a lifecycle that never
sleeps, and dummy AWS credentials so no test can reach a real account.
"""

import logging

import pytest

from drawbridge.domain.services.instance_lifecycle import InstanceLifecycle
from drawbridge.infrastructure.adapters.memory_cloud_adapter import MemoryCloud
from drawbridge.infrastructure.adapters.memory_dns_adapter import MemoryDns


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    for key in ("AWS_DEFAULT_REGION", "DRAWBRIDGE_TAG", "DRAWBRIDGE_PROVIDER"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def cloud():
    return MemoryCloud()


@pytest.fixture
def dns():
    return MemoryDns()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def lifecycle(sleeps):
    return InstanceLifecycle(poll_interval=1.0, sleep=sleeps.append)


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logger = logging.getLogger("drawbridge")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
