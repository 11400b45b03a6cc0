from __future__ import annotations

import pytest

from fakes import FakeSession
from loadgen.config import RemoteServiceSettings


@pytest.fixture()
def remote_settings() -> RemoteServiceSettings:
    return RemoteServiceSettings(
        admin_url="http://admin.test:8081",
        data_url="http://data.test:8080",
        routing_host_suffix="foo",
        timeout_seconds=None,
    )


@pytest.fixture()
def fake_session() -> FakeSession:
    return FakeSession()
