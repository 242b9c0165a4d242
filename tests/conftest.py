"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest
from fakes import BASE_URL, FakeDevice

from icontrol_rest import IControlRest, IControlRestClient, create_api


@pytest.fixture
def device() -> FakeDevice:
    """Fake device; every client from the api fixture talks to it."""
    return FakeDevice()


@pytest.fixture
def api(device: FakeDevice) -> IControlRest:
    return create_api(BASE_URL, "admin", "secret", transport=device.transport)


@pytest.fixture
def client(api: IControlRest) -> IControlRestClient:
    return api.client()
