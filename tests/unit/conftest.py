"""Pytest configuration and fixtures for provider unit tests."""

import os
import threading
from collections.abc import Generator
from pathlib import Path

import pytest
import yaml

from devpod_upcloud.core.signals import reset_cancellation
from devpod_upcloud.providers.upcloud.compute import UpCloudManager
from devpod_upcloud.providers.upcloud.plans import SERVER_PLANS_PATH, load_server_plans
from tests.unit.fakes import FakeSSHManager, FakeUpCloudAPI


@pytest.fixture(autouse=True)
def clean_provider_env() -> Generator[None, None, None]:
    """Ensure provider variables from the developer shell do not leak into tests.

    Yields
    ------
    None
        Control back to test after removing provider variables
    """
    names = [
        name
        for name in os.environ
        if name.startswith("UPCLOUD_")
        or name in ("MACHINE_ID", "MACHINE_FOLDER", "COMMAND", "DEVPOD_UPCLOUD_DEBUG")
    ]
    saved = {name: os.environ.pop(name) for name in names}

    yield

    for name in names:
        os.environ.pop(name, None)
    os.environ.update(saved)


@pytest.fixture(autouse=True)
def clean_cancellation() -> Generator[None, None, None]:
    """Reset the process-wide cancellation event around each test."""
    reset_cancellation()
    FakeSSHManager.instances.clear()
    yield
    reset_cancellation()


@pytest.fixture
def fake_api() -> FakeUpCloudAPI:
    """Create an empty fake UpCloud API.

    Returns
    -------
    FakeUpCloudAPI
        Fake API with no servers
    """
    return FakeUpCloudAPI()


@pytest.fixture
def cancel_event() -> threading.Event:
    return threading.Event()


@pytest.fixture
def manager(fake_api: FakeUpCloudAPI, cancel_event: threading.Event) -> UpCloudManager:
    """Create a live lifecycle client backed by the fake API.

    Returns
    -------
    UpCloudManager
        Client with a short timeout and no poll delay
    """
    return UpCloudManager(
        "devpod",
        "secret",
        api=fake_api,
        timeout=1,
        cancel_event=cancel_event,
        poll_interval=0,
    )


@pytest.fixture
def catalog_document() -> dict:
    """Load the bundled catalog as plain data for mutation in tests."""
    return yaml.safe_load(SERVER_PLANS_PATH.read_text())


@pytest.fixture
def write_catalog(tmp_path: Path):
    """Return a helper that writes a catalog document to a temporary file."""

    def _write(document: dict | str) -> Path:
        path = tmp_path / "server-plans.yaml"
        if isinstance(document, str):
            path.write_text(document)
        else:
            path.write_text(yaml.safe_dump(document, sort_keys=False))
        return path

    return _write


@pytest.fixture
def catalog():
    return load_server_plans()
