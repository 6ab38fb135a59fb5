"""Test doubles injected in place of the UpCloud API and SSH."""

from tests.unit.fakes.fake_ssh_manager import FakeSSHManager
from tests.unit.fakes.fake_upcloud_api import FakeUpCloudAPI

__all__ = ["FakeSSHManager", "FakeUpCloudAPI"]
