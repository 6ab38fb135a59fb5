"""UpCloud lifecycle client implementations."""

from devpod_upcloud.providers.upcloud.compute import UpCloudManager
from devpod_upcloud.providers.upcloud.simulated import (
    SimulatedUpCloudManager,
    SimulationStore,
)

__all__ = ["UpCloudManager", "SimulatedUpCloudManager", "SimulationStore"]
