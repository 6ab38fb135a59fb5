"""UpCloud provider for DevPod workspaces."""

__version__ = "0.1.0"
