"""Command line interface."""

from __future__ import annotations

from devpod_upcloud.cli.main import main

__all__ = ["main"]
