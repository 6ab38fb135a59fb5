"""Core provider functionality."""

from __future__ import annotations

from devpod_upcloud.core.interfaces import LifecycleClient, ServerConfig
from devpod_upcloud.core.signals import (
    get_cancel_event,
    request_cancellation,
    reset_cancellation,
    setup_signal_handlers,
)

__all__ = [
    "LifecycleClient",
    "ServerConfig",
    "setup_signal_handlers",
    "get_cancel_event",
    "request_cancellation",
    "reset_cancellation",
]
