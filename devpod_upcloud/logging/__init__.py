"""Logging configuration helpers for the CLI."""

from devpod_upcloud.logging.formatters import StreamFormatter, StreamRoutingFilter

__all__ = ["StreamFormatter", "StreamRoutingFilter"]
