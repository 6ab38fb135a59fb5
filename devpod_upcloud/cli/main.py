"""CLI entry point for the UpCloud DevPod provider."""

from __future__ import annotations

import logging
import os
import sys

import fire
import paramiko

from devpod_upcloud.constants import EXIT_CONFIG_ERROR, EXIT_ERROR
from devpod_upcloud.core.signals import setup_signal_handlers
from devpod_upcloud.logging import StreamFormatter, StreamRoutingFilter
from devpod_upcloud.providers.exceptions import ConfigError, ErrorKind, ProviderError

CLI_NAME = "devpod-provider-upcloud"

DEBUG_ENV_VAR = "DEVPOD_UPCLOUD_DEBUG"

NOISY_LOGGERS = ("urllib3", "requests", "paramiko")


def get_provider_class() -> type:
    """Get Provider class on-demand to avoid circular imports.

    Returns
    -------
    type
        Provider command class
    """
    from devpod_upcloud.__main__ import Provider

    return Provider


def is_debug_mode() -> bool:
    return os.environ.get(DEBUG_ENV_VAR) == "1"


def handle_provider_error(error: ProviderError, debug_mode: bool) -> None:
    """Handle a classified provider error with kind-specific guidance.

    Parameters
    ----------
    error : ProviderError
        The classified provider error
    debug_mode : bool
        Whether debug mode is enabled

    Raises
    ------
    ProviderError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    kind = error.kind

    if kind is ErrorKind.AUTHENTICATION:
        print(f"UpCloud authentication failed: {error}\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  - Check UPCLOUD_USERNAME and UPCLOUD_PASSWORD", file=sys.stderr)
        print(
            "  - Make sure API access is enabled for the UpCloud account",
            file=sys.stderr,
        )
    elif kind is ErrorKind.QUOTA_EXCEEDED:
        print(f"UpCloud quota exceeded: {error}\n", file=sys.stderr)
        print("This usually means:", file=sys.stderr)
        print("  - Too many servers or plan restrictions reached", file=sys.stderr)
        print("  - Billing needs attention", file=sys.stderr)
        print("  - Too many API requests in a short time", file=sys.stderr)
    elif kind is ErrorKind.INVALID_PARAMETER:
        print(f"Configuration error: {error}\n", file=sys.stderr)
        print("List available plans with:", file=sys.stderr)
        print(f"  {CLI_NAME} plans --recommended", file=sys.stderr)
        sys.exit(EXIT_CONFIG_ERROR)
    elif kind is ErrorKind.NETWORK_TIMEOUT:
        print(f"UpCloud request timed out: {error}", file=sys.stderr)
    else:
        print(f"UpCloud API error: {error}", file=sys.stderr)

    sys.exit(EXIT_ERROR)


def handle_value_error(error: ValueError | ConfigError, debug_mode: bool) -> None:
    """Handle missing options and rejected arguments.

    Raises
    ------
    ValueError, ConfigError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Configuration error: {error}", file=sys.stderr)
    sys.exit(EXIT_CONFIG_ERROR)


def handle_ssh_error(error: Exception, debug_mode: bool) -> None:
    """Handle SSH connectivity error.

    Raises
    ------
    OSError, paramiko.SSHException
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"SSH connectivity error: {error}\n", file=sys.stderr)
    print("This usually means:", file=sys.stderr)
    print("  - Server not yet ready", file=sys.stderr)
    print("  - Firewall blocking port 22", file=sys.stderr)
    print("  - Machine key missing from the machine folder\n", file=sys.stderr)
    print("Debugging steps:", file=sys.stderr)
    print("  1. Wait 30-60 seconds and try again", file=sys.stderr)
    print(f"  2. Verify the server is running: {CLI_NAME} status", file=sys.stderr)
    sys.exit(EXIT_ERROR)


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> None:
    """Handle unexpected runtime error.

    Raises
    ------
    RuntimeError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise

    print(f"Unexpected error: {error}", file=sys.stderr)
    sys.exit(EXIT_ERROR)


def configure_logging(debug_mode: bool = False) -> None:
    """Route log records to stderr, keeping stdout for command output."""
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(StreamFormatter("%(message)s"))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        StreamFormatter("%(name)s: %(message)s" if debug_mode else "%(message)s")
    )
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    logging.basicConfig(
        level=logging.DEBUG if debug_mode else logging.INFO,
        handlers=[stdout_handler, stderr_handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    """Entry point for Fire CLI with graceful error handling.

    Each DevPod provider command maps to a method of ``Provider``. Failures are
    reported on stderr and mapped to exit codes; set ``DEVPOD_UPCLOUD_DEBUG=1``
    to get the traceback instead.
    """
    debug_mode = is_debug_mode()
    configure_logging(debug_mode)
    setup_signal_handlers()

    try:
        fire.Fire(get_provider_class()(), name=CLI_NAME)
    except ProviderError as e:
        handle_provider_error(e, debug_mode)
    except (ValueError, ConfigError) as e:
        handle_value_error(e, debug_mode)
    except (OSError, paramiko.SSHException) as e:
        handle_ssh_error(e, debug_mode)
    except RuntimeError as e:
        handle_runtime_error(e, debug_mode)
