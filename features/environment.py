"""Behave environment configuration for provider acceptance tests."""

import logging
import shutil
import sys
import tempfile
from pathlib import Path

# Step modules import the shared fakes from tests.unit.fakes.
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from behave.model import Scenario  # noqa: E402
from behave.runner import Context  # noqa: E402

from devpod_upcloud.constants import WorkspaceStatus  # noqa: E402
from devpod_upcloud.core.signals import reset_cancellation  # noqa: E402
from devpod_upcloud.providers.upcloud.simulated import SimulationStore  # noqa: E402

logger = logging.getLogger(__name__)

PROVIDER_LOGGER = "devpod_upcloud"


class LogCapture(logging.Handler):
    """Custom logging handler for capturing log records in tests."""

    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def before_all(context: Context) -> None:
    """Setup executed before all tests."""
    context.project_root = Path(__file__).parent.parent


def before_scenario(context: Context, scenario: Scenario) -> None:
    """Give every scenario a fresh machine folder, environment and store."""
    reset_cancellation()

    context.machine_dir = Path(tempfile.mkdtemp(prefix="devpod-upcloud-"))
    context.env = {
        "UPCLOUD_ZONE": "de-fra1",
        "UPCLOUD_PLAN": "DEV-2xCPU-4GB",
        "UPCLOUD_STORAGE": "50",
        "UPCLOUD_IMAGE": "Ubuntu Server 22.04 LTS (Jammy Jellyfish)",
        "MACHINE_ID": "devpod-behave",
        "MACHINE_FOLDER": str(context.machine_dir),
    }
    context.simulation_store = SimulationStore(
        default_status=WorkspaceStatus.NOT_FOUND
    )
    context.client_factory = None
    context.fake_api = None
    context.exit_code = None
    context.stdout = None
    context.stderr = None

    log_handler = LogCapture()
    log_handler.setLevel(logging.DEBUG)
    context.log_handler = log_handler
    context.log_records = log_handler.records

    provider_logger = logging.getLogger(PROVIDER_LOGGER)
    provider_logger.addHandler(log_handler)
    provider_logger.setLevel(logging.DEBUG)


def after_scenario(context: Context, scenario: Scenario) -> None:
    """Cleanup executed after each scenario."""
    logging.getLogger(PROVIDER_LOGGER).removeHandler(context.log_handler)

    try:
        shutil.rmtree(context.machine_dir)
    except OSError as e:
        logger.warning("Failed to remove %s: %s", context.machine_dir, e)
