import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from devpod_upcloud.providers import DEFAULT_PROVIDER, get_default_zone
from devpod_upcloud.providers.upcloud.constants import DEFAULT_IMAGE

logger = logging.getLogger(__name__)

MACHINE_ID = "MACHINE_ID"
MACHINE_FOLDER = "MACHINE_FOLDER"
UPCLOUD_USERNAME = "UPCLOUD_USERNAME"
UPCLOUD_PASSWORD = "UPCLOUD_PASSWORD"
UPCLOUD_ZONE = "UPCLOUD_ZONE"
UPCLOUD_PLAN = "UPCLOUD_PLAN"
UPCLOUD_STORAGE = "UPCLOUD_STORAGE"
UPCLOUD_IMAGE = "UPCLOUD_IMAGE"
UPCLOUD_TEMPLATE = "UPCLOUD_TEMPLATE"


@dataclass(frozen=True)
class ProviderOptions:
    """Provider options passed by DevPod through the environment.

    Machine fields are empty when the command does not operate on a machine.
    """

    username: str
    password: str
    zone: str
    plan: str
    storage: str
    image: str
    template: str | None = None
    machine_id: str = ""
    machine_folder: str = ""


class OptionsLoader:
    """Load provider options from environment variables.

    Parameters
    ----------
    environ : Mapping[str, str] | None
        Environment to read. If None, ``os.environ`` is used
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.BUILT_IN_DEFAULTS = {
            "zone": get_default_zone(DEFAULT_PROVIDER),
            "plan": "DEV-2xCPU-4GB",
            "storage": "50",
            "image": DEFAULT_IMAGE,
        }

    def _required(self, name: str) -> str:
        value = self.environ.get(name, "")
        if not value:
            raise ValueError(
                f"couldn't find option {name} in environment, "
                f"please make sure {name} is defined"
            )
        return value

    def _optional(self, name: str, default: str | None = None) -> str | None:
        return self.environ.get(name) or default

    def from_env(self, skip_machine: bool = False) -> ProviderOptions:
        """Load every option a machine command needs.

        Parameters
        ----------
        skip_machine : bool
            Do not require ``MACHINE_ID`` and ``MACHINE_FOLDER``

        Returns
        -------
        ProviderOptions
            Loaded options

        Raises
        ------
        ValueError
            If a required variable is missing or empty
        """
        machine_id = ""
        machine_folder = ""

        if not skip_machine:
            machine_id = self._required(MACHINE_ID)
            machine_folder = self._required(MACHINE_FOLDER)

        return ProviderOptions(
            username=self._required(UPCLOUD_USERNAME),
            password=self._required(UPCLOUD_PASSWORD),
            zone=self._required(UPCLOUD_ZONE),
            plan=self._required(UPCLOUD_PLAN),
            storage=self._required(UPCLOUD_STORAGE),
            image=self._required(UPCLOUD_IMAGE),
            template=self._optional(UPCLOUD_TEMPLATE),
            machine_id=machine_id,
            machine_folder=machine_folder,
        )

    def from_env_init(self) -> ProviderOptions:
        """Load options for ``init``, which only requires credentials.

        Unset placement options fall back to ``BUILT_IN_DEFAULTS``.

        Raises
        ------
        ValueError
            If a credential variable is missing or empty
        """
        username = self._required(UPCLOUD_USERNAME)
        password = self._required(UPCLOUD_PASSWORD)

        options = ProviderOptions(
            username=username,
            password=password,
            zone=self._optional(UPCLOUD_ZONE, self.BUILT_IN_DEFAULTS["zone"]),
            plan=self._optional(UPCLOUD_PLAN, self.BUILT_IN_DEFAULTS["plan"]),
            storage=self._optional(UPCLOUD_STORAGE, self.BUILT_IN_DEFAULTS["storage"]),
            image=self._optional(UPCLOUD_IMAGE, self.BUILT_IN_DEFAULTS["image"]),
            template=self._optional(UPCLOUD_TEMPLATE),
        )
        logger.debug("Init options: zone=%s plan=%s", options.zone, options.plan)
        return options
