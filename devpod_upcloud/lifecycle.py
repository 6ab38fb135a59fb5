from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Callable, Mapping
from typing import Any

import yaml

from devpod_upcloud.constants import WorkspaceStatus
from devpod_upcloud.core.config import OptionsLoader, ProviderOptions
from devpod_upcloud.core.interfaces import LifecycleClient, ServerConfig
from devpod_upcloud.providers.exceptions import ProviderError
from devpod_upcloud.providers.upcloud.plans import PlanSpec, ServerPlans
from devpod_upcloud.services.keys import MachineKeys
from devpod_upcloud.templates import CLOUD_INIT_SCRIPT

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("table", "json", "yaml")


def format_plan_line(
    plan: PlanSpec, is_default: bool, mark_recommended: bool = True
) -> str:
    """Render one plan as a single table row.

    Parameters
    ----------
    plan : PlanSpec
        Plan to render
    is_default : bool
        Whether the plan is the catalog default
    mark_recommended : bool
        Whether to star and tag individually recommended plans

    Returns
    -------
    str
        Row such as ``★ DEV-2xCPU-4GB  2 CPU, 4 GB RAM, 60 GB Storage - €18.00/month``
    """
    starred = is_default or (mark_recommended and plan.recommended)
    line = "★ " if starred else "  "
    line += f"{plan.id:<20} {plan.cpu} CPU, {plan.ram / 1024:g} GB RAM"

    if plan.storage > 0:
        line += f", {plan.storage} GB Storage"

    line += f" - €{plan.price_monthly:.2f}/month"

    if is_default:
        line += " [DEFAULT]"
    if mark_recommended and plan.recommended:
        line += " [RECOMMENDED]"

    return line


def format_plan_details(plan: PlanSpec, indent: str = "    ") -> list[str]:
    lines = [f"{indent}{plan.description}"]
    if plan.use_cases:
        lines.append(f"{indent}Use cases: {', '.join(plan.use_cases)}")
    if plan.max_per_account:
        lines.append(f"{indent}⚠️  Max {plan.max_per_account} per account")
    return lines


class LifecycleManager:
    """Implements the DevPod provider commands.

    Parameters
    ----------
    options_loader : OptionsLoader
        Loader for the environment options DevPod passes
    client_factory : Callable[[str, str], LifecycleClient]
        Builds the lifecycle client for a username and password
    ssh_manager_factory : Callable[..., Any]
        Builds an SSH manager from ``host`` and ``pkey``
    plans_loader : Callable[[], ServerPlans]
        Returns the plan catalog
    keys_factory : Callable[[str], MachineKeys]
        Builds the key pair accessor for a machine folder
    environ : Mapping[str, str] | None
        Environment used for ``COMMAND``. If None, ``os.environ`` is used
    """

    def __init__(
        self,
        options_loader: OptionsLoader,
        client_factory: Callable[[str, str], LifecycleClient],
        ssh_manager_factory: Callable[..., Any],
        plans_loader: Callable[[], ServerPlans],
        keys_factory: Callable[[str], MachineKeys] = MachineKeys,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.options_loader = options_loader
        self.client_factory = client_factory
        self.ssh_manager_factory = ssh_manager_factory
        self.plans_loader = plans_loader
        self.keys_factory = keys_factory
        self.environ = os.environ if environ is None else environ

    def _machine_client(self) -> tuple[ProviderOptions, LifecycleClient]:
        options = self.options_loader.from_env()
        return options, self.client_factory(options.username, options.password)

    def init(self) -> None:
        """Validate the credentials against the UpCloud API.

        Raises
        ------
        ValueError
            If the credentials are not set
        ProviderError
            If authentication fails
        """
        options = self.options_loader.from_env_init()
        client = self.client_factory(options.username, options.password)
        client.test_connection()
        logger.info("Successfully initialized UpCloud provider")

    def create(self) -> None:
        """Create the workspace server with the machine key installed for root."""
        options, client = self._machine_client()

        public_key = self.keys_factory(options.machine_folder).public_key()

        config = ServerConfig(
            workspace_id=options.machine_id,
            zone=options.zone,
            plan=options.plan,
            storage=options.storage,
            image=options.image,
            template=options.template,
            ssh_public_key=public_key,
            user_data=CLOUD_INIT_SCRIPT,
        )

        logger.info("Creating UpCloud server %s...", options.machine_id)
        client.create(config)
        logger.info("Successfully created server %s", options.machine_id)

    def delete(self) -> None:
        options, client = self._machine_client()
        logger.info("Deleting UpCloud server %s...", options.machine_id)
        client.delete(options.machine_id)
        logger.info("Successfully deleted server %s", options.machine_id)

    def start(self) -> None:
        options, client = self._machine_client()
        logger.info("Starting UpCloud server %s...", options.machine_id)
        client.start(options.machine_id)
        logger.info("Successfully started server %s", options.machine_id)

    def stop(self) -> None:
        options, client = self._machine_client()
        logger.info("Stopping UpCloud server %s...", options.machine_id)
        client.stop(options.machine_id)
        logger.info("Successfully stopped server %s", options.machine_id)

    def status(self) -> None:
        """Print the workspace status for DevPod.

        Exactly one of ``Running``, ``Stopped``, ``Busy`` or ``NotFound`` is
        printed. When the lookup fails ``NotFound`` is printed and the error is
        re-raised so the process exits non-zero.
        """
        options, client = self._machine_client()

        try:
            status = client.status(options.machine_id)
        except ProviderError:
            print(WorkspaceStatus.NOT_FOUND.value)
            raise

        print(status)

    def command(self) -> None:
        """Run ``$COMMAND`` on the workspace server as root.

        The remote command is wired to this process's stdin, stdout and
        stderr. The process exits with the remote exit status when it is
        non-zero.

        Raises
        ------
        ValueError
            If ``COMMAND`` is empty
        ProviderError
            If the server address cannot be determined
        ConnectionError
            If the SSH connection cannot be established
        """
        command = self.environ.get("COMMAND", "")
        if not command:
            raise ValueError("COMMAND environment variable is empty")

        options, client = self._machine_client()

        if client.simulated:
            logger.info("Test mode: simulating command execution: %s", command)
            return

        host = client.get_address(options.machine_id)
        pkey = self.keys_factory(options.machine_folder).load_private_key()

        ssh_manager = self.ssh_manager_factory(host=host, pkey=pkey)
        ssh_manager.connect()

        try:
            exit_code = ssh_manager.run(command)
        finally:
            ssh_manager.close()

        if exit_code != 0:
            sys.exit(exit_code)

    def plans(
        self,
        detailed: bool = False,
        recommended: bool = False,
        category: str | None = None,
        format: str = "table",
    ) -> None:
        """Print the server plan catalog.

        Parameters
        ----------
        detailed : bool
            Include descriptions, use cases and restrictions
        recommended : bool
            Only show plans recommended for DevPod
        category : str | None
            Only show one category
        format : str
            ``table``, ``json`` or ``yaml``

        Raises
        ------
        ValueError
            If the format or category is unknown
        """
        if format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output format '{format}'. "
                f"Valid formats: {', '.join(OUTPUT_FORMATS)}"
            )

        catalog = self.plans_loader()

        if category and category not in catalog.categories:
            raise ValueError(
                f"category '{category}' not found. "
                f"Available categories: {', '.join(catalog.categories)}"
            )

        if format == "json":
            print(self._render_json(catalog, recommended, category))
        elif format == "yaml":
            print(self._render_yaml(catalog, recommended, category), end="")
        elif recommended:
            print(self._render_recommended(catalog, detailed))
        elif category:
            print(self._render_category(catalog, category, detailed))
        else:
            print(self._render_catalog(catalog, detailed))

    def _render_catalog(self, catalog: ServerPlans, detailed: bool) -> str:
        lines = [
            f"UpCloud Server Plans (v{catalog.version})",
            f"Last Updated: {catalog.last_updated}",
            f"Default Plan: {catalog.default_plan_id}",
            "",
        ]

        for key in catalog.categories:
            lines.extend(self._category_lines(catalog, key, detailed))
            lines.append("")

        return "\n".join(lines).rstrip("\n")

    def _render_category(self, catalog: ServerPlans, key: str, detailed: bool) -> str:
        return "\n".join(self._category_lines(catalog, key, detailed))

    def _category_lines(
        self, catalog: ServerPlans, key: str, detailed: bool
    ) -> list[str]:
        category = catalog.categories[key]
        lines = [f"{category.icon} {category.name}", "=" * 37]

        if category.recommended_for_devpod:
            lines.append("⭐ Recommended for DevPod")
        if category.billed_when_on_only:
            lines.append("💰 Billed only when powered on")
        lines.append(category.description)
        lines.append("")

        for plan in category.plans:
            lines.append(
                format_plan_line(plan, is_default=plan.id == catalog.default_plan_id)
            )
            if detailed:
                lines.extend(format_plan_details(plan))
                lines.append("")

        return lines

    def _render_recommended(self, catalog: ServerPlans, detailed: bool) -> str:
        lines = ["🌟 Recommended Plans for DevPod", "=" * 32, ""]

        for plan in catalog.recommended_plans():
            lines.append(
                format_plan_line(
                    plan,
                    is_default=plan.id == catalog.default_plan_id,
                    mark_recommended=False,
                )
            )
            if detailed:
                lines.extend(format_plan_details(plan))
                lines.append("")

        lines.append("")
        lines.append(
            "💡 Tip: Developer plans offer the best value for development workspaces"
        )
        lines.append("   Use --category developer to see all developer plans")
        return "\n".join(lines)

    def _render_json(
        self, catalog: ServerPlans, recommended: bool, category: str | None
    ) -> str:
        output = []

        for key, plan_category in catalog.categories.items():
            if category and key != category:
                continue

            for plan in plan_category.plans:
                is_default = plan.id == catalog.default_plan_id
                if recommended and not plan.recommended and not is_default:
                    continue

                entry: dict[str, Any] = {
                    "id": plan.id,
                    "display_name": plan.display_name,
                    "category": key,
                    "cpu": plan.cpu,
                    "ram_mb": plan.ram,
                    "storage_gb": plan.storage,
                    "price_monthly_eur": plan.price_monthly,
                    "price_hourly_eur": plan.price_hourly,
                    "recommended": plan.recommended
                    or plan_category.recommended_for_devpod,
                    "default": is_default,
                }
                if plan.use_cases:
                    entry["use_cases"] = list(plan.use_cases)
                output.append(entry)

        return json.dumps(output, indent=2, ensure_ascii=False)

    def _render_yaml(
        self, catalog: ServerPlans, recommended: bool, category: str | None
    ) -> str:
        document = catalog.to_dict()

        if category:
            document["categories"] = {category: document["categories"][category]}
        elif recommended:
            document["categories"] = {
                key: value
                for key, value in document["categories"].items()
                if value["recommended_for_devpod"]
            }

        return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
