"""UpCloud server plan catalog.

The catalog is a versioned YAML document bundled with the package. It is
loaded once per process and never mutated afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from devpod_upcloud.providers.exceptions import ConfigError, ErrorKind, ProviderError

logger = logging.getLogger(__name__)

SERVER_PLANS_PATH = Path(__file__).parent / "data" / "server-plans.yaml"

REQUIRED_FIELDS = ("version", "default_plan", "categories", "selection_rules", "metadata")

DEVELOPER_CATEGORY = "developer"
CLOUD_NATIVE_CATEGORY = "cloud_native"
GENERAL_PURPOSE_CATEGORY = "general_purpose"

SUGGESTION_MAX_CPU = 4
SUGGESTION_MAX_RAM_MB = 8192


class PlanNotFoundError(ProviderError):
    """Raised when no catalog category contains the requested plan id."""

    def __init__(self, plan_id: str) -> None:
        super().__init__(ErrorKind.NOT_FOUND, f"plan {plan_id} not found")
        self.plan_id = plan_id


@dataclass(frozen=True)
class PlanSpec:
    """Single server plan offered by UpCloud."""

    id: str
    display_name: str = ""
    description: str = ""
    cpu: int = 0
    ram: int = 0
    storage: int = 0
    price_monthly: float = 0.0
    price_hourly: float = 0.0
    use_cases: tuple[str, ...] = ()
    default: bool = False
    recommended: bool = False
    max_per_account: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "display_name": self.display_name,
            "description": self.description,
            "cpu": self.cpu,
            "ram": self.ram,
            "storage": self.storage,
            "price_monthly": self.price_monthly,
            "price_hourly": self.price_hourly,
            "use_cases": list(self.use_cases),
            "default": self.default,
            "recommended": self.recommended,
        }
        if self.max_per_account:
            data["restrictions"] = {"max_per_account": self.max_per_account}
        return data


@dataclass(frozen=True)
class PlanCategory:
    """Group of plans sharing billing and recommendation properties."""

    key: str
    name: str = ""
    description: str = ""
    icon: str = ""
    recommended_for_devpod: bool = False
    billed_when_on_only: bool = False
    plans: tuple[PlanSpec, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "recommended_for_devpod": self.recommended_for_devpod,
            "billed_when_on_only": self.billed_when_on_only,
            "plans": [plan.to_dict() for plan in self.plans],
        }


@dataclass(frozen=True)
class SelectionRules:
    """Resource floor and advisory plan recommendations."""

    minimum_cpu: int = 0
    minimum_ram: int = 0
    minimum_storage: int = 0
    default: str = ""
    by_language: dict[str, str] = field(default_factory=dict)
    by_framework: dict[str, str] = field(default_factory=dict)
    by_workload: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CatalogMetadata:
    """Provider-level facts about the catalog."""

    provider: str = ""
    api_version: str = ""
    currency: str = ""
    billing_unit: str = ""
    regions_available: tuple[str, ...] = ()


@dataclass(frozen=True)
class ServerPlans:
    """Complete plan catalog.

    Parameters
    ----------
    version : str
        Catalog document version
    last_updated : str
        Date the catalog data was last refreshed
    default_plan_id : str
        Plan id used when the user does not choose one
    categories : dict[str, PlanCategory]
        Categories keyed by category key, in declaration order
    selection_rules : SelectionRules
        Minimum requirements and recommendation tables
    metadata : CatalogMetadata
        Provider name, currency and valid regions
    """

    version: str
    last_updated: str
    default_plan_id: str
    categories: dict[str, PlanCategory]
    selection_rules: SelectionRules
    metadata: CatalogMetadata

    def find_plan(self, plan_id: str) -> tuple[PlanSpec, PlanCategory]:
        """Find a plan by exact, case-sensitive id.

        Parameters
        ----------
        plan_id : str
            Plan id, e.g. ``DEV-2xCPU-4GB``

        Returns
        -------
        tuple[PlanSpec, PlanCategory]
            The plan and the category that owns it

        Raises
        ------
        PlanNotFoundError
            If no category contains the plan
        """
        for category in self.categories.values():
            for plan in category.plans:
                if plan.id == plan_id:
                    return plan, category
        raise PlanNotFoundError(plan_id)

    def validate_plan(self, plan_id: str) -> bool:
        try:
            self.find_plan(plan_id)
        except PlanNotFoundError:
            return False
        return True

    def default_plan(self) -> tuple[PlanSpec, PlanCategory]:
        """Return the catalog default plan and its category.

        Raises
        ------
        PlanNotFoundError
            If ``default_plan_id`` names a plan that does not exist
        """
        return self.find_plan(self.default_plan_id)

    def recommended_plans(self) -> list[PlanSpec]:
        """Return plans recommended for DevPod workspaces.

        Every plan of a recommended category is included, plus individually
        recommended plans from the remaining categories. Declaration order is
        preserved.
        """
        plans: list[PlanSpec] = []
        for category in self.categories.values():
            if category.recommended_for_devpod:
                plans.extend(category.plans)
            else:
                plans.extend(plan for plan in category.plans if plan.recommended)
        return plans

    def developer_plans(self) -> list[PlanSpec]:
        category = self.categories.get(DEVELOPER_CATEGORY)
        return list(category.plans) if category else []

    def plan_suggestions(self) -> list[str]:
        """Return plan ids for constrained choice lists.

        Developer plans come first, then cloud native plans, then small
        general purpose plans (at most 4 CPUs and 8 GB of RAM).
        """
        suggestions: list[str] = []

        for key in (DEVELOPER_CATEGORY, CLOUD_NATIVE_CATEGORY):
            category = self.categories.get(key)
            if category:
                suggestions.extend(plan.id for plan in category.plans)

        general = self.categories.get(GENERAL_PURPOSE_CATEGORY)
        if general:
            suggestions.extend(
                plan.id
                for plan in general.plans
                if plan.cpu <= SUGGESTION_MAX_CPU and plan.ram <= SUGGESTION_MAX_RAM_MB
            )

        return suggestions

    def recommend(self, language: str = "", framework: str = "", workload: str = "") -> str:
        """Recommend a plan id for a workspace.

        The workload table wins over the framework table, which wins over the
        language table. Keys are matched case-insensitively and empty criteria
        are skipped.

        Parameters
        ----------
        language : str
            Primary programming language, e.g. ``python``
        framework : str
            Framework, e.g. ``react``
        workload : str
            Workload kind, e.g. ``ml_development``

        Returns
        -------
        str
            Recommended plan id, or the default recommendation
        """
        rules = self.selection_rules
        for criterion, table in (
            (workload, rules.by_workload),
            (framework, rules.by_framework),
            (language, rules.by_language),
        ):
            if not criterion:
                continue
            plan_id = table.get(criterion.lower())
            if plan_id:
                return plan_id
        return rules.default

    def is_valid_region(self, region: str) -> bool:
        return region in self.metadata.regions_available

    def regions(self) -> list[str]:
        return list(self.metadata.regions_available)

    def to_dict(self) -> dict[str, Any]:
        """Return the catalog as plain data in document layout."""
        rules = self.selection_rules
        return {
            "version": self.version,
            "last_updated": self.last_updated,
            "default_plan": self.default_plan_id,
            "categories": {
                key: category.to_dict() for key, category in self.categories.items()
            },
            "selection_rules": {
                "minimum": {
                    "cpu": rules.minimum_cpu,
                    "ram": rules.minimum_ram,
                    "storage": rules.minimum_storage,
                },
                "recommendations": {
                    "default": rules.default,
                    "by_language": dict(rules.by_language),
                    "by_framework": dict(rules.by_framework),
                    "by_workload": dict(rules.by_workload),
                },
            },
            "metadata": {
                "provider": self.metadata.provider,
                "api_version": self.metadata.api_version,
                "currency": self.metadata.currency,
                "billing_unit": self.metadata.billing_unit,
                "regions_available": list(self.metadata.regions_available),
            },
        }


def _lowercase_keys(table: dict[str, Any] | None) -> dict[str, str]:
    return {str(key).lower(): str(value) for key, value in (table or {}).items()}


def _parse_plan(data: dict[str, Any]) -> PlanSpec:
    restrictions = data.get("restrictions") or {}
    return PlanSpec(
        id=str(data["id"]),
        display_name=data.get("display_name", ""),
        description=data.get("description", ""),
        cpu=int(data.get("cpu", 0)),
        ram=int(data.get("ram", 0)),
        storage=int(data.get("storage", 0)),
        price_monthly=float(data.get("price_monthly", 0.0)),
        price_hourly=float(data.get("price_hourly", 0.0)),
        use_cases=tuple(data.get("use_cases") or ()),
        default=bool(data.get("default", False)),
        recommended=bool(data.get("recommended", False)),
        max_per_account=restrictions.get("max_per_account"),
    )


def parse_server_plans(document: dict[str, Any]) -> ServerPlans:
    """Build a catalog from its parsed document.

    Parameters
    ----------
    document : dict[str, Any]
        Parsed catalog document

    Returns
    -------
    ServerPlans
        Catalog model

    Raises
    ------
    ConfigError
        If required fields are missing, sections have the wrong shape, or a
        plan id appears more than once
    """
    if not isinstance(document, dict):
        raise ConfigError("server plans document must be a mapping")

    missing = [name for name in REQUIRED_FIELDS if document.get(name) in (None, "")]
    if missing:
        raise ConfigError(f"server plans document is missing: {', '.join(missing)}")

    try:
        categories: dict[str, PlanCategory] = {}
        seen: set[str] = set()

        for key, raw in document["categories"].items():
            plans = tuple(_parse_plan(plan) for plan in raw.get("plans") or ())
            for plan in plans:
                if plan.id in seen:
                    raise ConfigError(f"duplicate plan id in server plans: {plan.id}")
                seen.add(plan.id)

            categories[str(key)] = PlanCategory(
                key=str(key),
                name=raw.get("name", ""),
                description=raw.get("description", ""),
                icon=raw.get("icon", ""),
                recommended_for_devpod=bool(raw.get("recommended_for_devpod", False)),
                billed_when_on_only=bool(raw.get("billed_when_on_only", False)),
                plans=plans,
            )

        rules = document["selection_rules"]
        minimum = rules.get("minimum") or {}
        recommendations = rules.get("recommendations") or {}
        selection_rules = SelectionRules(
            minimum_cpu=int(minimum.get("cpu", 0)),
            minimum_ram=int(minimum.get("ram", 0)),
            minimum_storage=int(minimum.get("storage", 0)),
            default=str(recommendations.get("default", "")),
            by_language=_lowercase_keys(recommendations.get("by_language")),
            by_framework=_lowercase_keys(recommendations.get("by_framework")),
            by_workload=_lowercase_keys(recommendations.get("by_workload")),
        )

        meta = document["metadata"]
        metadata = CatalogMetadata(
            provider=meta.get("provider", ""),
            api_version=str(meta.get("api_version", "")),
            currency=meta.get("currency", ""),
            billing_unit=meta.get("billing_unit", ""),
            regions_available=tuple(meta.get("regions_available") or ()),
        )
    except ConfigError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"malformed server plans document: {e}") from e

    return ServerPlans(
        version=str(document["version"]),
        last_updated=str(document.get("last_updated", "")),
        default_plan_id=str(document["default_plan"]),
        categories=categories,
        selection_rules=selection_rules,
        metadata=metadata,
    )


def load_server_plans_file(path: Path) -> ServerPlans:
    """Load and parse a catalog document from disk.

    Parameters
    ----------
    path : Path
        YAML catalog path

    Returns
    -------
    ServerPlans
        Parsed catalog

    Raises
    ------
    ConfigError
        If the file cannot be read or parsed
    """
    try:
        cfg = OmegaConf.load(path)
        document = OmegaConf.to_container(cfg, resolve=True)
    except yaml.YAMLError as e:
        logger.error("Failed to parse server plans %s: %s", path, e)
        raise ConfigError(f"failed to parse server plans: {e}") from e
    except OSError as e:
        logger.error("Failed to read server plans %s: %s", path, e)
        raise ConfigError(f"failed to read server plans {path}: {e}") from e
    except OmegaConfBaseException as e:
        logger.error("Failed to resolve server plans %s: %s", path, e)
        raise ConfigError(f"failed to resolve server plans: {e}") from e

    return parse_server_plans(document)


@lru_cache(maxsize=1)
def load_server_plans() -> ServerPlans:
    """Load the bundled catalog, once per process.

    Raises
    ------
    ConfigError
        If the bundled document is malformed
    """
    return load_server_plans_file(SERVER_PLANS_PATH)
