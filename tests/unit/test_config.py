"""Unit tests for environment option loading."""

import pytest

from devpod_upcloud.core.config import OptionsLoader, ProviderOptions

FULL_ENV = {
    "UPCLOUD_USERNAME": "devpod",
    "UPCLOUD_PASSWORD": "secret",
    "UPCLOUD_ZONE": "fi-hel1",
    "UPCLOUD_PLAN": "DEV-2xCPU-8GB",
    "UPCLOUD_STORAGE": "80",
    "UPCLOUD_IMAGE": "Debian 12 (Bookworm)",
    "MACHINE_ID": "devpod-myproject",
    "MACHINE_FOLDER": "/home/user/.devpod/machines/myproject",
}


def test_from_env_loads_all_options() -> None:
    """Test a complete environment yields every option."""
    options = OptionsLoader(FULL_ENV).from_env()

    assert options == ProviderOptions(
        username="devpod",
        password="secret",
        zone="fi-hel1",
        plan="DEV-2xCPU-8GB",
        storage="80",
        image="Debian 12 (Bookworm)",
        template=None,
        machine_id="devpod-myproject",
        machine_folder="/home/user/.devpod/machines/myproject",
    )


def test_from_env_optional_template() -> None:
    """Test the template option is read when set."""
    env = dict(FULL_ENV, UPCLOUD_TEMPLATE="01000000-0000-4000-8000-000020050100")

    assert OptionsLoader(env).from_env().template == (
        "01000000-0000-4000-8000-000020050100"
    )


@pytest.mark.parametrize(
    "name",
    [
        "UPCLOUD_USERNAME",
        "UPCLOUD_PASSWORD",
        "UPCLOUD_ZONE",
        "UPCLOUD_PLAN",
        "UPCLOUD_STORAGE",
        "UPCLOUD_IMAGE",
        "MACHINE_ID",
        "MACHINE_FOLDER",
    ],
)
def test_from_env_missing_required(name: str) -> None:
    """Test a missing variable names itself in the error."""
    env = {key: value for key, value in FULL_ENV.items() if key != name}

    with pytest.raises(ValueError, match=f"couldn't find option {name}"):
        OptionsLoader(env).from_env()


def test_from_env_empty_value_is_missing() -> None:
    """Test an empty variable counts as missing."""
    env = dict(FULL_ENV, UPCLOUD_PLAN="")

    with pytest.raises(ValueError, match="UPCLOUD_PLAN"):
        OptionsLoader(env).from_env()


def test_from_env_skip_machine() -> None:
    """Test machine variables are optional when skipped."""
    env = {
        key: value for key, value in FULL_ENV.items() if not key.startswith("MACHINE")
    }

    options = OptionsLoader(env).from_env(skip_machine=True)

    assert options.machine_id == ""
    assert options.machine_folder == ""


def test_from_env_init_defaults() -> None:
    """Test init needs only credentials and fills placement defaults."""
    options = OptionsLoader(
        {"UPCLOUD_USERNAME": "devpod", "UPCLOUD_PASSWORD": "secret"}
    ).from_env_init()

    assert options.zone == "de-fra1"
    assert options.plan == "DEV-2xCPU-4GB"
    assert options.storage == "50"
    assert options.image == "Ubuntu Server 22.04 LTS (Jammy Jellyfish)"


def test_from_env_init_keeps_explicit_values() -> None:
    """Test explicit placement options win over defaults."""
    options = OptionsLoader(FULL_ENV).from_env_init()

    assert options.zone == "fi-hel1"
    assert options.plan == "DEV-2xCPU-8GB"


def test_from_env_init_requires_credentials() -> None:
    """Test init fails without credentials."""
    with pytest.raises(ValueError, match="UPCLOUD_PASSWORD"):
        OptionsLoader({"UPCLOUD_USERNAME": "devpod"}).from_env_init()


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test os.environ is used when no mapping is given."""
    for name, value in FULL_ENV.items():
        monkeypatch.setenv(name, value)

    assert OptionsLoader().from_env().username == "devpod"
