"""Step definitions driving the provider CLI in-process."""

import functools
import io
import json
import shlex
import sys
from unittest.mock import patch

from behave import given, then, when
from behave.runner import Context

from devpod_upcloud.__main__ import Provider
from devpod_upcloud.cli.main import CLI_NAME, main
from devpod_upcloud.providers.upcloud.compute import UpCloudManager
from tests.unit.fakes import FakeSSHManager, FakeUpCloudAPI


def execute_provider_command(context: Context, command_line: str) -> None:
    """Run a provider command through ``main`` with injected dependencies.

    Parameters
    ----------
    context : Context
        Behave context carrying the environment, store and client factory
    command_line : str
        Arguments after the program name, e.g. ``plans --format json``
    """
    provider_class = functools.partial(
        Provider,
        client_factory=context.client_factory,
        ssh_manager_factory=FakeSSHManager,
        simulation_store=context.simulation_store,
        environ=context.env,
    )

    stdout_capture = io.StringIO()
    stderr_capture = io.StringIO()
    FakeSSHManager.instances.clear()

    with patch.object(sys, "argv", [CLI_NAME, *shlex.split(command_line)]), patch.object(
        sys, "stdout", stdout_capture
    ), patch.object(sys, "stderr", stderr_capture), patch(
        "devpod_upcloud.cli.main.get_provider_class", return_value=provider_class
    ), patch(
        "devpod_upcloud.cli.main.configure_logging"
    ), patch(
        "devpod_upcloud.cli.main.setup_signal_handlers"
    ):
        try:
            main()
            context.exit_code = 0
        except SystemExit as e:
            context.exit_code = e.code if isinstance(e.code, int) else 1

    context.stdout = stdout_capture.getvalue()
    context.stderr = stderr_capture.getvalue()


@given("test credentials")
def step_test_credentials(context: Context) -> None:
    context.env["UPCLOUD_USERNAME"] = "test"
    context.env["UPCLOUD_PASSWORD"] = "test"


@given("live credentials backed by a fake UpCloud API")
def step_live_credentials(context: Context) -> None:
    context.env["UPCLOUD_USERNAME"] = "devpod"
    context.env["UPCLOUD_PASSWORD"] = "secret"
    context.fake_api = FakeUpCloudAPI()

    def client_factory(username: str, password: str) -> UpCloudManager:
        return UpCloudManager(
            username, password, api=context.fake_api, timeout=1, poll_interval=0
        )

    context.client_factory = client_factory


@given('a server "{hostname}" in state "{state}"')
def step_existing_server(context: Context, hostname: str, state: str) -> None:
    context.fake_api.add_server(hostname, state=state)


@given('the option "{name}" is "{value}"')
def step_set_option(context: Context, name: str, value: str) -> None:
    context.env[name] = value


@given('the option "{name}" is unset')
def step_unset_option(context: Context, name: str) -> None:
    context.env.pop(name, None)


@when('I run "{command_line}"')
def step_run(context: Context, command_line: str) -> None:
    execute_provider_command(context, command_line)


@then("the command succeeds")
def step_succeeds(context: Context) -> None:
    assert context.exit_code == 0, (
        f"exit code {context.exit_code}, stderr: {context.stderr}"
    )


@then("the command fails with exit code {exit_code:d}")
def step_fails_with(context: Context, exit_code: int) -> None:
    assert context.exit_code == exit_code, (
        f"expected exit code {exit_code}, got {context.exit_code}, "
        f"stderr: {context.stderr}"
    )


@then('the output is "{expected}"')
def step_output_is(context: Context, expected: str) -> None:
    assert context.stdout.strip() == expected, f"stdout: {context.stdout!r}"


@then('the output contains "{text}"')
def step_output_contains(context: Context, text: str) -> None:
    assert text in context.stdout, f"stdout: {context.stdout!r}"


@then('the output does not contain "{text}"')
def step_output_not_contains(context: Context, text: str) -> None:
    assert text not in context.stdout, f"stdout: {context.stdout!r}"


@then('the error output contains "{text}"')
def step_stderr_contains(context: Context, text: str) -> None:
    assert text in context.stderr, f"stderr: {context.stderr!r}"


@then('the JSON output lists plan "{plan_id}" as the default')
def step_json_default(context: Context, plan_id: str) -> None:
    entries = json.loads(context.stdout)
    defaults = [entry["id"] for entry in entries if entry["default"]]
    assert defaults == [plan_id], f"defaults: {defaults}"


@then('every JSON entry is in category "{category}"')
def step_json_category(context: Context, category: str) -> None:
    entries = json.loads(context.stdout)
    assert entries
    assert {entry["category"] for entry in entries} == {category}


@then('the server was created with plan "{plan}" in zone "{zone}"')
def step_created_with(context: Context, plan: str, zone: str) -> None:
    request = context.fake_api.created_requests[-1]
    assert request["plan"] == plan
    assert request["zone"] == zone


@then("no server was created")
def step_none_created(context: Context) -> None:
    assert context.fake_api.created_requests == []


@then("no servers remain")
def step_no_servers(context: Context) -> None:
    assert context.fake_api.servers == {}


@then('the remote command "{command}" ran on "{host}"')
def step_remote_command(context: Context, command: str, host: str) -> None:
    ssh_manager = FakeSSHManager.instances[-1]
    assert ssh_manager.host == host
    assert ssh_manager.commands == [command]


@then("no SSH connection was made")
def step_no_ssh(context: Context) -> None:
    assert FakeSSHManager.instances == []
