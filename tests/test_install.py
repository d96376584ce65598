"""Tests for the installer plan and execution."""
from unittest.mock import MagicMock

import pytest

from tailmesh.modules.base import ProbeStatus
from tailmesh.modules.install import Installer
from tests.conftest import make_result


@pytest.fixture
def client():
    c = MagicMock()
    c.binary = "tailscale"
    c.version.return_value = None
    return c


@pytest.fixture
def installer(executor, client, tmp_path):
    inst = Installer(executor, client=client, ssh_key=tmp_path / ".ssh" / "id_ed25519", auth_key="tskey-abc")
    inst.services = MagicMock()
    inst.services.is_running.return_value = True
    return inst


def test_plan_steps(installer):
    assert [s.name for s in installer.plan()] == ["tailscale", "ssh_server", "ssh_key", "tailscale_up"]


@pytest.mark.parametrize(
    "os_type,first",
    [
        ("Windows", "winget"),
        ("Darwin", "brew"),
    ],
)
def test_tailscale_install_command_per_os(executor, client, os_type, first):
    executor.system_info.os_type = os_type
    step = Installer(executor, client=client).plan()[0]
    assert step.commands[0][0] == first


def test_linux_uses_install_script(installer):
    command = installer.plan()[0].commands[0]
    assert "https://tailscale.com/install.sh" in command[-1]


def test_tailscale_up_carries_auth_key_as_secret(installer):
    step = installer.plan()[-1]
    assert step.commands[0] == ["tailscale", "up", "--auth-key", "tskey-abc"]
    assert step.secrets == ["tskey-abc"]


def test_run_skips_satisfied_steps(installer, client, executor, tmp_path):
    client.version.return_value = "1.76.1"
    key = tmp_path / ".ssh" / "id_ed25519"
    key.parent.mkdir(parents=True)
    key.write_text("key")
    executor.run_command.return_value = make_result()  # tailscale status succeeds
    steps = installer.run(auto=True)
    assert all(s.status == ProbeStatus.PASS and not s.changed for s in steps)
    assert executor.run_command.call_count == 1


def test_run_executes_missing_steps(installer, executor, tmp_path):
    executor.run_command.side_effect = [
        make_result(),                    # install tailscale
        make_result(),                    # ssh-keygen
        make_result(return_code=1),       # tailscale status: not logged in
        make_result(),                    # tailscale up
    ]
    steps = {s.name: s for s in installer.run(auto=True)}
    assert steps["tailscale"].changed is True
    assert steps["ssh_key"].changed is True
    assert steps["tailscale_up"].changed is True
    assert (tmp_path / ".ssh").is_dir()
    keygen = executor.run_command.call_args_list[1][0][0]
    assert keygen[0] == "ssh-keygen"
    up_kwargs = executor.run_command.call_args_list[3][1]
    assert up_kwargs["redact"] == ["tskey-abc"]


def test_run_stops_after_failure(installer, executor):
    executor.run_command.return_value = make_result(return_code=1, stderr="curl: (6) Could not resolve host")
    steps = installer.run(auto=True)
    assert steps[0].status == ProbeStatus.FAIL
    assert "Could not resolve host" in steps[0].message
    assert [s.status for s in steps[1:]] == [ProbeStatus.UNKNOWN] * 3
    assert executor.run_command.call_count == 1


def test_run_declined_step(installer, executor, client, tmp_path):
    client.version.return_value = "1.76.1"
    executor.run_command.return_value = make_result()
    confirm = MagicMock(return_value=False)
    steps = {s.name: s for s in installer.run(auto=False, confirm=confirm)}
    assert steps["ssh_key"].status == ProbeStatus.UNKNOWN
    assert steps["ssh_key"].message == "skipped"
    assert not (tmp_path / ".ssh" / "id_ed25519").exists()
