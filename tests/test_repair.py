"""Tests for local diagnosis and repair."""
from unittest.mock import MagicMock

import pytest

from tailmesh.modules.base import ProbeStatus
from tailmesh.modules.repair import Repairer
from tests.conftest import make_result


@pytest.fixture
def repairer(executor):
    client = MagicMock()
    client.binary = "tailscale"
    client.version.return_value = "1.76.1"
    client.up.return_value = make_result()
    r = Repairer(executor, client=client)
    r.services = MagicMock()
    r.services.is_running.return_value = True
    r.services.start.return_value = make_result()
    return r


def _by_name(steps):
    return {s.name: s for s in steps}


def test_checks_linux(repairer):
    assert [c.name for c in repairer.checks] == [
        "tailscale_installed",
        "tailscale_service",
        "tailscale_login",
        "ssh_server",
    ]


def test_checks_windows_include_firewall(executor):
    executor.system_info.os_type = "Windows"
    names = [c.name for c in Repairer(executor, client=MagicMock()).checks]
    assert "firewall_icmp" in names
    assert "firewall_ssh" in names


def test_diagnose_all_good(repairer, executor):
    executor.run_command.return_value = make_result(stdout="100.64.0.1  workstation  alice@  linux  -\n")
    steps = repairer.diagnose()
    assert all(s.status == ProbeStatus.PASS for s in steps)


def test_diagnose_logged_out(repairer, executor):
    executor.run_command.return_value = make_result(return_code=1, stdout="Logged out.\n")
    steps = _by_name(repairer.diagnose())
    assert steps["tailscale_login"].status == ProbeStatus.FAIL


def test_diagnose_service_unqueryable(repairer, executor):
    repairer.services.is_running.return_value = None
    executor.run_command.return_value = make_result()
    steps = _by_name(repairer.diagnose())
    assert steps["tailscale_service"].status == ProbeStatus.UNKNOWN


def test_repair_auto_starts_stopped_service(repairer, executor):
    executor.run_command.return_value = make_result()
    repairer.services.is_running.side_effect = [False, True, True]
    steps = _by_name(repairer.repair(auto=True))
    repairer.services.start.assert_called_once_with("tailscale")
    assert steps["tailscale_service"].status == ProbeStatus.PASS
    assert steps["tailscale_service"].changed is True


def test_repair_declined_skips_fix(repairer, executor):
    executor.run_command.return_value = make_result(return_code=1, stdout="Logged out.\n")
    confirm = MagicMock(return_value=False)
    steps = _by_name(repairer.repair(auto=False, confirm=confirm))
    repairer.client.up.assert_not_called()
    confirm.assert_called_once()
    assert steps["tailscale_login"].status == ProbeStatus.FAIL
    assert steps["tailscale_login"].changed is False


def test_repair_logs_in_when_logged_out(repairer, executor):
    executor.run_command.side_effect = [
        make_result(return_code=1, stdout="Logged out.\n"),
        make_result(stdout="100.64.0.1  workstation  alice@  linux  -\n"),
    ]
    steps = _by_name(repairer.repair(auto=True))
    repairer.client.up.assert_called_once()
    assert steps["tailscale_login"].status == ProbeStatus.PASS


def test_repair_fix_failure_reported(repairer, executor):
    executor.run_command.return_value = make_result()
    repairer.services.is_running.side_effect = lambda name: name != "ssh"
    repairer.services.start.return_value = make_result(return_code=1, stderr="sudo: a password is required")
    steps = _by_name(repairer.repair(auto=True))
    assert steps["ssh_server"].status == ProbeStatus.FAIL
    assert "password is required" in steps["ssh_server"].message
    assert steps["ssh_server"].changed is False


def test_not_installed_has_no_automatic_fix(repairer, executor):
    executor.run_command.return_value = make_result()
    repairer.client.version.return_value = None
    steps = _by_name(repairer.repair(auto=True))
    assert steps["tailscale_installed"].status == ProbeStatus.FAIL
