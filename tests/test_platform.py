"""Tests for service manager and firewall helpers."""
import pytest

from tailmesh.modules.platform import ServiceManager, WindowsFirewall, elevate
from tests.conftest import make_result


def test_elevate_windows_untouched():
    assert elevate(["sc", "start", "sshd"], "Windows") == ["sc", "start", "sshd"]


def test_elevate_posix_non_root(monkeypatch):
    monkeypatch.setattr("tailmesh.modules.platform.os.geteuid", lambda: 1000, raising=False)
    assert elevate(["systemctl", "start", "ssh"], "Linux") == ["sudo", "-n", "systemctl", "start", "ssh"]


def test_elevate_posix_root(monkeypatch):
    monkeypatch.setattr("tailmesh.modules.platform.os.geteuid", lambda: 0, raising=False)
    assert elevate(["systemctl", "start", "ssh"], "Linux") == ["systemctl", "start", "ssh"]


class TestServiceManagerLinux:
    def test_running(self, executor):
        executor.run_command.return_value = make_result(stdout="active\n")
        assert ServiceManager(executor).is_running("tailscale") is True
        assert executor.run_command.call_args[0][0] == ["systemctl", "is-active", "tailscaled"]

    def test_not_running(self, executor):
        executor.run_command.return_value = make_result(return_code=3, stdout="inactive\n")
        assert ServiceManager(executor).is_running("tailscale") is False

    def test_ssh_checks_both_unit_names(self, executor):
        executor.run_command.side_effect = [
            make_result(return_code=4, stdout="inactive\n"),
            make_result(stdout="active\n"),
        ]
        assert ServiceManager(executor).is_running("ssh") is True
        names = [c[0][0][-1] for c in executor.run_command.call_args_list]
        assert names == ["ssh", "sshd"]

    def test_unqueryable(self, executor):
        executor.run_command.return_value = make_result(return_code=-1, error="No such file")
        assert ServiceManager(executor).is_running("tailscale") is None

    def test_start_uses_systemctl(self, executor, monkeypatch):
        monkeypatch.setattr("tailmesh.modules.platform.os.geteuid", lambda: 0, raising=False)
        ServiceManager(executor).start("tailscale")
        assert executor.run_command.call_args[0][0] == ["systemctl", "start", "tailscaled"]


class TestServiceManagerWindows:
    @pytest.fixture(autouse=True)
    def windows(self, executor):
        executor.system_info.os_type = "Windows"

    def test_running(self, executor):
        executor.run_command.return_value = make_result(stdout="SERVICE_NAME: sshd\n        STATE              : 4  RUNNING\n")
        assert ServiceManager(executor).is_running("ssh") is True
        assert executor.run_command.call_args[0][0] == ["sc", "query", "sshd"]

    def test_stopped(self, executor):
        executor.run_command.return_value = make_result(stdout="        STATE              : 1  STOPPED\n")
        assert ServiceManager(executor).is_running("tailscale") is False

    def test_start(self, executor):
        ServiceManager(executor).start("tailscale")
        assert executor.run_command.call_args[0][0] == ["sc", "start", "Tailscale"]


class TestWindowsFirewall:
    def test_has_rule(self, executor):
        executor.run_command.return_value = make_result(stdout="Rule Name: tailmesh-icmpv4-in\n")
        assert WindowsFirewall(executor).has_rule("icmp") is True
        assert "name=tailmesh-icmpv4-in" in executor.run_command.call_args[0][0]

    def test_missing_rule(self, executor):
        executor.run_command.return_value = make_result(return_code=1, stdout="No rules match the specified criteria.")
        assert WindowsFirewall(executor).has_rule("ssh") is False

    def test_add_rule(self, executor):
        WindowsFirewall(executor).add_rule("ssh")
        argv = executor.run_command.call_args[0][0]
        assert argv[:5] == ["netsh", "advfirewall", "firewall", "add", "rule"]
        assert "localport=22" in argv
        assert "action=allow" in argv
