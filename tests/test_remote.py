"""Tests for RSSH hostname resolution and ssh command assembly."""
from pathlib import Path

import pytest

from tailmesh.ssh.remote import RemoteShell
from tailmesh.tailscale.status import parse_status_output
from tests.conftest import STATUS_OUTPUT


@pytest.fixture
def machines():
    return parse_status_output(STATUS_OUTPUT)


@pytest.fixture
def shell(executor):
    return RemoteShell(executor, user="alice", key=Path("/keys/id_ed25519"), connect_timeout=2)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("nas", "100.101.102.104"),
        ("NAS", "100.101.102.104"),
        ("Win-Desktop", "100.101.102.105"),
        ("100.64.9.9", "100.64.9.9"),
        ("unknown-host", "unknown-host"),
    ],
)
def test_resolve_host(shell, machines, name, expected):
    assert shell.resolve_host(name, machines) == expected


def test_resolve_host_short_name(shell):
    machines = parse_status_output("100.64.0.7  nas.tail1234.ts.net  alice@  linux  -\n")
    assert shell.resolve_host("nas", machines) == "100.64.0.7"


def test_build_command(shell):
    cmd = shell.build_command("100.64.0.7", "hostname", user="alice")
    assert cmd[0] == "ssh"
    assert "BatchMode=yes" in cmd
    assert "ConnectTimeout=2" in cmd
    assert cmd[cmd.index("-i") + 1] == str(Path("/keys/id_ed25519"))
    assert "-p" not in cmd
    assert cmd[-2:] == ["alice@100.64.0.7", "hostname"]


def test_build_command_custom_port_no_key(executor):
    shell = RemoteShell(executor, port=2222)
    cmd = shell.build_command("nas", "uptime")
    assert "-i" not in cmd
    assert cmd[cmd.index("-p") + 1] == "2222"
    assert cmd[-2:] == ["nas", "uptime"]


def test_per_host_user_override(executor, machines):
    shell = RemoteShell(executor, user="alice", host_users={"win-desktop": "Administrator"})
    shell.run("win-desktop", "whoami", machines=machines)
    argv = executor.run_command.call_args[0][0]
    assert argv[-2] == "Administrator@100.101.102.105"


def test_run_resolves_and_executes(shell, executor, machines):
    shell.run("nas", "uptime", machines=machines, timeout=5)
    args, kwargs = executor.run_command.call_args
    assert args[0][-2:] == ["alice@100.101.102.104", "uptime"]
    assert kwargs["timeout"] == 5
