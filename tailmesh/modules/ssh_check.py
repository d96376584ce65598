"""
SSH reachability probe: run a harmless command on the host.
"""

from typing import Tuple

from tailmesh.core.executor import CommandResult
from tailmesh.modules.base import BaseProbe, ProbeStatus
from tailmesh.ssh.remote import SSH_CONNECTION_ERROR, RemoteShell
from tailmesh.tailscale.status import Machine


class SSHCommandProbe(BaseProbe):
    """Execute `command` over SSH and check the exit status."""

    name = "ssh"

    def __init__(self, executor, shell: RemoteShell, command: str = "hostname", timeout: float = 2.0):
        super().__init__(executor, timeout)
        self.shell = shell
        self.command = command

    def execute(self, machine: Machine) -> CommandResult:
        # connect timeout is enforced by ssh itself; allow the command some time to run
        return self.shell.run(machine.hostname, self.command, machines=[machine], timeout=self.timeout + 10)

    def evaluate(self, result: CommandResult) -> Tuple[ProbeStatus, str]:
        if not result.launched:
            return ProbeStatus.UNKNOWN, f"could not run ssh: {result.error}"
        if result.timed_out:
            return ProbeStatus.FAIL, "ssh command timed out"
        if result.return_code == 0:
            out = result.stdout.strip().splitlines()
            return ProbeStatus.PASS, out[0] if out else "command succeeded"
        stderr = result.stderr.strip().splitlines()
        detail = stderr[-1] if stderr else ""
        if result.return_code == SSH_CONNECTION_ERROR:
            return ProbeStatus.FAIL, f"connection failed: {detail}" if detail else "connection failed"
        return ProbeStatus.FAIL, f"command exited with code {result.return_code}" + (f": {detail}" if detail else "")
