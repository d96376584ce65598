"""
Install Tailscale, an SSH server and an SSH key on this machine.
"""

import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from tailmesh.core.executor import CommandExecutor
from tailmesh.modules.base import ProbeStatus, StepResult
from tailmesh.modules.platform import ServiceManager, elevate
from tailmesh.tailscale.client import TailscaleClient

TAILSCALE_INSTALL_SCRIPT = "curl -fsSL https://tailscale.com/install.sh | sh"


@dataclass
class InstallStep:
    name: str
    description: str
    is_satisfied: Callable[[], bool]
    commands: List[List[str]] = field(default_factory=list)
    secrets: List[str] = field(default_factory=list)


class Installer:
    """Plans and runs install steps for the local OS."""

    def __init__(
        self,
        executor: CommandExecutor,
        client: Optional[TailscaleClient] = None,
        ssh_key: Optional[Path] = None,
        auth_key: Optional[str] = None,
        enable_tailscale_ssh: bool = False,
    ):
        self.executor = executor
        self.logger = executor.logger
        self.os_type = executor.system_info.os_type
        self.client = client or TailscaleClient(executor)
        self.services = ServiceManager(executor)
        self.ssh_key = ssh_key or Path(executor.system_info.home_dir or Path.home()) / ".ssh" / "id_ed25519"
        self.auth_key = auth_key
        self.enable_tailscale_ssh = enable_tailscale_ssh

    def _tailscale_commands(self) -> List[List[str]]:
        if self.os_type == "Windows":
            return [[
                "winget", "install", "--exact", "--id", "Tailscale.Tailscale",
                "--accept-package-agreements", "--accept-source-agreements",
            ]]
        if self.os_type == "Darwin":
            return [["brew", "install", "--cask", "tailscale"]]
        return [elevate(["sh", "-c", TAILSCALE_INSTALL_SCRIPT], self.os_type)]

    def _ssh_server_commands(self) -> List[List[str]]:
        if self.os_type == "Windows":
            return [
                [
                    "powershell", "-NoProfile", "-Command",
                    "Add-WindowsCapability -Online -Name OpenSSH.Server~~~~0.0.1.0",
                ],
                ["sc", "config", "sshd", "start=", "auto"],
                ["sc", "start", "sshd"],
            ]
        if self.os_type == "Darwin":
            return [elevate(["systemsetup", "-setremotelogin", "on"], self.os_type)]
        if shutil.which("apt-get"):
            return [
                elevate(["apt-get", "install", "-y", "openssh-server"], self.os_type),
                elevate(["systemctl", "enable", "--now", "ssh"], self.os_type),
            ]
        return [
            elevate(["dnf", "install", "-y", "openssh-server"], self.os_type),
            elevate(["systemctl", "enable", "--now", "sshd"], self.os_type),
        ]

    def _tailscale_up_command(self) -> List[str]:
        command = [self.client.binary, "up"]
        if self.auth_key:
            command.extend(["--auth-key", self.auth_key])
        if self.enable_tailscale_ssh:
            command.append("--ssh")
        return command

    def _logged_in(self) -> bool:
        return self.executor.run_command([self.client.binary, "status"], timeout=15).success

    def plan(self) -> List[InstallStep]:
        """Steps for this OS, in execution order."""
        comment = f"tailmesh@{self.executor.system_info.hostname}"
        return [
            InstallStep(
                name="tailscale",
                description="Install Tailscale",
                is_satisfied=lambda: self.client.version() is not None,
                commands=self._tailscale_commands(),
            ),
            InstallStep(
                name="ssh_server",
                description="Install and start an OpenSSH server",
                is_satisfied=lambda: bool(self.services.is_running("ssh")),
                commands=self._ssh_server_commands(),
            ),
            InstallStep(
                name="ssh_key",
                description=f"Create SSH key {self.ssh_key}",
                is_satisfied=self.ssh_key.exists,
                commands=[["ssh-keygen", "-t", "ed25519", "-N", "", "-f", str(self.ssh_key), "-C", comment]],
            ),
            InstallStep(
                name="tailscale_up",
                description="Connect this machine to the tailnet",
                is_satisfied=self._logged_in,
                commands=[self._tailscale_up_command()],
                secrets=[self.auth_key] if self.auth_key else [],
            ),
        ]

    def run(
        self,
        auto: bool = False,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> List[StepResult]:
        """
        Execute the plan. Satisfied steps are skipped; a failed step stops
        the remaining ones since later steps depend on it.
        """
        results: List[StepResult] = []
        steps = self.plan()
        for index, step in enumerate(steps):
            if step.is_satisfied():
                results.append(StepResult(name=step.name, status=ProbeStatus.PASS, message="already done"))
                continue

            if not auto and confirm is not None and not confirm(f"{step.description}?"):
                self.logger.info(f"Skipped install step {step.name}")
                results.append(StepResult(name=step.name, status=ProbeStatus.UNKNOWN, message="skipped"))
                continue

            if step.name == "ssh_key":
                self.ssh_key.parent.mkdir(parents=True, exist_ok=True)

            self.logger.info(f"Install step: {step.description}")
            failure = None
            for command in step.commands:
                outcome = self.executor.run_command(command, timeout=600, redact=step.secrets)
                if not outcome.success:
                    failure = outcome.stderr.strip() or outcome.stdout.strip() or f"exit code {outcome.return_code}"
                    break

            if failure is None:
                results.append(StepResult(name=step.name, status=ProbeStatus.PASS, message="done", changed=True))
                continue

            self.logger.error(f"Install step {step.name} failed: {failure}")
            results.append(StepResult(name=step.name, status=ProbeStatus.FAIL, message=failure))
            for remaining in steps[index + 1:]:
                results.append(
                    StepResult(name=remaining.name, status=ProbeStatus.UNKNOWN, message=f"not attempted ({step.name} failed)")
                )
            break
        return results
