"""
Platform service managers and firewall helpers.

Linux uses systemctl, macOS launchctl, Windows `sc` and `netsh`.
"""

import os
from typing import Dict, List, Optional

from tailmesh.core.executor import CommandExecutor, CommandResult

# Logical service name -> candidate unit/label/service names per OS
SERVICE_NAMES: Dict[str, Dict[str, List[str]]] = {
    "tailscale": {
        "Linux": ["tailscaled"],
        "Darwin": ["com.tailscale.tailscaled", "io.tailscale.ipn.macsys"],
        "Windows": ["Tailscale"],
    },
    "ssh": {
        "Linux": ["ssh", "sshd"],
        "Darwin": ["com.openssh.sshd"],
        "Windows": ["sshd"],
    },
}

FIREWALL_RULES = {
    "icmp": ("tailmesh-icmpv4-in", ["protocol=icmpv4:8,any"]),
    "ssh": ("tailmesh-ssh-in", ["protocol=TCP", "localport=22"]),
}


def elevate(command: List[str], os_type: str) -> List[str]:
    """Prefix with non-interactive sudo on POSIX when not already root."""
    if os_type == "Windows":
        return command
    geteuid = getattr(os, "geteuid", None)
    if geteuid is not None and geteuid() == 0:
        return command
    return ["sudo", "-n", *command]


class ServiceManager:
    """Query and start OS services."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor
        self.os_type = executor.system_info.os_type

    def candidates(self, service: str) -> List[str]:
        return SERVICE_NAMES.get(service, {}).get(self.os_type, [service])

    def _query(self, name: str) -> Optional[bool]:
        if self.os_type == "Linux":
            result = self.executor.run_command(["systemctl", "is-active", name], timeout=10)
            if not result.launched:
                return None
            return result.stdout.strip() == "active"
        if self.os_type == "Darwin":
            result = self.executor.run_command(["launchctl", "list", name], timeout=10)
            if not result.launched:
                return None
            return result.success
        if self.os_type == "Windows":
            result = self.executor.run_command(["sc", "query", name], timeout=10)
            if not result.launched:
                return None
            return "RUNNING" in result.stdout.upper()
        return None

    def is_running(self, service: str) -> Optional[bool]:
        """
        True if any candidate name for `service` is running, False if none
        is, None if the service manager could not be queried.
        """
        answers = [self._query(name) for name in self.candidates(service)]
        if any(answers):
            return True
        if all(a is None for a in answers):
            return None
        return False

    def start(self, service: str) -> CommandResult:
        """Start the first candidate that starts successfully."""
        result = None
        for name in self.candidates(service):
            if self.os_type == "Linux":
                command = elevate(["systemctl", "start", name], self.os_type)
            elif self.os_type == "Darwin":
                command = elevate(["launchctl", "kickstart", "-k", f"system/{name}"], self.os_type)
            else:
                command = ["sc", "start", name]
            result = self.executor.run_command(command, timeout=60)
            if result.success:
                return result
        return result


class WindowsFirewall:
    """Inbound allow rules via `netsh advfirewall`."""

    def __init__(self, executor: CommandExecutor):
        self.executor = executor

    def has_rule(self, rule: str) -> Optional[bool]:
        name, _ = FIREWALL_RULES[rule]
        result = self.executor.run_command(
            ["netsh", "advfirewall", "firewall", "show", "rule", f"name={name}"],
            timeout=15,
        )
        if not result.launched:
            return None
        return result.success

    def add_rule(self, rule: str) -> CommandResult:
        name, params = FIREWALL_RULES[rule]
        return self.executor.run_command(
            ["netsh", "advfirewall", "firewall", "add", "rule", f"name={name}", "dir=in", "action=allow", *params],
            timeout=15,
        )
