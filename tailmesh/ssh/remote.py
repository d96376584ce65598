"""
RSSH: run a command on a tailnet host over SSH, resolving hostnames to
Tailscale IPs from discovered machines.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

from tailmesh.core.executor import CommandExecutor, CommandResult
from tailmesh.tailscale.status import Machine
from tailmesh.utils.network import is_valid_ip

# ssh exits with 255 when the connection itself failed
SSH_CONNECTION_ERROR = 255


class RemoteShell:
    """Non-interactive SSH client built on the system `ssh` binary."""

    def __init__(
        self,
        executor: CommandExecutor,
        user: Optional[str] = None,
        key: Optional[Path] = None,
        port: int = 22,
        connect_timeout: int = 2,
        host_users: Optional[Dict[str, str]] = None,
        binary: str = "ssh",
    ):
        self.executor = executor
        self.user = user
        self.key = key
        self.port = port
        self.connect_timeout = connect_timeout
        self.host_users = {k.lower(): v for k, v in (host_users or {}).items()}
        self.binary = binary

    def resolve_host(self, name: str, machines: Optional[Iterable[Machine]] = None) -> str:
        """
        Resolve a host name to the address ssh should connect to.

        IP literals are returned as-is. Otherwise the name is matched
        case-insensitively against discovered hostnames (full or short form);
        a match yields that machine's Tailscale IP. Unknown names pass through
        so ssh/MagicDNS can resolve them.
        """
        name = name.strip()
        if is_valid_ip(name):
            return name

        wanted = name.lower()
        for machine in machines or []:
            if wanted in (machine.hostname.lower(), machine.short_name.lower()):
                return machine.ip
        return name

    def user_for(self, name: str) -> Optional[str]:
        short = name.split(".", 1)[0].lower()
        return self.host_users.get(name.lower(), self.host_users.get(short, self.user))

    def build_command(self, target: str, command: str, user: Optional[str] = None) -> List[str]:
        """Assemble the ssh argument vector."""
        args = [
            self.binary,
            "-o", "BatchMode=yes",
            "-o", f"ConnectTimeout={self.connect_timeout}",
            "-o", "StrictHostKeyChecking=accept-new",
        ]
        if self.key:
            args.extend(["-i", str(self.key)])
        if self.port != 22:
            args.extend(["-p", str(self.port)])
        destination = f"{user}@{target}" if user else target
        args.append(destination)
        args.append(command)
        return args

    def run(
        self,
        host: str,
        command: str,
        machines: Optional[Iterable[Machine]] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Resolve `host` and run `command` on it."""
        target = self.resolve_host(host, machines)
        user = self.user_for(host)
        if timeout is None:
            timeout = self.connect_timeout + 30
        self.executor.logger.info(f"RSSH {user + '@' if user else ''}{host} ({target}): {command}")
        return self.executor.run_command(self.build_command(target, command, user), timeout=timeout)
