"""
Thin wrapper around the `tailscale` CLI.
"""

import json
from typing import Any, Dict, List, Optional

from tailmesh.core.executor import CommandExecutor, CommandResult
from tailmesh.tailscale.status import Machine, parse_status_output


class TailscaleError(RuntimeError):
    """Raised when the local tailscale CLI cannot report tailnet state."""


class TailscaleClient:
    """Run tailscale subcommands through a CommandExecutor."""

    def __init__(self, executor: CommandExecutor, binary: str = "tailscale"):
        self.executor = executor
        self.binary = binary
        self.logger = executor.logger

    def _run(self, *args: str, timeout: float = 15, redact=()) -> CommandResult:
        return self.executor.run_command([self.binary, *args], timeout=timeout, redact=redact)

    def is_installed(self) -> bool:
        """True if `tailscale version` runs."""
        return self._run("version", timeout=10).success

    def version(self) -> Optional[str]:
        result = self._run("version", timeout=10)
        if not result.success or not result.stdout.strip():
            return None
        return result.stdout.strip().splitlines()[0]

    def status_text(self) -> str:
        """Raw `tailscale status` output.

        Raises:
            TailscaleError: if the command cannot be run or exits non-zero
        """
        result = self._run("status")
        if not result.success:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.return_code}"
            raise TailscaleError(f"tailscale status failed: {detail}")
        return result.stdout

    def status_json(self) -> Dict[str, Any]:
        """Parsed `tailscale status --json`, or an empty dict when unavailable."""
        result = self._run("status", "--json")
        if not result.success:
            return {}
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            self.logger.warning("Could not parse `tailscale status --json` output")
            return {}
        return data if isinstance(data, dict) else {}

    def discover_machines(
        self,
        include_self: bool = True,
        online_only: bool = False,
    ) -> List[Machine]:
        """Discover tailnet nodes from `tailscale status`."""
        machines = parse_status_output(self.status_text())
        if not include_self:
            machines = [m for m in machines if not m.is_self]
        if online_only:
            machines = [m for m in machines if m.is_online]
        self.logger.info(f"Discovered {len(machines)} machine(s) on the tailnet")
        return machines

    def tailnet_name(self) -> str:
        """Name of the current tailnet, or "unknown"."""
        data = self.status_json()
        tailnet = data.get("CurrentTailnet") or {}
        name = tailnet.get("Name") if isinstance(tailnet, dict) else None
        if name:
            return name
        suffix = data.get("MagicDNSSuffix")
        if suffix:
            return suffix
        return "unknown"

    def ping(self, host: str, timeout: float = 2.0) -> CommandResult:
        """Single `tailscale ping`; the process gets a small grace period beyond the ping timeout."""
        return self._run(
            "ping",
            "-c",
            "1",
            "--timeout",
            f"{timeout:g}s",
            host,
            timeout=timeout + 3,
        )

    def ip(self, v4_only: bool = True) -> Optional[str]:
        """Tailscale IP of the local node."""
        args = ["ip", "-4"] if v4_only else ["ip"]
        result = self._run(*args, timeout=10)
        if result.success and result.stdout.strip():
            return result.stdout.strip().splitlines()[0]
        return None

    def up(
        self,
        auth_key: Optional[str] = None,
        ssh: bool = False,
        hostname: Optional[str] = None,
    ) -> CommandResult:
        """Connect this node to the tailnet."""
        args = ["up"]
        if auth_key:
            args.extend(["--auth-key", auth_key])
        if ssh:
            args.append("--ssh")
        if hostname:
            args.extend(["--hostname", hostname])
        return self._run(*args, timeout=120, redact=(auth_key,) if auth_key else ())

    def down(self) -> CommandResult:
        return self._run("down", timeout=30)
