"""
Connectivity probes (tailscale ping, ICMP ping).
"""

import math
import re
from typing import List, Optional, Tuple

from tailmesh.core.executor import CommandResult
from tailmesh.modules.base import BaseProbe, ProbeStatus
from tailmesh.tailscale.client import TailscaleClient
from tailmesh.tailscale.status import Machine

_LATENCY_RE = re.compile(r'in\s+([\d.]+)\s*ms')
_TAILSCALE_FAIL_MARKERS = ("timed out", "no reply", "is offline", "unreachable", "no matching peer")


def _first_line(text: str) -> str:
    for line in text.splitlines():
        if line.strip():
            return line.strip()
    return ""


class TailscalePingProbe(BaseProbe):
    """Ping a peer over the Tailscale data plane (`tailscale ping`)."""

    name = "tailscale_ping"

    def __init__(self, executor, timeout: float = 2.0, client: Optional[TailscaleClient] = None):
        super().__init__(executor, timeout)
        self.client = client or TailscaleClient(executor)

    def execute(self, machine: Machine) -> CommandResult:
        return self.client.ping(machine.ip, timeout=self.timeout)

    def evaluate(self, result: CommandResult) -> Tuple[ProbeStatus, str]:
        if not result.launched:
            return ProbeStatus.UNKNOWN, f"could not run tailscale: {result.error}"
        if result.timed_out:
            return ProbeStatus.FAIL, f"no response within {self.timeout:g}s"

        output = result.output
        lowered = output.lower()
        if "pong" in lowered:
            pong = next(line for line in output.splitlines() if "pong" in line.lower())
            return ProbeStatus.PASS, pong.strip()
        if any(marker in lowered for marker in _TAILSCALE_FAIL_MARKERS):
            return ProbeStatus.FAIL, _first_line(output)
        return ProbeStatus.UNKNOWN, f"unrecognized output: {_first_line(output) or '(empty)'}"

    @staticmethod
    def parse_latency(output: str) -> Optional[float]:
        """Latency in ms from a pong line, if present."""
        match = _LATENCY_RE.search(output)
        return float(match.group(1)) if match else None


class IcmpPingProbe(BaseProbe):
    """Plain ICMP echo using the system `ping`."""

    name = "icmp_ping"

    def build_command(self, target: str) -> List[str]:
        """Build a one-packet ping command for the local OS."""
        os_type = self.executor.system_info.os_type
        if os_type == "Windows":
            return ["ping", "-n", "1", "-w", str(int(self.timeout * 1000)), target]
        seconds = str(max(1, math.ceil(self.timeout)))
        if os_type == "Darwin":
            return ["ping", "-c", "1", "-t", seconds, target]
        return ["ping", "-c", "1", "-W", seconds, target]

    def execute(self, machine: Machine) -> CommandResult:
        return self.executor.run_command(
            self.build_command(machine.ip),
            timeout=self.timeout + 2,
        )

    def evaluate(self, result: CommandResult) -> Tuple[ProbeStatus, str]:
        if not result.launched:
            return ProbeStatus.UNKNOWN, f"could not run ping: {result.error}"
        if result.timed_out:
            return ProbeStatus.FAIL, f"no reply within {self.timeout:g}s"

        if result.return_code == 0:
            # Windows exits 0 for "Destination host unreachable" replies
            if self.executor.system_info.os_type == "Windows" and "ttl=" not in result.stdout.lower():
                unreachable = [line.strip() for line in result.stdout.splitlines() if "unreachable" in line.lower()]
                return ProbeStatus.FAIL, unreachable[0] if unreachable else "no echo reply"
            return ProbeStatus.PASS, "echo reply received"
        if result.return_code == 1:
            return ProbeStatus.FAIL, "no echo reply"
        return ProbeStatus.UNKNOWN, _first_line(result.stderr) or f"ping exited with code {result.return_code}"
