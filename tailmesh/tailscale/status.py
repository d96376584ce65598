"""
Parsing of `tailscale status` text output.

A status line looks like::

    100.101.102.103  laptop   alice@  linux    -
    100.101.102.104  server   alice@  linux    active; direct 203.0.113.7:41641, tx 1234 rx 5678
    100.101.102.105  phone    alice@  android  offline

The first parsed line is the local node. Lines that do not start with an IP
address (blank lines, "# Health check:" notes, login prompts) are skipped.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel

from tailmesh.utils.network import is_valid_ip


class MachineStatus(str, Enum):
    """Reachability of a tailnet node as reported by `tailscale status`."""

    ACTIVE = "active"
    IDLE = "idle"
    OFFLINE = "offline"


class Machine(BaseModel):
    """A node discovered on the tailnet."""

    hostname: str
    ip: str
    status: MachineStatus = MachineStatus.IDLE
    user: Optional[str] = None
    os: Optional[str] = None
    is_self: bool = False
    raw: str = ""

    @property
    def short_name(self) -> str:
        return self.hostname.split(".", 1)[0]

    @property
    def is_online(self) -> bool:
        return self.status != MachineStatus.OFFLINE


def classify_status_line(line: str) -> MachineStatus:
    """Offline wins over active; anything else is idle."""
    lowered = line.lower()
    if "offline" in lowered:
        return MachineStatus.OFFLINE
    if "active" in lowered:
        return MachineStatus.ACTIVE
    return MachineStatus.IDLE


def parse_status_line(line: str) -> Optional[Machine]:
    """Parse one `tailscale status` line, or return None if it is not a node line."""
    parts = line.split()
    if len(parts) < 2 or not is_valid_ip(parts[0]):
        return None

    return Machine(
        ip=parts[0],
        hostname=parts[1],
        user=parts[2] if len(parts) > 2 else None,
        os=parts[3] if len(parts) > 3 else None,
        status=classify_status_line(line),
        raw=line.strip(),
    )


def parse_status_output(output: str) -> List[Machine]:
    """Parse full `tailscale status` output into machines, flagging the local node."""
    machines: List[Machine] = []
    for line in output.splitlines():
        machine = parse_status_line(line)
        if machine is None:
            continue
        if not machines:
            machine.is_self = True
        machines.append(machine)
    return machines
