"""
Tailscale CLI wrapper and `tailscale status` parsing.
"""

from tailmesh.tailscale.client import TailscaleClient, TailscaleError
from tailmesh.tailscale.status import (
    Machine,
    MachineStatus,
    classify_status_line,
    parse_status_line,
    parse_status_output,
)

__all__ = [
    "TailscaleClient",
    "TailscaleError",
    "Machine",
    "MachineStatus",
    "classify_status_line",
    "parse_status_line",
    "parse_status_output",
]
