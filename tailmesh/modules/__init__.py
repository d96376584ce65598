"""
Probes, fleet audit, install and repair.
"""

from tailmesh.modules.base import BaseProbe, HostReport, MeshLink, ProbeResult, ProbeStatus
from tailmesh.modules.connectivity import IcmpPingProbe, TailscalePingProbe
from tailmesh.modules.ssh_check import SSHCommandProbe

__all__ = [
    "BaseProbe",
    "HostReport",
    "MeshLink",
    "ProbeResult",
    "ProbeStatus",
    "IcmpPingProbe",
    "TailscalePingProbe",
    "SSHCommandProbe",
]
