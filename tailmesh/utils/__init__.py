"""
Utility functions.
"""

from tailmesh.utils.network import is_tailscale_ip, is_valid_hostname, is_valid_ip

__all__ = [
    "is_valid_ip",
    "is_valid_hostname",
    "is_tailscale_ip",
]
