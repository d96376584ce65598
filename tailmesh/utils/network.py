"""
Network utility functions.
"""

import ipaddress
import re

# CGNAT range and ULA prefix Tailscale hands out addresses from
TAILSCALE_V4 = ipaddress.ip_network("100.64.0.0/10")
TAILSCALE_V6 = ipaddress.ip_network("fd7a:115c:a1e0::/48")


def is_valid_ip(ip: str) -> bool:
    """
    Check if a string is a valid IPv4 or IPv6 address.

    Args:
        ip: String to check

    Returns:
        True if valid IP address
    """
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def is_tailscale_ip(ip: str) -> bool:
    """True if the address lies in a range Tailscale assigns to nodes."""
    try:
        addr = ipaddress.ip_address(ip)
    except ValueError:
        return False
    if addr.version == 4:
        return addr in TAILSCALE_V4
    return addr in TAILSCALE_V6


def is_valid_hostname(hostname: str) -> bool:
    """
    Check if a string is a valid hostname.

    Args:
        hostname: String to check

    Returns:
        True if valid hostname
    """
    if not hostname or len(hostname) > 255:
        return False

    # Remove trailing dot
    if hostname.endswith('.'):
        hostname = hostname[:-1]

    # Check each label
    allowed = re.compile(r'^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$')

    return all(allowed.match(label) for label in hostname.split('.'))
