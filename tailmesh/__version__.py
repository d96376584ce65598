"""Version information for tailmesh."""

__version__ = "1.0.0"
__version_info__ = (1, 0, 0)

# Release information
__author__ = "tailmesh contributors"
__license__ = "MIT"
__description__ = "Install, repair and audit Tailscale + SSH connectivity across a small fleet"
