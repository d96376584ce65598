"""
tailmesh - Tailscale fleet connectivity auditing and repair
"""

from tailmesh.__version__ import __version__
from tailmesh.core.config import AppConfig
from tailmesh.core.detector import SystemDetector
from tailmesh.core.executor import CommandExecutor

__all__ = [
    "AppConfig",
    "SystemDetector",
    "CommandExecutor",
    "__version__",
]
