"""
Core functionality components.
"""

from tailmesh.core.config import AppConfig
from tailmesh.core.detector import SystemDetector, SystemInfo
from tailmesh.core.executor import CommandExecutor, CommandResult

__all__ = [
    "AppConfig",
    "SystemDetector",
    "SystemInfo",
    "CommandExecutor",
    "CommandResult",
]
