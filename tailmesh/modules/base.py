"""
Base probe class and result models.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, computed_field

from tailmesh.core.executor import CommandResult
from tailmesh.tailscale.status import Machine, MachineStatus


class ProbeStatus(str, Enum):
    """Tri-state probe outcome."""

    PASS = "pass"
    FAIL = "fail"
    UNKNOWN = "unknown"


class ProbeResult(BaseModel):
    """Outcome of a single probe against a single host."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    status: ProbeStatus
    message: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    duration: float = 0.0

    @computed_field
    @property
    def success(self) -> Optional[bool]:
        if self.status == ProbeStatus.UNKNOWN:
            return None
        return self.status == ProbeStatus.PASS


class HostReport(BaseModel):
    """All probe results for one machine."""

    hostname: str
    ip: str
    status: MachineStatus
    timestamp: datetime = Field(default_factory=datetime.now)
    tests: Dict[str, ProbeResult] = {}

    @property
    def overall(self) -> ProbeStatus:
        statuses = [t.status for t in self.tests.values()]
        if ProbeStatus.FAIL in statuses:
            return ProbeStatus.FAIL
        if ProbeStatus.UNKNOWN in statuses or not statuses:
            return ProbeStatus.UNKNOWN
        return ProbeStatus.PASS


class MeshLink(BaseModel):
    """Reachability of one tailnet host as seen from another."""

    source: str
    target: str
    target_ip: str
    status: ProbeStatus
    message: str = ""


class BaseProbe(ABC):
    """Base class for per-host probes."""

    name: str = "probe"

    def __init__(self, executor, timeout: float):
        self.executor = executor
        self.timeout = timeout

    def run(self, machine: Machine) -> ProbeResult:
        """Run the probe against one machine."""
        started = datetime.now()
        result = self.execute(machine)
        status, message = self.evaluate(result)
        log = self.executor.logger
        if status == ProbeStatus.PASS:
            log.debug(f"[{machine.hostname}] {self.name}: {message}")
        else:
            log.warning(f"[{machine.hostname}] {self.name} {status.value}: {message}")
        return ProbeResult(
            name=self.name,
            status=status,
            message=message,
            timestamp=started,
            duration=result.duration,
        )

    @abstractmethod
    def execute(self, machine: Machine) -> CommandResult:
        """
        Issue the underlying command.

        Args:
            machine: Host to probe

        Returns:
            CommandResult of the external tool
        """
        pass

    @abstractmethod
    def evaluate(self, result: CommandResult) -> Tuple[ProbeStatus, str]:
        """
        Classify command output.

        Args:
            result: Output of execute()

        Returns:
            (status, human readable message)
        """
        pass


class StepResult(BaseModel):
    """Outcome of one install or repair step."""

    name: str
    status: ProbeStatus
    message: str = ""
    changed: bool = False
