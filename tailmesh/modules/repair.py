"""
Diagnose and repair local Tailscale + SSH setup.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from tailmesh.core.executor import CommandExecutor, CommandResult
from tailmesh.modules.base import ProbeStatus, StepResult
from tailmesh.modules.platform import ServiceManager, WindowsFirewall
from tailmesh.tailscale.client import TailscaleClient

_LOGGED_OUT_MARKERS = ("logged out", "needslogin", "needs login", "tailscale is stopped")

CheckFn = Callable[[], Tuple[ProbeStatus, str]]
FixFn = Callable[[], CommandResult]


@dataclass
class RepairCheck:
    name: str
    description: str
    check: CheckFn
    fix: Optional[FixFn] = None
    hint: str = ""


def _tri(value: Optional[bool], ok: str, bad: str) -> Tuple[ProbeStatus, str]:
    if value is None:
        return ProbeStatus.UNKNOWN, "could not query service manager"
    return (ProbeStatus.PASS, ok) if value else (ProbeStatus.FAIL, bad)


class Repairer:
    """Runs local health checks and applies fixes for the failing ones."""

    def __init__(
        self,
        executor: CommandExecutor,
        client: Optional[TailscaleClient] = None,
        auth_key: Optional[str] = None,
    ):
        self.executor = executor
        self.logger = executor.logger
        self.client = client or TailscaleClient(executor)
        self.services = ServiceManager(executor)
        self.firewall = WindowsFirewall(executor)
        self.auth_key = auth_key
        self.checks = self._build_checks()

    def _build_checks(self) -> List[RepairCheck]:
        checks = [
            RepairCheck(
                name="tailscale_installed",
                description="Tailscale CLI is installed",
                check=self._check_installed,
                hint="run `tailmesh install`",
            ),
            RepairCheck(
                name="tailscale_service",
                description="tailscaled service is running",
                check=lambda: _tri(self.services.is_running("tailscale"), "running", "not running"),
                fix=lambda: self.services.start("tailscale"),
            ),
            RepairCheck(
                name="tailscale_login",
                description="Node is logged in to the tailnet",
                check=self._check_login,
                fix=lambda: self.client.up(auth_key=self.auth_key),
            ),
            RepairCheck(
                name="ssh_server",
                description="SSH server is running",
                check=lambda: _tri(self.services.is_running("ssh"), "running", "not running"),
                fix=lambda: self.services.start("ssh"),
            ),
        ]
        if self.executor.system_info.os_type == "Windows":
            for rule, label in (("icmp", "ICMPv4 echo"), ("ssh", "SSH (TCP 22)")):
                checks.append(
                    RepairCheck(
                        name=f"firewall_{rule}",
                        description=f"Firewall allows inbound {label}",
                        check=lambda rule=rule: _tri(self.firewall.has_rule(rule), "rule present", "rule missing"),
                        fix=lambda rule=rule: self.firewall.add_rule(rule),
                    )
                )
        return checks

    def _check_installed(self) -> Tuple[ProbeStatus, str]:
        version = self.client.version()
        if version:
            return ProbeStatus.PASS, f"tailscale {version}"
        return ProbeStatus.FAIL, "tailscale not found"

    def _check_login(self) -> Tuple[ProbeStatus, str]:
        result = self.executor.run_command([self.client.binary, "status"], timeout=15)
        if not result.launched:
            return ProbeStatus.UNKNOWN, f"could not run tailscale: {result.error}"
        lowered = result.output.lower()
        if any(marker in lowered for marker in _LOGGED_OUT_MARKERS):
            return ProbeStatus.FAIL, "not logged in"
        if result.success:
            return ProbeStatus.PASS, "logged in"
        return ProbeStatus.UNKNOWN, result.output.splitlines()[0] if result.output else "tailscale status failed"

    def _run_check(self, check: RepairCheck) -> StepResult:
        status, message = check.check()
        return StepResult(name=check.name, status=status, message=message)

    def diagnose(self) -> List[StepResult]:
        """Run every check without changing anything."""
        results = []
        for check in self.checks:
            result = self._run_check(check)
            self.logger.info(f"{check.description}: {result.status.value} ({result.message})")
            results.append(result)
        return results

    def repair(
        self,
        auto: bool = False,
        confirm: Optional[Callable[[str], bool]] = None,
    ) -> List[StepResult]:
        """
        Check, fix and re-check.

        Args:
            auto: Apply fixes without asking
            confirm: Asked with a description before each fix when not auto;
                a falsy answer skips that fix

        Returns:
            Final state of every check
        """
        results = []
        for check in self.checks:
            before = self._run_check(check)
            if before.status == ProbeStatus.PASS:
                results.append(before)
                continue

            if check.fix is None:
                self.logger.warning(f"{check.description}: {before.message}; {check.hint or 'no automatic fix'}")
                results.append(before)
                continue

            if not auto and confirm is not None and not confirm(f"Fix: {check.description}?"):
                self.logger.info(f"Skipped fix for {check.name}")
                results.append(before)
                continue

            self.logger.info(f"Repairing {check.name}")
            outcome = check.fix()
            after = self._run_check(check)
            if not outcome.success:
                detail = outcome.stderr.strip() or outcome.stdout.strip()
                after.message = f"{after.message}; fix failed: {detail}" if detail else after.message
                self.logger.error(f"Fix for {check.name} failed: {detail or outcome.return_code}")
            after.changed = outcome.success
            results.append(after)
        return results
