"""
Fleet audit: probe every discovered host one at a time, and optionally
check host-to-host reachability (all-to-all) through SSH.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from tailmesh.core.config import AppConfig
from tailmesh.core.executor import CommandExecutor
from tailmesh.modules.base import BaseProbe, HostReport, MeshLink, ProbeStatus
from tailmesh.modules.connectivity import IcmpPingProbe, TailscalePingProbe
from tailmesh.modules.ssh_check import SSHCommandProbe
from tailmesh.ssh.remote import SSH_CONNECTION_ERROR, RemoteShell
from tailmesh.storage.csv_handler import CSVHandler
from tailmesh.tailscale.client import TailscaleClient
from tailmesh.tailscale.status import Machine

ProgressCallback = Callable[[int, int, Machine], None]


def build_probes(
    executor: CommandExecutor,
    config: AppConfig,
    shell: RemoteShell,
    client: Optional[TailscaleClient] = None,
) -> List[BaseProbe]:
    """Default probe set, in the order they run against each host."""
    return [
        TailscalePingProbe(executor, timeout=config.tailscale_ping_timeout, client=client),
        IcmpPingProbe(executor, timeout=config.icmp_timeout),
        SSHCommandProbe(
            executor,
            shell,
            command=config.remote_command,
            timeout=config.ssh_connect_timeout,
        ),
    ]


def summarize(hosts: Sequence[HostReport]) -> Dict[str, Dict[str, int]]:
    """Count pass/fail/unknown per probe name."""
    summary: Dict[str, Dict[str, int]] = {}
    for host in hosts:
        for name, result in host.tests.items():
            counts = summary.setdefault(name, {s.value: 0 for s in ProbeStatus})
            counts[result.status.value] += 1
    return summary


def summarize_mesh(links: Sequence[MeshLink]) -> Dict[str, Dict[str, int]]:
    """Count pass/fail/unknown over all-to-all links, keyed "mesh" like a probe."""
    counts = {s.value: 0 for s in ProbeStatus}
    for link in links:
        counts[link.status.value] += 1
    return {"mesh": counts}


class FleetAuditor:
    """Sequential prober over tailnet machines."""

    def __init__(
        self,
        executor: CommandExecutor,
        config: AppConfig,
        shell: Optional[RemoteShell] = None,
        client: Optional[TailscaleClient] = None,
        probes: Optional[List[BaseProbe]] = None,
        csv_handler: Optional[CSVHandler] = None,
    ):
        self.executor = executor
        self.config = config
        self.logger = executor.logger
        self.client = client or TailscaleClient(executor)
        self.shell = shell or RemoteShell(
            executor,
            user=config.ssh_user,
            key=config.ssh_key,
            port=config.ssh_port,
            connect_timeout=config.ssh_connect_timeout,
            host_users=config.host_users,
        )
        self.probes = probes if probes is not None else build_probes(executor, config, self.shell, self.client)
        self.csv_handler = csv_handler

    def probe_host(self, machine: Machine) -> HostReport:
        """Run every probe against one host."""
        report = HostReport(
            hostname=machine.hostname,
            ip=machine.ip,
            status=machine.status,
            timestamp=datetime.now(),
        )
        for probe in self.probes:
            result = probe.run(machine)
            report.tests[result.name] = result
            if self.csv_handler is not None:
                self.csv_handler.write_result(machine, result)
        return report

    def audit(
        self,
        machines: Sequence[Machine],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[HostReport]:
        """Probe each machine in order; one HostReport per machine."""
        total = len(machines)
        self.logger.info(f"Auditing {total} machine(s)")
        reports: List[HostReport] = []
        for index, machine in enumerate(machines, start=1):
            self.logger.info(f"[{index}/{total}] {machine.hostname} ({machine.ip}, {machine.status.value})")
            reports.append(self.probe_host(machine))
            if progress_callback:
                progress_callback(index, total, machine)
        return reports

    def mesh_audit(
        self,
        machines: Sequence[Machine],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[MeshLink]:
        """
        All-to-all check: from every reachable source host, `tailscale ping`
        every other host over an SSH session on the source.

        Offline sources are recorded as unknown for all their targets without
        connecting.
        """
        links: List[MeshLink] = []
        total = len(machines)
        timeout = self.config.tailscale_ping_timeout
        evaluator = TailscalePingProbe(self.executor, timeout=timeout, client=self.client)
        for index, source in enumerate(machines, start=1):
            targets = [m for m in machines if m.ip != source.ip]
            if not source.is_online:
                self.logger.warning(f"Skipping mesh checks from offline host {source.hostname}")
                links.extend(
                    MeshLink(
                        source=source.hostname,
                        target=t.hostname,
                        target_ip=t.ip,
                        status=ProbeStatus.UNKNOWN,
                        message="source offline",
                    )
                    for t in targets
                )
            else:
                for target in targets:
                    links.append(self._mesh_link(source, target, machines, evaluator))
            if progress_callback:
                progress_callback(index, total, source)
        return links

    def _mesh_link(
        self,
        source: Machine,
        target: Machine,
        machines: Sequence[Machine],
        evaluator: TailscalePingProbe,
    ) -> MeshLink:
        command = f"tailscale ping -c 1 --timeout {evaluator.timeout:g}s {target.ip}"
        result = self.shell.run(source.hostname, command, machines=machines, timeout=evaluator.timeout + 15)
        if result.return_code == SSH_CONNECTION_ERROR:
            status, message = ProbeStatus.UNKNOWN, f"cannot SSH to {source.hostname}"
        else:
            status, message = evaluator.evaluate(result)
        if status != ProbeStatus.PASS:
            self.logger.warning(f"Mesh {source.hostname} -> {target.hostname}: {status.value} ({message})")
        return MeshLink(
            source=source.hostname,
            target=target.hostname,
            target_ip=target.ip,
            status=status,
            message=message,
        )
