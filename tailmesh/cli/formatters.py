"""
Rich formatting utilities for CLI output.
"""

from typing import Dict, List, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tailmesh.core.detector import SystemInfo
from tailmesh.modules.base import HostReport, MeshLink, ProbeStatus, StepResult
from tailmesh.tailscale.status import Machine, MachineStatus

PROBE_COLUMNS = [
    ("tailscale_ping", "Tailscale"),
    ("icmp_ping", "ICMP"),
    ("ssh", "SSH"),
]

_MACHINE_COLORS = {
    MachineStatus.ACTIVE: "green",
    MachineStatus.IDLE: "yellow",
    MachineStatus.OFFLINE: "red",
}


def print_header(console: Console, tailnet: str) -> None:
    """Print the run header."""
    console.print(f"\n[bold cyan]tailmesh[/bold cyan] [dim]tailnet:[/dim] [bold]{tailnet}[/bold]\n")


def print_system_info(system_info: SystemInfo, console: Console) -> None:
    """Print detected system information."""
    table = Table(title="System Information", show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Operating System", system_info.os_type)
    table.add_row("Platform", system_info.platform)
    table.add_row("Hostname", system_info.hostname)

    console.print()
    console.print(table)
    console.print()


def _status_icon_and_color(status: ProbeStatus) -> tuple[str, str]:
    """Map a probe status to icon and color."""
    if status == ProbeStatus.PASS:
        return "✓", "green"
    if status == ProbeStatus.UNKNOWN:
        return "?", "yellow"
    return "✗", "red"


def _cell(status: ProbeStatus) -> str:
    icon, color = _status_icon_and_color(status)
    return f"[{color}]{icon}[/{color}]"


def format_machines(machines: Sequence[Machine], console: Console) -> None:
    """Table of discovered machines."""
    table = Table(title="Tailnet machines", show_header=True)
    table.add_column("Hostname", style="cyan")
    table.add_column("IP", style="white")
    table.add_column("OS", style="white")
    table.add_column("Status", style="white")

    for m in machines:
        color = _MACHINE_COLORS[m.status]
        name = f"{m.hostname} [dim](this machine)[/dim]" if m.is_self else m.hostname
        table.add_row(name, m.ip, m.os or "—", f"[{color}]{m.status.value}[/{color}]")

    console.print()
    console.print(table)


def format_host_reports(reports: Sequence[HostReport], console: Console) -> None:
    """Per-host probe matrix followed by details of anything that did not pass."""
    table = Table(title="Connectivity audit", show_header=True)
    table.add_column("Hostname", style="cyan")
    table.add_column("IP", style="white")
    table.add_column("Status", style="white")
    for _, label in PROBE_COLUMNS:
        table.add_column(label, justify="center")

    problems: List[str] = []
    for report in reports:
        color = _MACHINE_COLORS[report.status]
        cells = []
        for key, label in PROBE_COLUMNS:
            result = report.tests.get(key)
            if result is None:
                cells.append("—")
                continue
            cells.append(_cell(result.status))
            if result.status != ProbeStatus.PASS:
                problems.append(f"[cyan]{report.hostname}[/cyan] {label}: {result.message}")
        table.add_row(report.hostname, report.ip, f"[{color}]{report.status.value}[/{color}]", *cells)

    console.print()
    console.print(table)

    if problems:
        console.print()
        console.print(Panel("\n".join(problems), title="Problems", border_style="yellow", expand=False))

    guidance = get_guidance(reports)
    if guidance:
        console.print()
        console.print(Panel("\n".join(guidance), title="💡 What to try", border_style="dim", expand=False))


def format_summary(summary: Dict[str, Dict[str, int]], console: Console) -> None:
    """One line per probe with pass/fail/unknown counts."""
    labels = dict(PROBE_COLUMNS)
    for name, counts in summary.items():
        console.print(
            f"  {labels.get(name, name):<10} "
            f"[green]{counts.get('pass', 0)} pass[/green]  "
            f"[red]{counts.get('fail', 0)} fail[/red]  "
            f"[yellow]{counts.get('unknown', 0)} unknown[/yellow]"
        )


def format_mesh(links: Sequence[MeshLink], console: Console) -> None:
    """Source x target matrix of mesh links."""
    sources: List[str] = []
    targets: List[str] = []
    grid: Dict[tuple, ProbeStatus] = {}
    for link in links:
        if link.source not in sources:
            sources.append(link.source)
        if link.target not in targets:
            targets.append(link.target)
        grid[(link.source, link.target)] = link.status

    table = Table(title="Mesh reachability (row pings column)", show_header=True)
    table.add_column("From \\ To", style="cyan")
    for target in targets:
        table.add_column(target, justify="center")
    for source in sources:
        row = [_cell(grid[(source, t)]) if (source, t) in grid else "[dim]·[/dim]" for t in targets]
        table.add_row(source, *row)

    console.print()
    console.print(table)

    failed = [link for link in links if link.status != ProbeStatus.PASS]
    if failed:
        lines = [f"{link.source} → {link.target}: {link.status.value} ({link.message})" for link in failed]
        console.print()
        console.print(Panel("\n".join(lines), title="Failed links", border_style="yellow", expand=False))


def format_steps(steps: Sequence[StepResult], console: Console, title: str) -> None:
    """Install/repair step results."""
    table = Table(title=title, show_header=True)
    table.add_column("Step", style="cyan")
    table.add_column("Result", justify="center")
    table.add_column("Details", style="white")
    for step in steps:
        icon = _cell(step.status)
        if step.changed:
            icon += " [dim](fixed)[/dim]"
        table.add_row(step.name, icon, step.message)
    console.print()
    console.print(table)


def get_guidance(reports: Sequence[HostReport]) -> List[str]:
    """
    Actionable suggestions derived from probe failures.
    Returns an empty list when everything passed.
    """
    lines: List[str] = []

    def failed(report: HostReport, key: str) -> bool:
        result = report.tests.get(key)
        return result is not None and result.status == ProbeStatus.FAIL

    def passed(report: HostReport, key: str) -> bool:
        result = report.tests.get(key)
        return result is not None and result.status == ProbeStatus.PASS

    offline = [r.hostname for r in reports if r.status == MachineStatus.OFFLINE]
    if offline:
        lines.append(f"• Offline per tailscale: {', '.join(offline)}. Power them on or run [cyan]tailmesh repair[/cyan] on them.")

    icmp_blocked = [r.hostname for r in reports if passed(r, "tailscale_ping") and failed(r, "icmp_ping")]
    if icmp_blocked:
        lines.append(
            f"• ICMP blocked but Tailscale reachable: {', '.join(icmp_blocked)}. "
            "On Windows, [cyan]tailmesh repair[/cyan] adds the firewall rule."
        )

    ssh_down = [r.hostname for r in reports if passed(r, "tailscale_ping") and failed(r, "ssh")]
    if ssh_down:
        lines.append(
            f"• SSH failing on reachable hosts: {', '.join(ssh_down)}. "
            "Check the SSH server is running and your key is in authorized_keys (--ssh-user / --ssh-key)."
        )

    unknown = [r.hostname for r in reports if r.overall == ProbeStatus.UNKNOWN]
    if unknown:
        lines.append("• Some probes could not run. Run with [cyan]-v[/cyan] for detailed logs.")
    return lines
