"""
Main CLI application using Typer.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, List, Optional

import questionary
import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from tailmesh.cli.formatters import (
    format_host_reports,
    format_machines,
    format_mesh,
    format_steps,
    format_summary,
    print_header,
    print_system_info,
)
from tailmesh.core.config import AppConfig, load_config_file
from tailmesh.core.detector import SystemDetector
from tailmesh.core.executor import CommandExecutor
from tailmesh.modules.audit import FleetAuditor, summarize, summarize_mesh
from tailmesh.modules.base import ProbeStatus, StepResult
from tailmesh.modules.install import Installer
from tailmesh.modules.repair import Repairer
from tailmesh.ssh.remote import RemoteShell
from tailmesh.storage.csv_handler import CSVHandler
from tailmesh.storage.logger import setup_logging
from tailmesh.storage.report import FleetReport, load_report, write_report
from tailmesh.tailscale.client import TailscaleClient, TailscaleError
from tailmesh.tailscale.status import Machine

app = typer.Typer(
    name="tailmesh",
    help="Install, repair and audit Tailscale + SSH connectivity across your machines",
    add_completion=False,
)

console = Console()

# Without these no probe can run
REQUIRED_TOOLS = ("tailscale", "ssh")


def _output_option():
    return typer.Option(None, "--output", "-o", help="Output directory for logs, results and reports")


def _verbose_option():
    return typer.Option(False, "--verbose", "-v", help="Enable verbose output")


def _format_option():
    return typer.Option("rich", "--format", "-f", help="Output format: 'rich' (default) or 'json'")


def _ssh_user_option():
    return typer.Option(None, "--ssh-user", "-u", help="SSH user (default: current user or config)")


def _ssh_key_option():
    return typer.Option(None, "--ssh-key", "-k", help="SSH private key (default: ~/.ssh/id_ed25519 if present)")


def _init_context(output_dir: Optional[Path], verbose: bool, json_output: bool = False, **overrides: Any):
    """
    Initialize shared objects: config, logger, system info and executor.
    Values from ~/.tailmesh.yaml or ./.tailmesh.yaml are used where the CLI does not set them.
    JSON runs log to the files only, so stdout carries nothing but the payload.
    """
    values = load_config_file()
    if output_dir is not None:
        values["output_dir"] = output_dir
    if verbose:
        values["verbose"] = True
    values.update({k: v for k, v in overrides.items() if v is not None})
    config = AppConfig(**values)

    logger = setup_logging(config.output_dir, config.verbose, console=not json_output)
    system_info = SystemDetector().detect_system()
    executor = CommandExecutor(system_info, logger)

    return config, logger, system_info, executor


def _require_tools(tools: List[str], logger, quiet: bool = False) -> None:
    """Report missing tools with install hints; exit 1 when tailscale or ssh is among them."""
    detector = SystemDetector()
    missing = detector.check_required_tools(tools)
    for tool in missing:
        logger.warning(f"Missing tool: {tool.name} ({tool.suggestion})")

    if missing and not quiet:
        console.print("\n[bold yellow]⚠ Missing tools:[/bold yellow]")
        for tool in missing:
            console.print(f"  • {tool.name}: {tool.suggestion}")

    blocking = [tool.name for tool in missing if tool.name in REQUIRED_TOOLS]
    if blocking:
        console.print(f"[red]✗ Cannot continue without: {', '.join(blocking)}[/red]")
        raise typer.Exit(1)

    for tool in tools:
        logger.debug(f"{tool}: {detector.get_tool_path(tool) or 'not found'}")


def _discover(
    client: TailscaleClient,
    logger,
    include_self: bool = True,
    online_only: bool = False,
) -> List[Machine]:
    """Discover machines or exit 1 when none can be found."""
    try:
        machines = client.discover_machines(include_self=include_self, online_only=online_only)
    except TailscaleError as e:
        logger.error(str(e))
        console.print(f"[red]✗ {e}[/red]")
        console.print("[dim]Is Tailscale installed and running? Try: tailmesh repair[/dim]")
        raise typer.Exit(1)

    if not machines:
        logger.error("No machines found on the tailnet")
        console.print("[red]✗ No machines found on the tailnet.[/red]")
        raise typer.Exit(1)
    return machines


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _confirm(question: str) -> bool:
    return bool(questionary.confirm(question, default=True).ask())


def _build_shell(executor: CommandExecutor, config: AppConfig) -> RemoteShell:
    return RemoteShell(
        executor,
        user=config.ssh_user,
        key=config.ssh_key,
        port=config.ssh_port,
        connect_timeout=config.ssh_connect_timeout,
        host_users=config.host_users,
    )


def _failed(steps: List[StepResult]) -> bool:
    return any(step.status == ProbeStatus.FAIL for step in steps)


@app.callback(invoke_without_command=True)
def _default(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
    ),
):
    """
    tailmesh - Tailscale fleet connectivity auditing and repair.
    """
    if version:
        from tailmesh import __version__
        console.print(f"tailmesh {__version__}")
        raise typer.Exit(0)
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def status(
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    output_format: str = _format_option(),
    online_only: bool = typer.Option(False, "--online-only", help="Hide offline machines"),
):
    """
    List machines on the tailnet and their reachability.
    """
    config, logger, system_info, executor = _init_context(output_dir, verbose, json_output=output_format == "json")
    _require_tools(["tailscale"], logger, quiet=output_format == "json")
    client = TailscaleClient(executor)
    machines = _discover(client, logger, online_only=online_only)

    if output_format == "json":
        _echo_json([m.model_dump(mode="json", exclude={"raw"}) for m in machines])
        return

    print_header(console, client.tailnet_name())
    format_machines(machines, console)


@app.command()
def audit(
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    output_format: str = _format_option(),
    ssh_user: Optional[str] = _ssh_user_option(),
    ssh_key: Optional[Path] = _ssh_key_option(),
    command: Optional[str] = typer.Option(
        None,
        "--command",
        "-c",
        help="Command run over SSH on each host (default: hostname)",
    ),
    online_only: bool = typer.Option(False, "--online-only", help="Skip machines tailscale reports offline"),
    include_self: bool = typer.Option(True, "--include-self/--exclude-self", help="Probe this machine too"),
    generate_report: bool = typer.Option(
        False,
        "--generate-report",
        "-r",
        help="Write a JSON report to the run directory",
    ),
):
    """
    Probe every machine: Tailscale ping, ICMP ping and an SSH command, one host at a time.
    """
    config, logger, system_info, executor = _init_context(
        output_dir,
        verbose,
        json_output=output_format == "json",
        ssh_user=ssh_user,
        ssh_key=ssh_key,
        remote_command=command,
    )
    _require_tools(["tailscale", "ssh", "ping"], logger, quiet=output_format == "json")
    client = TailscaleClient(executor)
    machines = _discover(client, logger, include_self=include_self, online_only=online_only)
    tailnet = client.tailnet_name()

    run_dir = config.create_run_dir("audit")
    logger.info(f"Created run directory: {run_dir}")
    csv_handler = CSVHandler(run_dir / "results.csv")
    auditor = FleetAuditor(executor, config, shell=_build_shell(executor, config), client=client, csv_handler=csv_handler)

    if output_format != "json":
        print_header(console, tailnet)

    with Progress(
        TextColumn("[dim]{task.description}[/dim]"),
        SpinnerColumn(),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=output_format == "json",
    ) as progress:
        task = progress.add_task("Probing hosts…", total=len(machines))

        def _cb(completed: int, total: int, machine: Machine) -> None:
            progress.update(task, completed=completed, description=f"Probed {machine.hostname}")

        reports = auditor.audit(machines, progress_callback=_cb)

    summary = summarize(reports)
    report = FleetReport(
        tailnet=tailnet,
        generated_by=system_info.hostname,
        hosts=reports,
        summary=summary,
    )

    report_path = None
    if generate_report:
        report_path = write_report(report, run_dir)

    if output_format == "json":
        _echo_json(report.model_dump(mode="json"))
    else:
        format_host_reports(reports, console)
        console.print("\n[bold]Summary[/bold]")
        format_summary(summary, console)
        if report_path:
            console.print(f"\n[bold green]✓ Report written:[/bold green] {report_path}")

    failing = sum(1 for r in reports if r.overall != ProbeStatus.PASS)
    config.save_metadata(
        run_dir,
        {
            "command": "audit",
            "tailnet": tailnet,
            "hosts": len(reports),
            "failing_hosts": failing,
            "report": str(report_path) if report_path else None,
            "system_info": system_info.model_dump(mode="json"),
        },
    )


@app.command()
def mesh(
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    output_format: str = _format_option(),
    ssh_user: Optional[str] = _ssh_user_option(),
    ssh_key: Optional[Path] = _ssh_key_option(),
    generate_report: bool = typer.Option(
        False,
        "--generate-report",
        "-r",
        help="Write a JSON report to the run directory",
    ),
):
    """
    All-to-all check: SSH into each machine and tailscale-ping every other machine.
    """
    config, logger, system_info, executor = _init_context(
        output_dir,
        verbose,
        json_output=output_format == "json",
        ssh_user=ssh_user,
        ssh_key=ssh_key,
    )
    _require_tools(["tailscale", "ssh"], logger, quiet=output_format == "json")
    client = TailscaleClient(executor)
    machines = _discover(client, logger)
    tailnet = client.tailnet_name()

    run_dir = config.create_run_dir("mesh")
    logger.info(f"Created run directory: {run_dir}")
    auditor = FleetAuditor(executor, config, shell=_build_shell(executor, config), client=client)

    with Progress(
        TextColumn("[dim]{task.description}[/dim]"),
        SpinnerColumn(),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=output_format == "json",
    ) as progress:
        task = progress.add_task("Checking mesh…", total=len(machines))

        def _cb(completed: int, total: int, machine: Machine) -> None:
            progress.update(task, completed=completed, description=f"Checked from {machine.hostname}")

        links = auditor.mesh_audit(machines, progress_callback=_cb)

    report = FleetReport(
        tailnet=tailnet,
        generated_by=system_info.hostname,
        mesh=links,
        summary=summarize_mesh(links),
    )
    report_path = write_report(report, run_dir, kind="mesh") if generate_report else None

    if output_format == "json":
        _echo_json(report.model_dump(mode="json"))
    else:
        print_header(console, tailnet)
        format_mesh(links, console)
        if report_path:
            console.print(f"\n[bold green]✓ Report written:[/bold green] {report_path}")

    config.save_metadata(
        run_dir,
        {
            "command": "mesh",
            "tailnet": tailnet,
            "hosts": len(machines),
            "failing_hosts": len({link.source for link in links if link.status != ProbeStatus.PASS}),
            "report": str(report_path) if report_path else None,
            "system_info": system_info.model_dump(mode="json"),
        },
    )


@app.command(context_settings={"allow_interspersed_args": False, "ignore_unknown_options": True})
def rssh(
    host: str = typer.Argument(..., help="Tailnet hostname (or IP) to run the command on"),
    command: List[str] = typer.Argument(..., help="Command to run remotely"),
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    ssh_user: Optional[str] = _ssh_user_option(),
    ssh_key: Optional[Path] = _ssh_key_option(),
    timeout: int = typer.Option(60, "--timeout", "-t", help="Seconds to wait for the command"),
):
    """
    Run a command on a tailnet machine over SSH, resolving its hostname to its Tailscale IP.
    """
    config, logger, system_info, executor = _init_context(
        output_dir,
        verbose,
        ssh_user=ssh_user,
        ssh_key=ssh_key,
    )
    _require_tools(["ssh"], logger)
    client = TailscaleClient(executor)
    try:
        machines = client.discover_machines()
    except TailscaleError as e:
        logger.warning(f"Hostname resolution via tailscale unavailable: {e}")
        machines = []

    shell = _build_shell(executor, config)
    result = shell.run(host, " ".join(command), machines=machines, timeout=timeout)

    if result.stdout:
        typer.echo(result.stdout.rstrip("\n"))
    if result.stderr and not result.success:
        typer.echo(result.stderr.rstrip("\n"), err=True)
    if not result.success:
        raise typer.Exit(result.return_code if result.return_code > 0 else 1)


@app.command()
def install(
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    auto: bool = typer.Option(False, "--auto", "-a", help="Run every step without asking"),
    auth_key: Optional[str] = typer.Option(
        None,
        "--auth-key",
        envvar="TAILSCALE_AUTHKEY",
        help="Tailscale auth key for unattended login",
    ),
    tailscale_ssh: bool = typer.Option(False, "--tailscale-ssh", help="Enable Tailscale SSH on `tailscale up`"),
    ssh_key: Optional[Path] = _ssh_key_option(),
):
    """
    Install Tailscale and an SSH server, create an SSH key, and join the tailnet.
    """
    config, logger, system_info, executor = _init_context(output_dir, verbose)
    print_system_info(system_info, console)

    installer = Installer(
        executor,
        ssh_key=ssh_key,
        auth_key=auth_key,
        enable_tailscale_ssh=tailscale_ssh,
    )
    steps = installer.run(auto=auto, confirm=None if auto else _confirm)
    format_steps(steps, console, "Install")

    if _failed(steps):
        raise typer.Exit(1)


@app.command()
def repair(
    output_dir: Optional[Path] = _output_option(),
    verbose: bool = _verbose_option(),
    auto: bool = typer.Option(False, "--auto", "-a", help="Apply every fix without asking"),
    check_only: bool = typer.Option(False, "--check", help="Only diagnose, change nothing"),
    auth_key: Optional[str] = typer.Option(
        None,
        "--auth-key",
        envvar="TAILSCALE_AUTHKEY",
        help="Tailscale auth key used if the node must log in again",
    ),
):
    """
    Diagnose this machine's Tailscale and SSH setup and fix what is broken.
    """
    config, logger, system_info, executor = _init_context(output_dir, verbose)
    repairer = Repairer(executor, auth_key=auth_key)

    if check_only:
        steps = repairer.diagnose()
        format_steps(steps, console, "Diagnosis")
    else:
        steps = repairer.repair(auto=auto, confirm=None if auto else _confirm)
        format_steps(steps, console, "Repair")

    if _failed(steps):
        raise typer.Exit(1)


@app.command()
def report(
    path: Path = typer.Argument(..., help="JSON report written by `audit -r` or `mesh -r`"),
    output_format: str = _format_option(),
):
    """
    Display a saved JSON report.
    """
    if not path.exists() or not path.is_file():
        console.print(f"[red]Report not found:[/red] {path}")
        raise typer.Exit(1)

    try:
        fleet = load_report(path)
    except (ValueError, OSError) as e:
        console.print(f"[red]Could not read report:[/red] {e}")
        raise typer.Exit(1)

    if output_format == "json":
        _echo_json(fleet.model_dump(mode="json"))
        return

    print_header(console, fleet.tailnet)
    console.print(f"[dim]Generated {fleet.timestamp:%Y-%m-%d %H:%M:%S} on {fleet.generated_by or '—'}[/dim]")
    if fleet.hosts:
        format_host_reports(fleet.hosts, console)
        console.print("\n[bold]Summary[/bold]")
        format_summary(fleet.summary or summarize(fleet.hosts), console)
    if fleet.mesh:
        format_mesh(fleet.mesh, console)


@app.command()
def history(
    output_dir: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output directory where runs are stored (default: output)",
    ),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Maximum number of runs to show",
    ),
):
    """
    Show the last N audit runs (from the output directory).
    """
    out = output_dir if output_dir is not None else AppConfig(**load_config_file()).output_dir
    if not out.exists() or not out.is_dir():
        console.print(f"[yellow]No output directory at {out}[/yellow]")
        return

    # Subdirs named like 2026-02-12_223600_audit
    pattern = re.compile(r"^\d{4}-\d{2}-\d{2}_\d{6}_.+")
    run_dirs = sorted(
        [d for d in out.iterdir() if d.is_dir() and pattern.match(d.name)],
        key=lambda p: p.name,
        reverse=True,
    )[:limit]

    if not run_dirs:
        console.print("[dim]No runs found.[/dim]")
        return

    table = Table(title="Recent runs", show_header=True)
    table.add_column("Time", style="cyan")
    table.add_column("Command", style="white")
    table.add_column("Tailnet", style="white")
    table.add_column("Hosts", style="white")
    table.add_column("Failing", style="white")

    for run_dir in run_dirs:
        meta_file = run_dir / "metadata.json"
        time_str = run_dir.name[:17].replace("_", " ")
        command = run_dir.name[18:]
        tailnet = hosts = failing = "—"
        if meta_file.exists():
            try:
                with open(meta_file, "r", encoding="utf-8") as f:
                    meta = json.load(f)
            except (OSError, json.JSONDecodeError):
                meta = {}
            command = meta.get("command", command)
            tailnet = str(meta.get("tailnet", "—"))
            hosts = str(meta.get("hosts", "—"))
            failing = str(meta.get("failing_hosts", "—"))
        table.add_row(time_str, command, tailnet, hosts, failing)

    console.print()
    console.print(table)


@app.command()
def glossary(
    term: Optional[str] = typer.Argument(None, help="Term to look up (e.g., tailnet, rssh, icmp)"),
):
    """
    Show glossary of terms. Use without a term to list all available terms.
    """
    from tailmesh.cli.glossary_content import get_glossary_entry, list_glossary_terms

    if term is None:
        console.print("\n[bold cyan]Available glossary terms:[/bold cyan]\n")
        for t in list_glossary_terms():
            console.print(f"  • [cyan]{t}[/cyan]")
        console.print("\n[dim]Use: tailmesh glossary <term> to see details[/dim]\n")
        return

    entry = get_glossary_entry(term)
    if entry is None:
        console.print(f"\n[red]Term '{term}' not found.[/red]")
        console.print("[dim]Use 'tailmesh glossary' (no term) to see all available terms.[/dim]\n")
        return

    term_name, content = entry
    console.print()
    console.print(Panel(content, title=f"Glossary: {term_name}", border_style="cyan", expand=False))
    console.print()
