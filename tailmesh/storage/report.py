"""
JSON audit reports.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from tailmesh.modules.base import HostReport, MeshLink


class FleetReport(BaseModel):
    """Everything one audit run produced."""

    tailnet: str
    timestamp: datetime = Field(default_factory=datetime.now)
    generated_by: str = ""
    hosts: List[HostReport] = []
    mesh: Optional[List[MeshLink]] = None
    summary: Dict[str, Dict[str, int]] = {}


def report_filename(kind: str = "audit", when: Optional[datetime] = None) -> str:
    """Timestamped report filename, e.g. tailscale_audit_20240101_120000.json."""
    when = when or datetime.now()
    return f"tailscale_{kind}_{when.strftime('%Y%m%d_%H%M%S')}.json"


def write_report(report: FleetReport, directory: Path, kind: str = "audit") -> Path:
    """
    Serialize a report into `directory`.

    Returns:
        Path of the written file
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / report_filename(kind, report.timestamp)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.model_dump(mode="json"), f, indent=2)
    logger.info(f"Report written to {path}")
    return path


def load_report(path: Path) -> FleetReport:
    """Load a report written by write_report."""
    with open(path, "r", encoding="utf-8") as f:
        return FleetReport.model_validate(json.load(f))
