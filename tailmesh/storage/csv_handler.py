"""
CSV log of probe results for a run.
"""

import csv
from pathlib import Path
from typing import List

from loguru import logger

from tailmesh.modules.base import ProbeResult
from tailmesh.tailscale.status import Machine


class CSVHandler:
    """Append one row per probe result to a CSV file."""

    fieldnames = [
        'timestamp',
        'hostname',
        'ip',
        'machine_status',
        'probe',
        'status',
        'duration',
        'message',
    ]

    def __init__(self, csv_file: Path):
        """
        Initialize CSV handler.

        Args:
            csv_file: Path to CSV file
        """
        self.csv_file = csv_file

        # Create CSV file with headers if it doesn't exist
        if not csv_file.exists():
            self._create_csv()

    def _create_csv(self):
        """Create CSV file with headers."""
        with open(self.csv_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writeheader()

        logger.debug(f"Created CSV file: {self.csv_file}")

    def write_result(self, machine: Machine, result: ProbeResult):
        """Write a probe result row."""
        row = {
            'timestamp': result.timestamp.isoformat(),
            'hostname': machine.hostname,
            'ip': machine.ip,
            'machine_status': machine.status.value,
            'probe': result.name,
            'status': result.status.value,
            'duration': f"{result.duration:.3f}",
            'message': result.message,
        }

        with open(self.csv_file, 'a', newline='', encoding='utf-8') as f:
            writer = csv.DictWriter(f, fieldnames=self.fieldnames)
            writer.writerow(row)

    def read_results(self) -> List[dict]:
        """
        Read all results from CSV.

        Returns:
            List of row dictionaries
        """
        if not self.csv_file.exists():
            return []

        with open(self.csv_file, 'r', newline='', encoding='utf-8') as f:
            return list(csv.DictReader(f))
