"""
Storage and logging components.
"""

from tailmesh.storage.csv_handler import CSVHandler
from tailmesh.storage.logger import setup_logging
from tailmesh.storage.report import FleetReport, load_report, report_filename, write_report

__all__ = [
    "setup_logging",
    "CSVHandler",
    "FleetReport",
    "load_report",
    "report_filename",
    "write_report",
]
