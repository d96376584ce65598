"""Shared fixtures."""
from unittest.mock import MagicMock

import pytest

from tailmesh.core.detector import SystemInfo
from tailmesh.core.executor import CommandResult

STATUS_OUTPUT = """\
100.101.102.103  workstation          alice@       linux   -
100.101.102.104  nas                  alice@       linux   active; direct 192.168.1.20:41641, tx 1234 rx 5678
100.101.102.105  win-desktop          alice@       windows idle, tx 10 rx 20
100.101.102.106  macbook              alice@       macOS   offline

# Health check:
#     - Some peers are advertising routes but --accept-routes is false
"""


def make_result(
    return_code: int = 0,
    stdout: str = "",
    stderr: str = "",
    timed_out: bool = False,
    error=None,
    command: str = "cmd",
) -> CommandResult:
    return CommandResult(
        command=command,
        return_code=return_code,
        stdout=stdout,
        stderr=stderr,
        duration=0.1,
        success=(return_code == 0 and not timed_out and error is None),
        timed_out=timed_out,
        error=error,
    )


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def system_info():
    return SystemInfo(
        os_type="Linux",
        platform="Linux-6.1",
        python_version="3.11.0",
        hostname="workstation",
        home_dir="/home/alice",
    )


@pytest.fixture
def executor(system_info, mock_logger):
    """Executor double whose run_command is a MagicMock."""
    ex = MagicMock()
    ex.system_info = system_info
    ex.logger = mock_logger
    ex.run_command.return_value = make_result()
    return ex
