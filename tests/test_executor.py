"""Tests for the command executor (with mocked subprocess)."""
import shutil
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tailmesh.core.executor import CommandExecutor, CommandResult


@pytest.fixture
def real_executor(system_info, mock_logger):
    return CommandExecutor(system_info, mock_logger)


def test_run_command_success(real_executor):
    """run_command returns CommandResult with success=True when process returns 0."""
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="pong from nas", stderr="")
        result = real_executor.run_command(["tailscale", "ping", "-c", "1", "nas"])
    assert isinstance(result, CommandResult)
    assert result.success is True
    assert result.return_code == 0
    assert result.launched is True
    assert result.command == "tailscale ping -c 1 nas"
    assert result.stdout == "pong from nas"


def test_run_command_failure(real_executor):
    """run_command returns success=False when process returns non-zero."""
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=1, stdout="", stderr="connect: Network is unreachable")
        result = real_executor.run_command(["ping", "-c", "1", "192.0.2.1"])
    assert result.success is False
    assert result.return_code == 1
    assert result.timed_out is False
    assert "Network is unreachable" in result.stderr


def test_run_command_timeout(real_executor):
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.side_effect = subprocess.TimeoutExpired(cmd="ssh", timeout=2)
        result = real_executor.run_command(["ssh", "nas", "hostname"], timeout=2)
    assert result.success is False
    assert result.return_code == -1
    assert result.timed_out is True
    assert result.launched is True


def test_run_command_missing_binary(real_executor):
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.side_effect = FileNotFoundError("No such file or directory: 'tailscale'")
        result = real_executor.run_command(["tailscale", "status"])
    assert result.return_code == -1
    assert result.launched is False
    assert "tailscale" in result.error


def test_run_command_redacts_secrets_in_logs(real_executor, mock_logger):
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        result = real_executor.run_command(
            ["tailscale", "up", "--auth-key", "tskey-secret"],
            redact=["tskey-secret"],
        )
    assert "tskey-secret" not in result.command
    logged = " ".join(str(c) for c in mock_logger.debug.call_args_list)
    assert "tskey-secret" not in logged
    # the real secret still reaches the process
    assert m_run.call_args[0][0][-1] == "tskey-secret"


def test_run_command_passes_lenient_decoding(real_executor):
    with patch("tailmesh.core.executor.subprocess.run") as m_run:
        m_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        real_executor.run_command(["ping", "-n", "1", "nas"])
    kwargs = m_run.call_args.kwargs
    assert kwargs["encoding"] == "utf-8"
    assert kwargs["errors"] == "replace"


@pytest.mark.skipif(shutil.which("printf") is None, reason="printf not available")
def test_run_command_undecodable_output_does_not_raise(real_executor):
    """cp850 output (German Windows ping) must not abort the run."""
    result = real_executor.run_command(["printf", "Zeit\\201berschreitung\\377"])
    assert result.return_code == 0
    assert result.stdout.startswith("Zeit")
    assert "berschreitung" in result.stdout
    assert "�" in result.stdout
