"""
Command execution engine.
"""

import subprocess
import time
from typing import List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel

from tailmesh.core.detector import SystemInfo


class CommandResult(BaseModel):
    """Result of a command execution."""

    command: str
    return_code: int
    stdout: str
    stderr: str
    duration: float
    success: bool
    timed_out: bool = False
    error: Optional[str] = None

    @property
    def launched(self) -> bool:
        """True when the process actually started (it may still have failed)."""
        return self.error is None

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}".strip()


class CommandExecutor:
    """Execute external commands (tailscale, ssh, ping, service managers)."""

    def __init__(self, system_info: SystemInfo, app_logger=logger):
        self.system_info = system_info
        self.logger = app_logger

    def run_command(
        self,
        command: List[str],
        timeout: float = 30,
        capture_output: bool = True,
        redact: Sequence[str] = (),
    ) -> CommandResult:
        """
        Execute a system command.

        Args:
            command: Command and arguments as a list
            timeout: Timeout in seconds
            capture_output: Whether to capture stdout/stderr
            redact: Secrets (auth keys) masked in the logged command line

        Returns:
            CommandResult object. Timeouts and launch errors are reported
            through return_code -1 rather than raised.
        """
        start_time = time.time()
        cmd_str = " ".join(command)
        for secret in redact:
            if secret:
                cmd_str = cmd_str.replace(secret, "***")

        self.logger.debug(f"Executing command: {cmd_str}")

        try:
            result = subprocess.run(
                command,
                capture_output=capture_output,
                text=True,
                # ping on localized Windows writes OEM code page bytes
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )

            duration = time.time() - start_time

            command_result = CommandResult(
                command=cmd_str,
                return_code=result.returncode,
                stdout=result.stdout or "",
                stderr=result.stderr or "",
                duration=duration,
                success=(result.returncode == 0),
            )

            self.logger.debug(
                f"Command completed: {cmd_str} "
                f"(return code: {result.returncode}, duration: {duration:.2f}s)"
            )

            return command_result

        except subprocess.TimeoutExpired:
            duration = time.time() - start_time
            self.logger.warning(f"Command timed out after {timeout}s: {cmd_str}")

            return CommandResult(
                command=cmd_str,
                return_code=-1,
                stdout="",
                stderr=f"Command timed out after {timeout} seconds",
                duration=duration,
                success=False,
                timed_out=True,
            )

        except OSError as e:
            duration = time.time() - start_time
            self.logger.error(f"Command failed: {cmd_str} - {e}")

            return CommandResult(
                command=cmd_str,
                return_code=-1,
                stdout="",
                stderr=str(e),
                duration=duration,
                success=False,
                error=str(e),
            )
