"""
Configuration management.
"""

import getpass
import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE_NAME = ".tailmesh.yaml"

_PATH_KEYS = ("output_dir", "ssh_key")
_KNOWN_KEYS = (
    "output_dir",
    "verbose",
    "timeout",
    "ssh_user",
    "ssh_key",
    "ssh_port",
    "host_users",
    "remote_command",
    "tailscale_ping_timeout",
    "icmp_timeout",
    "ssh_connect_timeout",
)


def _default_ssh_user() -> Optional[str]:
    """Login name of the current user (USER / USERNAME)."""
    for var in ("USER", "USERNAME"):
        value = os.environ.get(var)
        if value:
            return value
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def _default_ssh_key() -> Optional[Path]:
    """First existing private key under ~/.ssh, if any."""
    ssh_dir = Path.home() / ".ssh"
    for name in ("id_ed25519", "id_rsa", "id_ecdsa"):
        candidate = ssh_dir / name
        if candidate.exists():
            return candidate
    return None


def load_config_file() -> Dict[str, Any]:
    """
    Load optional config from ~/.tailmesh.yaml or ./.tailmesh.yaml.

    The first file found wins. Unknown keys are ignored and missing keys are
    omitted so callers can use their own defaults.
    """
    candidates = [
        Path.home() / CONFIG_FILE_NAME,
        Path.cwd() / CONFIG_FILE_NAME,
    ]
    raw: Dict[str, Any] = {}
    for path in candidates:
        if not path.exists():
            continue
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            raw = {}
        break

    if not isinstance(raw, dict):
        return {}

    result: Dict[str, Any] = {}
    for key in _KNOWN_KEYS:
        if key not in raw or raw[key] is None:
            continue
        value = raw[key]
        if key in _PATH_KEYS:
            value = Path(str(value)).expanduser()
        result[key] = value
    return result


class AppConfig(BaseSettings):
    """
    Application configuration.

    Values come from (highest first) explicit keyword arguments, TAILMESH_*
    environment variables, then the field defaults below.
    """

    model_config = SettingsConfigDict(
        env_prefix="TAILMESH_",
        arbitrary_types_allowed=True,
        extra="ignore",
    )

    output_dir: Path = Field(default=Path("output"))
    verbose: bool = False
    timeout: int = 30

    # SSH access
    ssh_user: Optional[str] = Field(default_factory=_default_ssh_user)
    ssh_key: Optional[Path] = Field(default_factory=_default_ssh_key)
    ssh_port: int = 22
    host_users: Dict[str, str] = Field(default_factory=dict)
    remote_command: str = "hostname"

    # Probe timeouts (seconds)
    tailscale_ping_timeout: float = 2.0
    icmp_timeout: float = 1.0
    ssh_connect_timeout: int = 2

    @field_validator("output_dir", mode="before")
    @classmethod
    def validate_output_dir(cls, v):
        """Validate and convert output_dir to Path."""
        if v is None:
            return Path("output")
        if isinstance(v, str):
            return Path(v)
        if isinstance(v, Path):
            return v
        return Path("output")

    @field_validator("ssh_key", mode="before")
    @classmethod
    def validate_ssh_key(cls, v):
        if v is None or v == "":
            return None
        return Path(str(v)).expanduser()

    def model_post_init(self, __context):
        """Ensure output directory exists and is resolved to absolute path."""
        self.output_dir = self.output_dir.resolve()
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def create_run_dir(self, run_name: str) -> Path:
        """Create a timestamped directory for a run."""
        timestamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
        run_dir = self.output_dir / f"{timestamp}_{run_name}"
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    def save_metadata(self, run_dir: Path, metadata: dict):
        """Save run metadata to JSON file."""
        metadata_file = run_dir / "metadata.json"

        metadata["timestamp"] = datetime.now().isoformat()

        with open(metadata_file, "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2, default=str)
