"""Tests for AppConfig and config file loading."""
from pathlib import Path

import pytest

from tailmesh.core.config import AppConfig, load_config_file


def test_app_config_explicit_output_dir(tmp_path):
    """When output_dir is provided, it is used, resolved and created."""
    path = tmp_path / "custom_out"
    config = AppConfig(output_dir=path)
    assert config.output_dir == path.resolve()
    assert config.output_dir.exists()


def test_app_config_output_dir_from_string(tmp_path):
    """output_dir can be passed as a string and is converted to Path."""
    config = AppConfig(output_dir=str(tmp_path))
    assert config.output_dir == tmp_path.resolve()


def test_app_config_probe_timeouts_default(tmp_path):
    config = AppConfig(output_dir=tmp_path)
    assert config.tailscale_ping_timeout == 2.0
    assert config.icmp_timeout == 1.0
    assert config.ssh_connect_timeout == 2
    assert config.remote_command == "hostname"


def test_app_config_env_prefix(tmp_path, monkeypatch):
    """TAILMESH_* environment variables fill in unset fields."""
    monkeypatch.setenv("TAILMESH_SSH_USER", "fleetadmin")
    monkeypatch.setenv("TAILMESH_SSH_PORT", "2222")
    config = AppConfig(output_dir=tmp_path)
    assert config.ssh_user == "fleetadmin"
    assert config.ssh_port == 2222


def test_app_config_kwargs_beat_env(tmp_path, monkeypatch):
    monkeypatch.setenv("TAILMESH_SSH_USER", "fleetadmin")
    config = AppConfig(output_dir=tmp_path, ssh_user="root")
    assert config.ssh_user == "root"


def test_app_config_ssh_key_expanded(tmp_path):
    config = AppConfig(output_dir=tmp_path, ssh_key="~/.ssh/fleet")
    assert config.ssh_key == Path.home() / ".ssh" / "fleet"


def test_host_users_from_kwargs(tmp_path):
    config = AppConfig(output_dir=tmp_path, host_users={"Win-Desktop": "Administrator"})
    assert config.host_users == {"Win-Desktop": "Administrator"}


def test_create_run_dir(tmp_path):
    """create_run_dir creates a timestamped subdirectory."""
    config = AppConfig(output_dir=tmp_path)
    run_dir = config.create_run_dir("audit")
    assert run_dir.parent == config.output_dir
    assert run_dir.name.startswith("20")
    assert run_dir.name.endswith("_audit")
    assert run_dir.is_dir()


def test_save_metadata_adds_timestamp(tmp_path):
    import json

    config = AppConfig(output_dir=tmp_path)
    config.save_metadata(tmp_path, {"command": "audit"})
    data = json.loads((tmp_path / "metadata.json").read_text())
    assert data["command"] == "audit"
    assert "timestamp" in data


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.chdir(work)
    return home, work


def test_load_config_file_no_file(isolated_home):
    assert load_config_file() == {}


def test_load_config_file_reads_known_keys(isolated_home):
    home, _ = isolated_home
    (home / ".tailmesh.yaml").write_text(
        "ssh_user: admin\n"
        "ssh_key: ~/.ssh/fleet\n"
        "verbose: true\n"
        "host_users:\n"
        "  nas: root\n"
        "unrelated: 1\n"
    )
    cfg = load_config_file()
    assert cfg["ssh_user"] == "admin"
    assert cfg["ssh_key"] == home / ".ssh" / "fleet"
    assert cfg["verbose"] is True
    assert cfg["host_users"] == {"nas": "root"}
    assert "unrelated" not in cfg


def test_load_config_file_invalid_yaml(isolated_home):
    _, work = isolated_home
    (work / ".tailmesh.yaml").write_text("ssh_user: [unclosed\n")
    assert load_config_file() == {}
