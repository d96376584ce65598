"""
Remote command execution over SSH (RSSH).
"""

from tailmesh.ssh.remote import RemoteShell, SSH_CONNECTION_ERROR

__all__ = [
    "RemoteShell",
    "SSH_CONNECTION_ERROR",
]
