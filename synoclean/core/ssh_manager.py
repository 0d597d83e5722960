"""
SSH connection manager for non-interactive remote commands
"""
import shlex
from pathlib import Path
from typing import Optional

import paramiko

from .. import config as _cfg
from ..utils.logging import log, vlog
from ..utils.retry import retried


def list_ssh_hosts(config_path: Optional[Path] = None) -> list[str]:
    """Host aliases from an OpenSSH config, skipping wildcard patterns."""
    path = config_path or _cfg.get_ssh_config_file()
    if not path.is_file():
        return []
    ssh_config = paramiko.SSHConfig.from_path(str(path))
    hosts = []
    for name in ssh_config.get_hostnames():
        if name == "*" or any(c in name for c in "*?!"):
            continue
        hosts.append(name)
    return sorted(hosts)


def resolve_target(target: str, config_path: Optional[Path] = None) -> dict:
    """
    Turn an opaque connection target ("alias", "host", "user@host") into
    paramiko connect() kwargs, honouring ~/.ssh/config and config overrides.
    """
    user = None
    host = target
    if "@" in target:
        user, host = target.rsplit("@", 1)

    path = config_path or _cfg.get_ssh_config_file()
    entry: dict = {}
    if path.is_file():
        entry = paramiko.SSHConfig.from_path(str(path)).lookup(host)

    kw: dict = dict(hostname=entry.get("hostname", host))
    port = _cfg.SSH_PORT or entry.get("port")
    kw["port"] = int(port) if port else 22
    username = user or _cfg.SSH_USER or entry.get("user")
    if username:
        kw["username"] = username
    if _cfg.SSH_KEY_PATH:
        kw["key_filename"] = str(Path(_cfg.SSH_KEY_PATH).expanduser())
    elif entry.get("identityfile"):
        kw["key_filename"] = [str(Path(p).expanduser()) for p in entry["identityfile"]]
    return kw


class SSHManager:
    """
    Wraps a paramiko SSHClient for one connection target.
    Every remote command runs on its own exec channel: no pty, stdin
    closed, no timeout.
    """

    def __init__(self, target: str):
        self.target = target
        self._ssh: Optional[paramiko.SSHClient] = None

    # ── connection ─────────────────────────────────────────────────────────

    @retried
    def connect(self):
        if self._ssh:
            return

        kw = resolve_target(self.target)
        log(f"[SSH] connecting to {self.target} ({kw['hostname']}:{kw['port']}) …")
        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        client.connect(**kw, banner_timeout=30, auth_timeout=30)

        # Keep-alive: send a NOP every 30s
        client.get_transport().set_keepalive(30)

        self._ssh = client
        log("[SSH] connected ✓")

    def disconnect(self):
        if self._ssh is None:
            return
        self._ssh.close()
        self._ssh = None
        log("[SSH] disconnected.")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()
        return False

    # ── raw exec ────────────────────────────────────────────────────────────

    def run(self, argv: list[str]) -> tuple[int, str, str]:
        """
        Run *argv* on the remote host; return (exit_status, stdout, stderr).
        Each element is quoted individually, so paths are never split,
        globbed or read as shell syntax.
        """
        if self._ssh is None:
            raise RuntimeError("SSHManager.run() called before connect()")
        cmd = shlex.join(argv)
        vlog(f"  [SSH] exec: {cmd[:200]}{'…' if len(cmd) > 200 else ''}")
        stdin, stdout, stderr = self._ssh.exec_command(cmd)
        stdin.close()
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        rc = stdout.channel.recv_exit_status()
        return rc, out, err
