"""
Configuration constants for synoclean
"""
import os
from pathlib import Path
from typing import Optional

import yaml

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config, apply_profile() or CLI flags
# ══════════════════════════════════════════════════════════════════════════════

# How many @eaDir paths are removed per remote `rm` round-trip.
BATCH_SIZE = 100

# Pending deletions; kept on disk so an interrupted run can resume.
QUEUE_FILE = "to_delete_queue.txt"

# rsync is used as the remote lister (the remote shell has no `find`).
RSYNC_BIN = "rsync"
# Pass -s/--protect-args so the remote path is not word-split by the
# remote shell. Needs rsync >= 3.0 on both ends.
RSYNC_PROTECT_ARGS = False

# Host aliases and per-host settings are read from here.
DEFAULT_SSH_CONFIG_FILE = "~/.ssh/config"
SSH_CONFIG_FILE = DEFAULT_SSH_CONFIG_FILE
# Explicit overrides; None means "whatever ~/.ssh/config says".
SSH_PORT: Optional[int] = None
SSH_USER: Optional[str] = None
SSH_KEY_PATH: Optional[str] = None

# Retry settings (SSH transport setup only)
RETRY_MAX = 3
RETRY_BASE_DELAY = 2.0  # seconds; doubles each attempt


def get_queue_file() -> Path:
    """Return the queue file path (relative paths resolve against cwd)."""
    return Path(QUEUE_FILE).expanduser()


def get_ssh_config_file() -> Path:
    return Path(SSH_CONFIG_FILE).expanduser()


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/synoclean/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for synoclean."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "synoclean"
    return Path.home() / ".config" / "synoclean"


def load_global_config() -> dict:
    """
    Load global config; a missing file means no overrides.
    Raises ValueError when the file is not a YAML mapping.
    """
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    with cfg_path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ValueError(f"invalid config file {cfg_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"invalid config file {cfg_path}: expected a mapping at the top level")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults", {})
    profiles = data.get("profiles", [])
    if not profiles:
        return defaults.copy()
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = defaults.copy()
    merged.update(profile)
    return merged


# ══════════════════════════════════════════════════════════════════════════════
#  APPLY PROFILE  ── mutates module-level variables
# ══════════════════════════════════════════════════════════════════════════════

def apply_profile(profile: dict):
    """
    Apply a profile dict to the module-level config variables.
    Supports keys: batch_size, queue_file, rsync_path, rsync_protect_args,
                   ssh_config, port, user, ssh_key.
    Keys `host` and `remote_path` are read by the CLI directly.
    """
    global BATCH_SIZE, QUEUE_FILE, RSYNC_BIN, RSYNC_PROTECT_ARGS
    global SSH_CONFIG_FILE, SSH_PORT, SSH_USER, SSH_KEY_PATH

    if "batch_size" in profile:
        size = int(profile["batch_size"])
        if size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {size}")
        BATCH_SIZE = size
    if "queue_file" in profile:
        QUEUE_FILE = str(profile["queue_file"])
    if "rsync_path" in profile:
        RSYNC_BIN = str(profile["rsync_path"])
    if "rsync_protect_args" in profile:
        RSYNC_PROTECT_ARGS = bool(profile["rsync_protect_args"])
    if "ssh_config" in profile:
        SSH_CONFIG_FILE = str(profile["ssh_config"])
    if "port" in profile:
        SSH_PORT = int(profile["port"]) if profile["port"] else None
    if "user" in profile:
        SSH_USER = str(profile["user"]) if profile["user"] else None
    if "ssh_key" in profile:
        SSH_KEY_PATH = str(profile["ssh_key"]) if profile["ssh_key"] else None
