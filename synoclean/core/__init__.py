"""Core functionality"""
from .ssh_manager import SSHManager, list_ssh_hosts, resolve_target

__all__ = ["SSHManager", "list_ssh_hosts", "resolve_target"]
