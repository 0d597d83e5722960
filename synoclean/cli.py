#!/usr/bin/env python3
"""
synoclean  —  Remove Synology '@eaDir' directories from a remote host
=====================================================================

Subcommands:
  clean     Scan the remote path, then delete every '@eaDir' in batches
            (default when no subcommand is given).
  status    Show the pending deletion queue in the current directory.
  hosts     List the host aliases found in ~/.ssh/config.

An interrupted or failed clean leaves its queue file behind; running
`synoclean clean` again in the same directory resumes from it without
re-scanning. Do not run two instances in the same directory at once.

Run 'synoclean <subcommand> --help' for more details.
"""
import sys
import argparse

COMMANDS = ("clean", "status", "hosts")


def _load_profile(args) -> dict:
    """Apply global config.yaml profile, then CLI overrides."""
    from synoclean import config as _cfg

    data = _cfg.load_global_config()
    profile = _cfg.get_profile(data, getattr(args, "profile", None) or "default")
    _cfg.apply_profile(profile)

    overrides = {}
    if getattr(args, "batch_size", None) is not None:
        overrides["batch_size"] = args.batch_size
    if getattr(args, "queue_file", None):
        overrides["queue_file"] = args.queue_file
    if getattr(args, "port", None):
        overrides["port"] = args.port
    if overrides:
        _cfg.apply_profile(overrides)
    return profile


def _profile_or_exit(args) -> dict:
    try:
        return _load_profile(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)


# ── prompts ───────────────────────────────────────────────────────────────────

def select_host() -> str:
    """Pick a host from ~/.ssh/config, or ask for one."""
    from synoclean import config as _cfg
    from synoclean.core.ssh_manager import list_ssh_hosts

    ssh_config = _cfg.get_ssh_config_file()
    hosts = list_ssh_hosts(ssh_config)
    if not ssh_config.is_file():
        print(f"SSH config file not found at '{ssh_config}'.")
    elif not hosts:
        print("No hosts found in your SSH config.")

    if not hosts:
        return input("Please enter the SSH host manually (e.g., user@hostname): ").strip()

    print(f"Please choose a host from your {ssh_config}:")
    for i, name in enumerate(hosts, 1):
        print(f"  {i}) {name}")
    while True:
        choice = input("#? ").strip()
        if choice.isdigit() and 1 <= int(choice) <= len(hosts):
            return hosts[int(choice) - 1]
        print("Invalid selection. Please try again.")


def ask_remote_path() -> str:
    print("Enter the absolute path to the directory you want to clean.")
    print("Example: /volume1/Backup/MEDIA/Music/Rips/flac")
    return input("Remote path: ").strip()


def confirm_deletion(count: int) -> bool:
    from synoclean.utils.logging import dirs

    print()
    try:
        reply = input(f"Are you sure you want to PERMANENTLY delete these "
                      f"{dirs(count)}? (y/N) ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        reply = "n"
    return reply in ("y", "yes")


# ── clean ─────────────────────────────────────────────────────────────────────

def cmd_clean(args):
    """Scan (or resume) and delete every @eaDir under the remote path."""
    from synoclean import config as _cfg
    from synoclean.core.cleaner import Cleaner
    from synoclean.errors import (
        CleanerError, ScanError, EmptySourceError, BatchDeletionError, UserAborted,
    )
    from synoclean.utils.logging import set_verbose, warn, banner, dirs

    set_verbose(args.verbose)
    profile = _profile_or_exit(args)

    banner("Synology @eaDir Remote Cleanup Utility")

    host = args.host or profile.get("host")
    if not host:
        print("\nStep 1: Select your SSH host …")
        try:
            host = select_host()
        except (EOFError, KeyboardInterrupt):
            host = ""
    if not host:
        print("error: an SSH host is required.", file=sys.stderr)
        sys.exit(1)
    print(f"Selected host: {host}")

    remote_path = args.path or profile.get("remote_path")
    if not remote_path:
        print("\nStep 2: Remote path …")
        try:
            remote_path = ask_remote_path()
        except (EOFError, KeyboardInterrupt):
            remote_path = ""
    if not remote_path:
        print("error: Path cannot be empty.", file=sys.stderr)
        sys.exit(1)

    cleaner = Cleaner(
        host,
        remote_path,
        batch_size=_cfg.BATCH_SIZE,
        confirm=None if args.yes else confirm_deletion,
    )

    try:
        cleaner.run()
    except KeyboardInterrupt:
        print()
        warn("Interrupted by user. Queue file kept; the next run will resume.")
        sys.exit(130)
    except ScanError as exc:
        warn(f"Error: rsync failed. {exc}")
        print("--- Error details from rsync ---")
        print(exc.diagnostics or "(no output)")
        print("--------------------------------")
        print("Please check:")
        print(f"1. The host '{host}' is correct.")
        print(f"2. The remote path '{remote_path}' exists.")
        print("3. You have read permissions on the remote path.")
        sys.exit(1)
    except EmptySourceError as exc:
        warn(f"Error: {exc}.")
        print(f"This likely means the source directory '{remote_path}' is empty or mistyped.")
        sys.exit(1)
    except BatchDeletionError as exc:
        warn(f"ERROR: A batch failed to delete ({exc}). Halting.")
        if exc.diagnostics:
            print(exc.diagnostics)
        print(f"Deleted {dirs(cleaner.deleted)} before the failure.")
        print("You can safely rerun synoclean to resume.")
        sys.exit(1)
    except UserAborted as exc:
        print(str(exc))
        sys.exit(1)
    except CleanerError as exc:
        warn(f"Error: {exc}")
        sys.exit(1)


# ── status ────────────────────────────────────────────────────────────────────

def cmd_status(args):
    """Show the pending deletion queue."""
    from synoclean import config as _cfg
    from synoclean.state.queue_store import QueueStore
    from synoclean.utils.logging import dirs

    _profile_or_exit(args)
    store = QueueStore(_cfg.get_queue_file())

    print(f"\nQueue   : {store.path.resolve()}")
    if not store.exists():
        print("No in-progress cleanup session.")
        return

    remaining = store.size()
    print(f"Pending : {dirs(remaining)}")
    if remaining:
        print("Run 'synoclean clean' to resume.")
        if args.verbose:
            for path in store.head(10):
                print(f"  {path}")
            if remaining > 10:
                print(f"  ... ({remaining - 10} more)")


# ── hosts ─────────────────────────────────────────────────────────────────────

def cmd_hosts(args):
    """List host aliases from the SSH config."""
    from synoclean import config as _cfg
    from synoclean.core.ssh_manager import list_ssh_hosts

    _profile_or_exit(args)
    hosts = list_ssh_hosts()
    if not hosts:
        print(f"No hosts found in {_cfg.get_ssh_config_file()}.")
        return
    for name in hosts:
        print(name)


# ── main ──────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synoclean",
        description="Find and delete Synology '@eaDir' directories on a remote host",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # ── clean ─────────────────────────────────────────────────────────────────
    clean_p = subparsers.add_parser(
        "clean",
        help="Scan the remote path and delete every '@eaDir' (resumable)",
        description="Scan the remote path via an rsync dry run and delete every "
                    "'@eaDir' in batches. Resumes from the queue file if present. "
                    "Do not run two instances in the same directory at once.",
    )
    clean_p.add_argument("--host", metavar="HOST",
                         help="SSH host alias or user@hostname (default: choose from ~/.ssh/config)")
    clean_p.add_argument("--path", metavar="PATH",
                         help="Absolute remote path to clean (default: prompt)")
    clean_p.add_argument("--port", type=int, metavar="N",
                         help="SSH port (default: from ~/.ssh/config, else 22)")
    clean_p.add_argument("--batch-size", type=int, metavar="N",
                         help="Directories deleted per remote command (default: 100)")
    clean_p.add_argument("--queue-file", metavar="FILE",
                         help="Queue file used for resuming (default: to_delete_queue.txt)")
    clean_p.add_argument("--profile", metavar="NAME", default="default",
                         help="Profile from the global config.yaml (default: default)")
    clean_p.add_argument("-y", "--yes", action="store_true",
                         help="Do not ask for confirmation before deleting")
    clean_p.add_argument("-v", "--verbose", action="store_true",
                         help="Show extra output")

    # ── status ────────────────────────────────────────────────────────────────
    status_p = subparsers.add_parser(
        "status",
        help="Show the pending deletion queue",
        description="Show how many directories are still queued for deletion.",
    )
    status_p.add_argument("--queue-file", metavar="FILE",
                          help="Queue file to inspect (default: to_delete_queue.txt)")
    status_p.add_argument("--profile", metavar="NAME", default="default",
                          help="Profile from the global config.yaml (default: default)")
    status_p.add_argument("-v", "--verbose", action="store_true",
                          help="List the first queued paths")

    # ── hosts ─────────────────────────────────────────────────────────────────
    hosts_p = subparsers.add_parser(
        "hosts",
        help="List host aliases from ~/.ssh/config",
        description="List the non-wildcard Host aliases of the SSH config.",
    )
    hosts_p.add_argument("--profile", metavar="NAME", default="default",
                         help="Profile from the global config.yaml (default: default)")

    return parser


def main(argv=None):
    """CLI entry point for synoclean"""
    argv = list(sys.argv[1:] if argv is None else argv)
    # `synoclean [options]` is shorthand for `synoclean clean [options]`
    if not argv or (argv[0] not in COMMANDS and argv[0] not in ("-h", "--help")):
        argv.insert(0, "clean")

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "clean":
        if args.batch_size is not None and args.batch_size < 1:
            parser.error("--batch-size must be a positive integer")
        cmd_clean(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "hosts":
        cmd_hosts(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
