"""
Console output for synoclean: timestamped progress lines, banners and
count wording. Everything goes to stdout; this is not a machine contract.
"""
from datetime import datetime

BANNER_WIDTH = 53

_verbose = False


def set_verbose(verbose: bool):
    global _verbose
    _verbose = verbose


def _stamp() -> str:
    return datetime.now().strftime("[%H:%M:%S]")


def log(msg: str):
    print(_stamp(), msg, flush=True)


def vlog(msg: str):
    # -v only
    if _verbose:
        log(msg)


def warn(msg: str):
    log("⚠  " + msg)


def banner(title: str):
    rule = "=" * BANNER_WIDTH
    print(f"{rule}\n  {title}\n{rule}", flush=True)


def dirs(n: int) -> str:
    """'1 directory', '3 directories'."""
    return f"{n} director{'y' if n == 1 else 'ies'}"
