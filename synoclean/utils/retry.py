"""
Retry for SSH transport setup
"""
import functools
import time

import paramiko

from .. import config as _cfg
from .logging import warn

MAX_DELAY = 60

# Bad credentials or a changed host key will not fix themselves
_PERMANENT = (paramiko.AuthenticationException, paramiko.BadHostKeyException)


def retried(fn):
    """
    Retry *fn* on transient connection errors. Up to config.RETRY_MAX
    attempts; the pause starts at RETRY_BASE_DELAY and doubles each time.
    Authentication and host-key failures are raised at once.
    """

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        attempts = max(1, _cfg.RETRY_MAX)
        delay = _cfg.RETRY_BASE_DELAY
        attempt = 1
        while True:
            try:
                return fn(*args, **kwargs)
            except _PERMANENT:
                raise
            except (paramiko.SSHException, OSError, EOFError) as exc:
                if attempt >= attempts:
                    raise
                warn(f"{fn.__name__}: attempt {attempt}/{attempts} failed ({exc}), "
                     f"retrying in {delay:.0f}s …")
                time.sleep(delay)
                delay = min(delay * 2, MAX_DELAY)
                attempt += 1

    return wrapper
