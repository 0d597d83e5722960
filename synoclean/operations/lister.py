"""
Remote tree enumeration via an rsync dry run

The remote side may not have `find`, but anything reachable by rsync can
be listed with `rsync -nr --out-format=%n`: nothing is transferred and
every path under the source is printed relative to it. Bytes that rsync
considers unprintable come out as `\\#ooo` octal escapes and are decoded
back before anything else sees the name.
"""
import re
import shlex
import subprocess
import tempfile
from pathlib import Path
from typing import Iterator, Optional

from .. import config as _cfg
from ..errors import ScanError, EmptySourceError
from ..utils.logging import log, vlog, warn

# rsync writes a byte it won't print as backslash, '#', three octal digits
_ESCAPED_BYTE = re.compile(rb"\\#([0-3][0-7]{2})")


def _ssh_transport_cmd() -> Optional[str]:
    """`-e` value for rsync when an ssh config, port, key or user override is set."""
    opts = ["ssh"]
    ssh_config = _cfg.get_ssh_config_file()
    if ssh_config != Path(_cfg.DEFAULT_SSH_CONFIG_FILE).expanduser():
        opts += ["-F", str(ssh_config)]
    if _cfg.SSH_PORT:
        opts += ["-p", str(_cfg.SSH_PORT)]
    if _cfg.SSH_KEY_PATH:
        opts += ["-i", str(Path(_cfg.SSH_KEY_PATH).expanduser())]
    if _cfg.SSH_USER:
        opts += ["-l", _cfg.SSH_USER]
    if len(opts) == 1:
        return None
    return shlex.join(opts)


def decode_entry(raw: bytes) -> str:
    """Undo rsync's `\\#ooo` escapes in one listing line and decode it."""
    unescaped = _ESCAPED_BYTE.sub(lambda m: bytes([int(m.group(1), 8)]), raw)
    return unescaped.decode("utf-8", errors="replace")


def build_rsync_cmd(host: str, base_path: str, dest: str) -> list[str]:
    # Trailing slash: list the directory's contents, not the directory itself
    source = f"{host}:{base_path.rstrip('/')}/"
    # -8: leave high bytes alone so UTF-8 names are not escaped
    cmd = [_cfg.RSYNC_BIN, "-nr", "-8", "--out-format=%n"]
    if _cfg.RSYNC_PROTECT_ARGS:
        cmd.append("--protect-args")
    transport = _ssh_transport_cmd()
    if transport:
        cmd += ["-e", transport]
    cmd += [source, dest]
    return cmd


class RemoteListing:
    """
    Scoped owner of the temporary files used by one remote listing.

        with RemoteListing(host, "/volume1/music") as listing:
            listing.fetch()
            for entry in listing.entries():
                ...

    The temp directory (listing, rsync stderr, empty rsync destination) is
    removed when the block exits, whatever the reason.
    """

    def __init__(self, host: str, base_path: str):
        self.host = host
        self.base_path = base_path
        self._tmp: Optional[tempfile.TemporaryDirectory] = None
        self.count = 0
        self._skipped: set[str] = set()

    def __enter__(self):
        self._tmp = tempfile.TemporaryDirectory(prefix="synoclean-")
        root = Path(self._tmp.name)
        self.listing_file = root / "listing.txt"
        self.error_file = root / "rsync-errors.txt"
        # Empty destination, so the dry run reports every remote path
        self.dest_dir = root / "dest"
        self.dest_dir.mkdir()
        return self

    def __exit__(self, exc_type, exc, tb):
        if self._tmp is not None:
            self._tmp.cleanup()
            vlog("[cleanup] removed temporary listing files")
            self._tmp = None
        return False

    def fetch(self) -> int:
        """
        Run the dry-run listing. Returns the number of entries found.
        Raises ScanError on rsync failure, EmptySourceError when nothing
        was listed.
        """
        if self._tmp is None:
            raise RuntimeError("RemoteListing.fetch() called outside its with-block")

        cmd = build_rsync_cmd(self.host, self.base_path, str(self.dest_dir))
        log(f"[scan] Listing {self.host}:{self.base_path} via rsync dry run …")
        vlog(f"  command: {shlex.join(cmd)}")

        try:
            with self.listing_file.open("wb") as out, self.error_file.open("wb") as err:
                result = subprocess.run(cmd, stdout=out, stderr=err, stdin=subprocess.DEVNULL)
        except FileNotFoundError as exc:
            raise ScanError(f"rsync executable not found: {_cfg.RSYNC_BIN}", str(exc)) from exc

        if result.returncode != 0:
            diagnostics = self.error_file.read_text("utf-8", errors="replace").strip()
            raise ScanError(
                f"rsync exited {result.returncode}: could not connect to {self.host!r} "
                f"or read {self.base_path!r}",
                diagnostics,
            )

        self.count = sum(1 for _ in self.entries())
        if self.count == 0:
            raise EmptySourceError(
                f"rsync connected successfully but found no files under {self.base_path!r}"
            )
        log(f"[scan] {self.count} path(s) listed")
        return self.count

    def entries(self) -> Iterator[str]:
        """
        Yield decoded listing paths lazily, skipping the base directory
        itself. A name containing a line break cannot be queued, so it is
        reported and left out.
        """
        with self.listing_file.open("rb") as f:
            for raw in f:
                line = decode_entry(raw.rstrip(b"\n"))
                if not line or line in (".", "./"):
                    continue
                if "\n" in line or "\r" in line:
                    if line not in self._skipped:
                        self._skipped.add(line)
                        warn(f"skipping path with a line break in its name: {line!r}")
                    continue
                yield line
