"""
Queue file management (pending @eaDir deletions, persistent across runs)

On-disk format is the public contract of this module:
  - plain UTF-8 text, one absolute remote path per line, no header
  - file absent   → no run in progress, a fresh scan is needed
  - file present  → resume; the lines are exactly the work still pending
  - file empty    → nothing left to do

Every rewrite goes through a sibling temp file and os.replace(), so an
interrupted process leaves either the old or the new content on disk,
never a torn line. Two processes sharing one queue file is unsupported.
"""
import os
import tempfile
from pathlib import Path
from typing import Iterable, Union

from ..errors import QueueStoreError
from ..utils.logging import vlog


class QueueStore:
    """Line-oriented, crash-consistent queue of remote paths."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self):
        return f"QueueStore({str(self.path)!r})"

    # ── queries ────────────────────────────────────────────────────────────

    def exists(self) -> bool:
        return self.path.is_file()

    def _read(self) -> list[str]:
        try:
            with self.path.open("r", encoding="utf-8", newline="") as f:
                text = f.read()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise QueueStoreError(f"could not read queue file {self.path}: {exc}") from exc
        # Only "\n" separates entries; \x0c, \u2028 and friends are legal in names
        return [line for line in text.split("\n") if line]

    def size(self) -> int:
        return len(self._read())

    def head(self, n: int) -> list[str]:
        """First n entries, in queue order."""
        return self._read()[:n]

    # ── mutations ──────────────────────────────────────────────────────────

    def _write_atomic(self, lines: list[str]):
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp",
                                        dir=str(self.path.parent))
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                for line in lines:
                    f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

    def create(self, paths: Iterable[str]):
        """Write the full ordered list of pending paths."""
        lines = list(paths)
        for p in lines:
            if "\n" in p or "\r" in p:
                raise QueueStoreError(f"path contains a line break: {p!r}")
        try:
            self._write_atomic(lines)
        except OSError as exc:
            raise QueueStoreError(f"could not write queue file {self.path}: {exc}") from exc
        vlog(f"[queue] wrote {len(lines)} entr{'y' if len(lines) == 1 else 'ies'} to {self.path}")

    def remove_front(self, n: int):
        """Drop the first n entries, keeping the order of the rest."""
        if n <= 0:
            return
        remaining = self._read()[n:]
        try:
            self._write_atomic(remaining)
        except OSError as exc:
            raise QueueStoreError(f"could not update queue file {self.path}: {exc}") from exc

    def destroy(self):
        """Remove the queue file once everything in it has been handled."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            raise QueueStoreError(f"could not remove queue file {self.path}: {exc}") from exc
        vlog(f"[queue] removed {self.path}")
