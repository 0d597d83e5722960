"""
Cleanup engine - scan, filter, confirm, drain
"""
from enum import Enum
from typing import Callable, Optional

import paramiko

from .. import config as _cfg
from ..core.ssh_manager import SSHManager
from ..errors import BatchDeletionError, UserAborted
from ..operations.delete import BatchDeleter
from ..operations.eadir_filter import normalize_listing
from ..operations.lister import RemoteListing
from ..state.queue_store import QueueStore
from ..utils.logging import log, vlog, dirs


class Phase(Enum):
    IDLE = "idle"
    SCANNING = "scanning"
    FILTERING = "filtering"
    AWAITING_CONFIRMATION = "awaiting-confirmation"
    DRAINING = "draining"
    DONE = "done"
    HALTED = "halted"


class Cleaner:
    """
    One run of the @eaDir cleanup against a single host and base path.

    A queue file left behind by an earlier run is taken as-is: scanning and
    filtering are skipped and the run goes straight to confirmation. On
    any failure the queue file stays on disk so the next run resumes.
    """

    def __init__(self, host: str, base_path: str,
                 store: Optional[QueueStore] = None,
                 batch_size: Optional[int] = None,
                 confirm: Optional[Callable[[int], bool]] = None):
        if not base_path:
            raise ValueError("remote base path must not be empty")
        self.host = host
        self.base_path = base_path
        self.store = store or QueueStore(_cfg.get_queue_file())
        self.batch_size = batch_size or _cfg.BATCH_SIZE
        self.confirm = confirm
        self.phase = Phase.IDLE
        self.found = 0
        self.deleted = 0
        self.resumed = False

    def _enter(self, phase: Phase):
        vlog(f"[phase] {self.phase.value} → {phase.value}")
        self.phase = phase

    # ── stages ──────────────────────────────────────────────────────────────

    def build_queue(self) -> int:
        """Scan the remote tree and write the queue file. Returns its size."""
        self._enter(Phase.SCANNING)
        with RemoteListing(self.host, self.base_path) as listing:
            listing.fetch()
            self._enter(Phase.FILTERING)
            log("[filter] Reducing the listing to top-level '@eaDir' directories …")
            paths = normalize_listing(listing.entries(), self.base_path)
            self.store.create(paths)
        log(f"[filter] Found {dirs(len(paths))} named '@eaDir' to delete.")
        return len(paths)

    def drain(self) -> int:
        self._enter(Phase.DRAINING)
        log(f"[delete] Starting batch deletion ({self.batch_size} per batch) …")
        mgr = SSHManager(self.host)
        deleter = BatchDeleter(mgr, self.store, self.batch_size)
        try:
            mgr.connect()
        except (paramiko.SSHException, OSError) as exc:
            raise BatchDeletionError(f"could not connect to {self.host}: {exc}",
                                     diagnostics=str(exc)) from exc
        try:
            deleter.drain()
        finally:
            self.deleted = deleter.deleted
            mgr.disconnect()
        return self.deleted

    # ── orchestration ───────────────────────────────────────────────────────

    def run(self) -> int:
        """
        Execute the whole pipeline. Returns the number of directories
        deleted; raises a CleanerError subclass on any fatal condition.
        """
        try:
            if self.store.exists():
                self.resumed = True
                self.found = self.store.size()
                log(f"[resume] Found existing queue file '{self.store.path}'. Resuming previous session …")
                log(f"[resume] There are {dirs(self.found)} remaining to be deleted.")
            else:
                self.found = self.build_queue()

            if self.found == 0:
                log("[queue] No '@eaDir' directories found or queue is empty. Nothing to do!")
                self.store.destroy()
                self._enter(Phase.DONE)
                return 0

            self._enter(Phase.AWAITING_CONFIRMATION)
            if self.confirm is not None and not self.confirm(self.found):
                raise UserAborted("Aborted by user.")

            self.drain()
            self.store.destroy()
            self._enter(Phase.DONE)
            log(f"[delete] All {dirs(self.deleted)} named '@eaDir' have been deleted!")
            return self.deleted
        except BaseException:
            self._enter(Phase.HALTED)
            raise
