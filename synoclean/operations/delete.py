"""
Batched remote deletion of queued @eaDir directories
"""
import paramiko

from ..core.ssh_manager import SSHManager
from ..errors import BatchDeletionError
from ..state.queue_store import QueueStore
from ..utils.logging import log, vlog, dirs


def build_rm_argv(paths: list[str]) -> list[str]:
    # `--` so a path can never be taken for an rm option
    return ["rm", "-rf", "--", *paths]


class BatchDeleter:
    """
    Drains a QueueStore: one remote `rm -rf` per batch of up to
    *batch_size* paths, and the batch leaves the queue only after the
    remote command has exited 0.

    `rm -rf` treats a missing path as success, so a batch re-sent after a
    crash between the delete and the queue update is harmless.
    """

    def __init__(self, mgr: SSHManager, store: QueueStore, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError(f"batch_size must be a positive integer, got {batch_size}")
        self.mgr = mgr
        self.store = store
        self.batch_size = batch_size
        self.deleted = 0
        self.batches = 0

    def delete_batch(self, batch: list[str]):
        """Run one remote delete; raises BatchDeletionError on any failure."""
        try:
            rc, _, err = self.mgr.run(build_rm_argv(batch))
        except (paramiko.SSHException, OSError, EOFError) as exc:
            raise BatchDeletionError(f"connection error while deleting a batch: {exc}",
                                     batch_size=len(batch), diagnostics=str(exc)) from exc
        if rc != 0:
            raise BatchDeletionError(f"remote rm exited {rc}",
                                     batch_size=len(batch), exit_status=rc,
                                     diagnostics=err.strip())

    def drain(self) -> int:
        """Delete everything in the queue. Returns the number of paths deleted."""
        remaining = self.store.size()
        while remaining > 0:
            batch = self.store.head(self.batch_size)
            vlog(f"[delete] batch {self.batches + 1}: {len(batch)} path(s), first {batch[0]}")
            self.delete_batch(batch)
            self.store.remove_front(len(batch))
            self.batches += 1
            self.deleted += len(batch)
            remaining = self.store.size()
            log(f"[delete] Batch {self.batches} ✓  deleted {dirs(self.deleted)} ({remaining} remaining)")
        return self.deleted
