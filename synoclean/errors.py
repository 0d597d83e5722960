"""
Error types raised by the scan → filter → delete pipeline.

Every error is fatal for the current run. Re-running the tool is the only
recovery path; the queue file on disk decides where it picks up.
"""
from typing import Optional


class CleanerError(Exception):
    """Base class for all synoclean failures."""


class ScanError(CleanerError):
    """The remote listing could not reach or read the base path."""

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics


class EmptySourceError(CleanerError):
    """The remote listing succeeded but returned no entries."""


class QueueStoreError(CleanerError, OSError):
    """The local queue file could not be created or updated."""


class BatchDeletionError(CleanerError):
    """A remote `rm` for one batch failed; the queue was left untouched."""

    def __init__(self, message: str, batch_size: int = 0,
                 exit_status: Optional[int] = None, diagnostics: str = ""):
        super().__init__(message)
        self.batch_size = batch_size
        self.exit_status = exit_status
        self.diagnostics = diagnostics


class UserAborted(CleanerError):
    """The operator declined the destructive-action confirmation."""
