"""
Reduce a raw remote listing to the top-level @eaDir directories
"""
from typing import Iterable, Optional

EADIR = "@eaDir"


def _segments(entry: str) -> list[str]:
    # rsync prints directories with a trailing "/" and the base itself as "./"
    return [s for s in entry.strip("\r\n").split("/") if s and s != "."]


def truncate_at_eadir(entry: str) -> Optional[str]:
    """
    Return *entry* cut right after its first path segment that is exactly
    "@eaDir", or None when no segment matches.

      music/@eaDir/SYNOPHOTO_THUMB.jpg  → music/@eaDir
      music/eaDirectory/x               → None
      music/foo@eaDir/x                 → None
    """
    parts = _segments(entry)
    for i, part in enumerate(parts):
        if part == EADIR:
            return "/".join(parts[:i + 1])
    return None


def join_remote(base_path: str, rel: str) -> str:
    """Prefix a relative listing path with the remote base path."""
    base = base_path.rstrip("/")
    return f"{base}/{rel}"


def collect_eadirs(entries: Iterable[str]) -> list[str]:
    """Relative @eaDir paths from a raw listing, deduplicated and sorted."""
    found = set()
    for entry in entries:
        rel = truncate_at_eadir(entry)
        if rel is not None:
            found.add(rel)
    return sorted(found)


def normalize_listing(entries: Iterable[str], base_path: str) -> list[str]:
    """
    Turn raw rsync listing lines into the absolute deletion queue.

    Only the outermost @eaDir of each entry is kept, so no queued path is
    ever inside another one and a single `rm -rf` per path is enough.
    """
    return [join_remote(base_path, rel) for rel in collect_eadirs(entries)]
