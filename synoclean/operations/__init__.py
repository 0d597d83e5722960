"""Operations (list, filter, delete)"""
from .lister import RemoteListing, build_rsync_cmd
from .eadir_filter import truncate_at_eadir, collect_eadirs, normalize_listing
from .delete import BatchDeleter, build_rm_argv

__all__ = [
    "RemoteListing", "build_rsync_cmd",
    "truncate_at_eadir", "collect_eadirs", "normalize_listing",
    "BatchDeleter", "build_rm_argv",
]
