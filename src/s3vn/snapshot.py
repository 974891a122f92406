"""Directory walking: build a Snapshot from the metadata of a tree."""

import os
import stat
from pathlib import Path

from .log import get_logger
from .models import FileRecord, Snapshot


class WalkError(Exception):
    """Raised when a tree cannot be walked completely."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Failed to walk {self.path}: {reason}")


def _record_for(entry: os.DirEntry, relative_path: str) -> FileRecord:
    st = entry.stat(follow_symlinks=False)
    record = FileRecord(
        path=relative_path,
        mode=st.st_mode,
        size=st.st_size,
        # whole seconds, rounded down
        mtime=st.st_mtime_ns // 1_000_000_000,
        uid=st.st_uid,
        gid=st.st_gid,
    )
    if stat.S_ISLNK(st.st_mode):
        record.link_target = os.readlink(entry.path)
    return record


def _walk_dir(root: str, records: Snapshot) -> None:
    pending = [(root, "")]
    while pending:
        directory, relative = pending.pop()
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            raise WalkError(directory, str(e)) from e

        subdirs = []
        for entry in entries:
            relative_path = f"{relative}/{entry.name}" if relative else entry.name
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append((entry.path, relative_path))
                else:
                    records.append(_record_for(entry, relative_path))
            except OSError as e:
                raise WalkError(entry.path, str(e)) from e

        # reversed so directories are visited in scandir order
        pending.extend(reversed(subdirs))


def walk_tree(root: str | Path) -> Snapshot:
    """Return one FileRecord per non-directory entry below ``root``.

    Directories are descended into but produce no record; symbolic links
    are recorded with their target and never followed. Paths are relative
    to ``root`` and use ``/`` as separator. Records come back in traversal
    order; use :func:`sort_snapshot` before persisting or comparing lists.

    Raises:
        WalkError: On any I/O error, including an unreadable link target
    """
    root = Path(root)
    if not root.is_dir():
        raise WalkError(root, "not a directory")

    records: Snapshot = []
    _walk_dir(str(root), records)
    get_logger().debug(f"Walked {root}: {len(records)} entries")
    return records


def sort_snapshot(records: Snapshot) -> Snapshot:
    """Return ``records`` ordered by path."""
    return sorted(records, key=lambda r: r.path)


def summarize(records: Snapshot) -> tuple[int, int]:
    """Return ``(count, total_size)`` for a snapshot."""
    return len(records), sum(r.size for r in records)
