"""Snapshot data model."""

from __future__ import annotations

import stat
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .hashing import HashBundle


MetadataKey = tuple[str, int, int, int, int, int, str]


@dataclass
class FileRecord:
    """One non-directory entry of a walked tree.

    The hash fields are either all ``None`` (not fingerprinted yet) or all
    set; use :meth:`fingerprint` and :meth:`clear_fingerprint` rather than
    assigning them one by one.
    """

    path: str
    mode: int
    size: int
    mtime: int
    uid: int
    gid: int
    link_target: str = ""

    strong_hash: bytes | None = None
    fast_hash: int | None = None
    etag: str | None = None
    storage_key: str | None = None

    @property
    def is_regular(self) -> bool:
        return stat.S_ISREG(self.mode)

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    @property
    def is_fingerprinted(self) -> bool:
        return self.storage_key is not None

    def metadata_key(self) -> MetadataKey:
        """Fields compared when diffing snapshots; hash fields are left out."""
        return (self.path, self.mode, self.size, self.mtime, self.uid, self.gid, self.link_target)

    def fingerprint(self, bundle: HashBundle, storage_key: str) -> None:
        self.strong_hash = bundle.strong
        self.fast_hash = bundle.fast
        self.etag = bundle.etag
        self.storage_key = storage_key

    def clear_fingerprint(self) -> None:
        self.strong_hash = None
        self.fast_hash = None
        self.etag = None
        self.storage_key = None

    def without_fingerprint(self) -> FileRecord:
        return replace(self, strong_hash=None, fast_hash=None, etag=None, storage_key=None)

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "mode": self.mode,
            "size": self.size,
            "mtime": self.mtime,
            "uid": self.uid,
            "gid": self.gid,
            "link_target": self.link_target,
            "strong_hash": self.strong_hash.hex() if self.strong_hash is not None else None,
            "fast_hash": self.fast_hash,
            "etag": self.etag,
            "storage_key": self.storage_key,
        }


Snapshot = list[FileRecord]
