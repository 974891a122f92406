"""Snapshot comparison."""

from .models import FileRecord, MetadataKey, Snapshot


def difference(old: Snapshot, new: Snapshot) -> Snapshot:
    """Return the records of ``new`` that are added or changed relative to ``old``.

    Records are compared on metadata only (path, mode, size, mtime, uid,
    gid, link target); hash fields are ignored. Entries that disappeared
    since ``old`` are not reported. Result order is unspecified, and
    records of ``new`` that are identical on metadata collapse to one.
    """
    if not old:
        return list(new)

    pending: dict[MetadataKey, FileRecord] = {}
    for record in new:
        pending[record.metadata_key()] = record

    for record in old:
        pending.pop(record.metadata_key(), None)

    return list(pending.values())
