"""Fingerprint and upload changed files with bounded parallelism.

Each regular file goes through hash -> key -> upload -> verify in a worker
thread. At most ``max_workers`` files are in flight at once. The first
per-file failure cancels the run: no new file is admitted, in-flight
multipart transfers abort at their next progress callback, and ``run``
raises that first failure once every worker has returned.
"""

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from .checksum import verify_etag
from .etag import DEFAULT_PART_SIZE
from .hashing import HashReadError, fingerprint_file
from .keys import derive_key
from .log import get_logger
from .models import FileRecord
from .progress import UploadProgress
from .store import ObjectStore


class UploadCancelled(Exception):
    """Raised when an upload stops because the run was cancelled."""

    pass


def available_cpus() -> int:
    """CPUs this process may run on, honouring the affinity mask where supported."""
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def resolve_max_workers(max_workers: int | None) -> int:
    """Return ``max_workers``, or the available CPU count when it is unset or 0."""
    if max_workers is not None and max_workers > 0:
        return max_workers
    return available_cpus()


class AdmissionGate:
    """Counting gate whose blocking acquire gives up once cancelled."""

    def __init__(self, slots: int, cancelled: threading.Event) -> None:
        if slots <= 0:
            raise ValueError(f"slots must be positive, got {slots}")
        self._slots = slots
        self._cancelled = cancelled
        self._cond = threading.Condition()

    def acquire(self) -> bool:
        """Wait for a free slot. Returns False, without a slot, if cancelled."""
        with self._cond:
            while self._slots == 0 and not self._cancelled.is_set():
                self._cond.wait()
            if self._cancelled.is_set():
                return False
            self._slots -= 1
            return True

    def release(self) -> None:
        with self._cond:
            self._slots += 1
            self._cond.notify()

    def wake(self) -> None:
        """Wake all waiters so they can observe cancellation."""
        with self._cond:
            self._cond.notify_all()


@dataclass
class UploadResult:
    """Records handled by a successful run."""

    uploaded: list[FileRecord] = field(default_factory=list)
    skipped: list[FileRecord] = field(default_factory=list)

    @property
    def uploaded_bytes(self) -> int:
        return sum(r.size for r in self.uploaded)


class UploadPipeline:
    """Hash, upload and verify FileRecords against an ObjectStore.

    Args:
        store: Destination for file contents
        namespace: Repository name mixed into every content hash
        root: Directory that record paths are relative to
        part_size: Multipart part size; larger files are uploaded in parts
        max_workers: Concurrent files; 0 means one per CPU
        progress: Optional aggregate progress reporter
        verbose: Log every upload at INFO instead of DEBUG
    """

    def __init__(
        self,
        store: ObjectStore,
        namespace: str,
        root: str | Path = ".",
        part_size: int = DEFAULT_PART_SIZE,
        max_workers: int = 0,
        progress: UploadProgress | None = None,
        verbose: bool = False,
    ) -> None:
        if part_size <= 0:
            raise ValueError(f"part_size must be positive, got {part_size}")
        self.store = store
        self.namespace = namespace
        self.root = Path(root)
        self.part_size = part_size
        self.max_workers = resolve_max_workers(max_workers)
        self.progress = progress
        self.verbose = verbose

        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._gate: AdmissionGate | None = None
        self._first_error: BaseException | None = None
        self._abandoned = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop admitting files and ask in-flight transfers to abort. Thread-safe."""
        self._cancelled.set()
        gate = self._gate
        if gate is not None:
            gate.wake()

    def run(self, files: Iterable[FileRecord]) -> UploadResult:
        """Process ``files`` and return what was uploaded and skipped.

        Non-regular entries (symlinks, devices, ...) are skipped.

        Raises:
            HashReadError, ChecksumDecodeError, ChecksumMismatch, botocore errors:
                The first failure of any file
            UploadCancelled: If :meth:`cancel` stopped the run before all
                files were processed and no file failed
        """
        logger = get_logger()
        self._cancelled.clear()
        self._first_error = None
        self._abandoned = 0
        gate = AdmissionGate(self.max_workers, self._cancelled)
        self._gate = gate

        result = UploadResult()
        interrupted = False

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="s3vn-upload"
        ) as executor:
            try:
                for record in files:
                    if not record.is_regular:
                        logger.debug(f"Skipping non-regular file: {record.path}")
                        result.skipped.append(record)
                        continue
                    if not gate.acquire():
                        interrupted = True
                        break
                    executor.submit(self._work, record, gate, result)
            except KeyboardInterrupt:
                self.cancel()
                raise

        self._gate = None

        if self._first_error is not None:
            raise self._first_error
        if interrupted or self._abandoned:
            raise UploadCancelled("Upload cancelled before all files were processed")
        return result

    def _work(self, record: FileRecord, gate: AdmissionGate, result: UploadResult) -> None:
        try:
            if self._cancelled.is_set():
                self._abandon(record)
                return
            self.process(record)
        except UploadCancelled:
            self._abandon(record)
        except Exception as e:
            self._fail(record, e)
        else:
            with self._lock:
                result.uploaded.append(record)
            if self.progress is not None:
                self.progress.complete_file(record.size)
        finally:
            gate.release()

    def _abandon(self, record: FileRecord) -> None:
        with self._lock:
            self._abandoned += 1
        get_logger().debug(f"Cancelled before completion: {record.path}")

    def _fail(self, record: FileRecord, error: Exception) -> None:
        logger = get_logger()
        if self.progress is not None:
            self.progress.fail_file()

        with self._lock:
            first = self._first_error is None and not self._cancelled.is_set()
            if first:
                self._first_error = error
        if first:
            logger.error(f"Failed to upload {record.path}: {error}")
            self.cancel()
        else:
            with self._lock:
                self._abandoned += 1
            logger.debug(f"Discarding error after cancellation for {record.path}: {error}")

    def _abort_if_cancelled(self, bytes_transferred: int) -> None:
        if self._cancelled.is_set():
            raise UploadCancelled("Transfer aborted by cancellation")

    def process(self, record: FileRecord) -> None:
        """Fingerprint one file, upload it under its derived key and verify the ETag."""
        path = self.root / record.path
        bundle = fingerprint_file(path, self.namespace, record.size, part_size=self.part_size)
        key = derive_key(bundle.strong, bundle.fast, bundle.etag)
        record.fingerprint(bundle, key)

        try:
            f = open(path, "rb")
        except OSError as e:
            raise HashReadError(path, e) from e

        with f:
            if record.size > self.part_size:
                self.store.multipart_upload(
                    key, f, part_size=self.part_size, callback=self._abort_if_cancelled
                )
                remote_etag = self.store.head_object(key)
            else:
                remote_etag = self.store.put_object(key, f)

        verify_etag(key, bundle.etag, remote_etag, path=record.path)

        get_logger().log(
            logging.INFO if self.verbose else logging.DEBUG,
            f"upload: {record.path} -> {self.store.describe(key)}",
        )
