"""Aggregate progress reporting for parallel uploads."""

from threading import RLock

from tqdm import tqdm


class UploadProgress:
    """Thread-safe byte/file counters with an optional tqdm bar."""

    def __init__(
        self,
        total_files: int,
        total_bytes: int,
        show_progress: bool = True,
    ) -> None:
        self.total_files = total_files
        self.total_bytes = total_bytes
        self._lock = RLock()
        self._uploaded_bytes = 0
        self._uploaded_files = 0
        self._failed_files = 0

        self._pbar: tqdm | None  # type: ignore[type-arg]
        if show_progress:
            self._pbar = tqdm(
                total=total_bytes,
                unit="B",
                unit_scale=True,
                desc=f"Uploading {total_files} files",
                ncols=80,
            )
        else:
            self._pbar = None

    def complete_file(self, size: int) -> None:
        with self._lock:
            self._uploaded_files += 1
            self._uploaded_bytes += size
            if self._pbar is not None:
                self._pbar.update(size)
                self._pbar.set_postfix(
                    files=f"{self._uploaded_files}/{self.total_files}",
                    refresh=False,
                )

    def fail_file(self) -> None:
        with self._lock:
            self._failed_files += 1

    def close(self) -> None:
        if self._pbar is not None:
            self._pbar.close()

    def __enter__(self) -> "UploadProgress":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def uploaded_files(self) -> int:
        with self._lock:
            return self._uploaded_files

    @property
    def uploaded_bytes(self) -> int:
        with self._lock:
            return self._uploaded_bytes

    @property
    def failed_files(self) -> int:
        with self._lock:
            return self._failed_files
