"""Entry point for the s3vn CLI."""

from __future__ import annotations

import os
import sys
import time
from argparse import Namespace
from logging import Logger

from botocore.exceptions import BotoCoreError, ClientError

from .checksum import ChecksumMismatch
from .cli import parse_args
from .config import Config, ConfigError, load_config, parse_size, write_workdir_config
from .diff import difference
from .exit_codes import ExitCode
from .hashing import HashReadError
from .keys import ChecksumDecodeError
from .log import get_logger, setup_logging
from .models import Snapshot
from .output import (
    format_error,
    format_init,
    format_plan,
    format_size,
    format_success,
    uploaded_entry,
)
from .progress import UploadProgress
from .snapshot import WalkError, sort_snapshot, summarize, walk_tree
from .store import S3ObjectStore, create_s3_client
from .upload import UploadCancelled, UploadPipeline

LARGE_COMMIT_THRESHOLD_BYTES = 1024 * 1024 * 1024  # 1 GiB

# error class -> (exit code, machine-readable code)
_ERROR_CODES: list[tuple[type[BaseException], ExitCode, str]] = [
    (ChecksumMismatch, ExitCode.INTEGRITY_FAILURE, "CHECKSUM_MISMATCH"),
    (ChecksumDecodeError, ExitCode.INTEGRITY_FAILURE, "CHECKSUM_DECODE"),
    (HashReadError, ExitCode.IO_ERROR, "IO_ERROR"),
    (UploadCancelled, ExitCode.USER_CANCELLED, "CANCELLED"),
    (ClientError, ExitCode.NETWORK_ERROR, "NETWORK_ERROR"),
    (BotoCoreError, ExitCode.NETWORK_ERROR, "NETWORK_ERROR"),
]


def _print_error(json_output: bool, code: str, message: str) -> None:
    if json_output:
        print(format_error(code, message, json_output=True))
    else:
        print(f"Error: {message}", file=sys.stderr)


def _load_previous_snapshot() -> Snapshot:
    # Snapshot lists are not persisted yet, so every commit is a full one.
    return []


def _walk(config: Config, logger: Logger) -> Snapshot | int:
    logger.info(f"Walking {config.work_dir}")
    try:
        records = sort_snapshot(walk_tree(config.work_dir))
    except WalkError as e:
        _print_error(config.json_output, "WALK_FAILED", str(e))
        return ExitCode.WALK_FAILURE

    count, total = summarize(records)
    logger.info(f"Found {count} entries ({format_size(total)})")
    return records


def _confirm(config: Config, files: Snapshot, total_size: int, logger: Logger) -> bool:
    if config.force or config.quiet or config.json_output or not sys.stdin.isatty():
        return True
    if total_size <= LARGE_COMMIT_THRESHOLD_BYTES:
        return True

    response = input(f"Upload {len(files)} files ({format_size(total_size)})? [y/N] ")
    if response.lower() != "y":
        logger.info("Cancelled by user.")
        return False
    return True


def _upload(config: Config, candidates: Snapshot, logger: Logger) -> tuple[Snapshot, int] | int:
    assert config.repo_name is not None  # checked by Config.validate
    assert config.bucket is not None

    try:
        client = create_s3_client(
            region=config.region,
            profile=config.profile,
            endpoint_url=config.endpoint_url,
        )
    except BotoCoreError as e:
        _print_error(config.json_output, "CONFIG_ERROR", f"Failed to create S3 client: {e}")
        return ExitCode.CONFIG_ERROR

    store = S3ObjectStore(client, config.bucket)
    regular = [r for r in candidates if r.is_regular]

    with UploadProgress(
        total_files=len(regular),
        total_bytes=sum(r.size for r in regular),
        show_progress=not (config.quiet or config.json_output),
    ) as progress:
        pipeline = UploadPipeline(
            store,
            config.repo_name,
            root=config.work_dir,
            part_size=config.part_size,
            max_workers=config.max_workers,
            progress=progress,
            verbose=config.verbose,
        )
        logger.debug(
            f"Uploading with {pipeline.max_workers} workers, part size {config.part_size}"
        )
        try:
            result = pipeline.run(candidates)
        except KeyboardInterrupt:
            logger.info("Cancelled by user.")
            return ExitCode.USER_CANCELLED
        except Exception as e:
            for error_type, exit_code, code in _ERROR_CODES:
                if isinstance(e, error_type):
                    _print_error(config.json_output, code, str(e))
                    return exit_code
            raise

    return result.uploaded, len(result.skipped)


def _init(args: Namespace) -> int:
    setup_logging(
        verbose=args.verbose > 0,
        quiet=args.quiet,
        log_file=args.log_file,
        debug_boto=args.verbose > 1,
    )
    logger = get_logger()

    work_dir = os.path.abspath(os.path.expanduser(args.workdir or os.getcwd()))
    try:
        part_size = parse_size(args.part_size) if args.part_size is not None else None
        path = write_workdir_config(
            work_dir,
            args.repo,
            args.bucket,
            max_workers=args.workers or 0,
            part_size=part_size,
            force=args.force,
        )
    except ValueError as e:
        _print_error(args.json, "CONFIG_ERROR", str(e))
        return ExitCode.CONFIG_ERROR
    except OSError as e:
        _print_error(args.json, "IO_ERROR", f"Failed to write configuration in {work_dir}: {e}")
        return ExitCode.IO_ERROR

    logger.debug(f"Wrote {path}")
    print(format_init(str(path), args.repo, args.bucket, json_output=args.json))
    return ExitCode.SUCCESS


def _commit(args: Namespace) -> int:
    try:
        config = load_config(
            cli_repo_name=args.repo,
            cli_bucket=args.bucket,
            cli_work_dir=args.workdir,
            cli_max_workers=args.workers,
            cli_part_size=args.part_size,
            config_file=args.config,
            dry_run=args.dry_run,
            force=args.force,
            region=args.region,
            profile=args.profile,
            endpoint_url=args.endpoint_url,
            json_output=args.json,
            quiet=args.quiet,
            verbose=args.verbose > 0,
            debug_boto=args.verbose > 1,
            log_file=args.log_file,
        )
        config.validate()
    except ConfigError as e:
        _print_error(args.json, "CONFIG_ERROR", str(e))
        return ExitCode.CONFIG_ERROR

    setup_logging(
        verbose=config.verbose,
        quiet=config.quiet,
        log_file=config.log_file,
        debug_boto=config.debug_boto,
    )
    logger = get_logger()

    walk_result = _walk(config, logger)
    if isinstance(walk_result, int):
        return walk_result
    records = walk_result

    candidates = difference(_load_previous_snapshot(), records)
    regular = sorted((r for r in candidates if r.is_regular), key=lambda r: r.path)
    total_size = sum(r.size for r in regular)
    logger.info(f"{len(regular)} files to upload ({format_size(total_size)})")

    if config.dry_run:
        print(format_plan(regular, json_output=config.json_output))
        return ExitCode.SUCCESS

    if not _confirm(config, regular, total_size, logger):
        return ExitCode.USER_CANCELLED

    start_time = time.time()
    upload_result = _upload(config, candidates, logger)
    if isinstance(upload_result, int):
        return upload_result
    uploaded, skipped = upload_result
    elapsed = time.time() - start_time

    print(
        format_success(
            files=[uploaded_entry(r) for r in sorted(uploaded, key=lambda r: r.path)],
            elapsed_seconds=elapsed,
            json_output=config.json_output,
            scanned=len(records),
            skipped=skipped,
            bucket=config.bucket,
        )
    )
    return ExitCode.SUCCESS


def main() -> int:
    args = parse_args()
    if args.command == "init":
        return _init(args)
    return _commit(args)


if __name__ == "__main__":
    sys.exit(main())
