"""Configuration loading from CLI args, environment, and config file."""

import os
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

# tomli is in stdlib as tomllib in Python 3.11+
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

from .etag import DEFAULT_PART_SIZE


ENV_REPO = "S3VN_REPO"
ENV_BUCKET = "S3VN_BUCKET"
ENV_WORKERS = "S3VN_WORKERS"
ENV_PART_SIZE = "S3VN_PART_SIZE"

WORKDIR_CONFIG_NAME = ".s3vn.toml"

DEFAULT_CONFIG_PATHS = [
    Path.home() / ".s3vn" / "config.toml",
    Path.home() / ".config" / "s3vn" / "config.toml",
]

# S3 rejects non-final parts smaller than this
MIN_PART_SIZE = 5 * 1024 * 1024


class ConfigError(ValueError):
    """Raised when configuration values are missing or invalid."""

    pass


@dataclass
class Config:
    """Resolved configuration from all sources."""

    repo_name: str | None
    bucket: str | None
    work_dir: str

    # Upload options
    max_workers: int = 0
    part_size: int = DEFAULT_PART_SIZE
    dry_run: bool = False
    force: bool = False

    # AWS options
    region: str | None = None
    profile: str | None = None
    endpoint_url: str | None = None

    # Output options
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    debug_boto: bool = False
    log_file: str | None = None

    def validate(self) -> None:
        if not self.repo_name:
            raise ConfigError(f"Repository name required. Use --repo, {ENV_REPO} or a config file.")
        if not self.bucket:
            raise ConfigError(f"Bucket required. Use --bucket, {ENV_BUCKET} or a config file.")
        if self.max_workers < 0:
            raise ConfigError(f"Worker count cannot be negative: {self.max_workers}")
        if self.part_size < MIN_PART_SIZE:
            raise ConfigError(
                f"Part size {self.part_size} is below the S3 minimum of {MIN_PART_SIZE} bytes"
            )


def parse_size(size_str: str | int) -> int:
    """Parse human-readable size string (e.g., "10MB", "1GB") to bytes."""
    if isinstance(size_str, int):
        return size_str

    size_str = size_str.strip().upper()
    match = re.match(r"^(\d+(?:\.\d+)?)\s*(KIB|MIB|GIB|KB|MB|GB|TB|B)?$", size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    value = float(match.group(1))
    unit = (match.group(2) or "B").replace("IB", "B")

    multipliers = {
        "B": 1,
        "KB": 1024,
        "MB": 1024 * 1024,
        "GB": 1024 * 1024 * 1024,
        "TB": 1024 * 1024 * 1024 * 1024,
    }

    return int(value * multipliers[unit])


def _load_config_file(path: str | Path | None, work_dir: str | None) -> dict[str, object]:
    if path is not None:
        paths = [Path(path)]
    else:
        paths = [Path(work_dir or os.getcwd()) / WORKDIR_CONFIG_NAME, *DEFAULT_CONFIG_PATHS]

    for config_path in paths:
        if config_path.exists():
            with open(config_path, "rb") as f:
                return dict(tomllib.load(f))

    return {}


def _first(*values: object) -> object:
    for value in values:
        if value is not None:
            return value
    return None


def load_config(
    cli_repo_name: str | None = None,
    cli_bucket: str | None = None,
    cli_work_dir: str | None = None,
    cli_max_workers: int | None = None,
    cli_part_size: str | None = None,
    config_file: str | None = None,
    **kwargs: object,
) -> Config:
    """Precedence: CLI > env > config file > defaults.

    Raises:
        ConfigError: If a size or worker count cannot be parsed
    """
    file_config = _load_config_file(config_file, cli_work_dir)

    repo_name = cast(
        str | None, _first(cli_repo_name, os.environ.get(ENV_REPO), file_config.get("repo_name"))
    )
    bucket = cast(
        str | None, _first(cli_bucket, os.environ.get(ENV_BUCKET), file_config.get("bucket"))
    )

    work_dir = cast(str | None, _first(cli_work_dir, file_config.get("work_dir")))
    if work_dir is None:
        work_dir = os.getcwd()
    work_dir = os.path.abspath(os.path.expanduser(work_dir))

    raw_workers = _first(cli_max_workers, os.environ.get(ENV_WORKERS), file_config.get("max_workers"))
    try:
        max_workers = int(cast(Any, raw_workers)) if raw_workers is not None else 0
    except ValueError as e:
        raise ConfigError(f"Invalid worker count: {raw_workers!r}") from e

    raw_part_size = _first(cli_part_size, os.environ.get(ENV_PART_SIZE), file_config.get("part_size"))
    try:
        part_size = parse_size(cast(Any, raw_part_size)) if raw_part_size is not None else DEFAULT_PART_SIZE
    except ValueError as e:
        raise ConfigError(str(e)) from e

    for option in ("region", "profile", "endpoint_url"):
        if kwargs.get(option) is None and option in file_config:
            kwargs[option] = file_config[option]

    return Config(
        repo_name=repo_name,
        bucket=bucket,
        work_dir=work_dir,
        max_workers=max_workers,
        part_size=part_size,
        **cast(dict[str, Any], kwargs),
    )


def write_workdir_config(
    work_dir: str | Path,
    repo_name: str,
    bucket: str,
    max_workers: int = 0,
    part_size: int | None = None,
    force: bool = False,
) -> Path:
    """Record repository settings in ``<work_dir>/.s3vn.toml``.

    Raises:
        ConfigError: If a value is invalid, ``work_dir`` is not a directory,
            or the file exists and ``force`` is not set
    """
    work_dir = Path(work_dir)
    if not work_dir.is_dir():
        raise ConfigError(f"Working directory does not exist: {work_dir}")
    if not repo_name:
        raise ConfigError("Repository name cannot be empty")
    if not bucket:
        raise ConfigError("Bucket cannot be empty")
    if max_workers < 0:
        raise ConfigError(f"Worker count cannot be negative: {max_workers}")
    if part_size is not None and part_size < MIN_PART_SIZE:
        raise ConfigError(f"Part size {part_size} is below the S3 minimum of {MIN_PART_SIZE} bytes")

    path = work_dir / WORKDIR_CONFIG_NAME
    if path.exists() and not force:
        raise ConfigError(f"Configuration already exists: {path}. Use --force to overwrite.")

    data: dict[str, object] = {
        "repo_name": repo_name,
        "bucket": bucket,
        "max_workers": max_workers,
    }
    if part_size is not None:
        data["part_size"] = part_size

    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    return path
