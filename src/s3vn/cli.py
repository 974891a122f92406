"""CLI argument parsing."""

import argparse
import sys

from . import __version__

COMMANDS = ("commit", "init")
DEFAULT_COMMAND = "commit"


def _common_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)

    repo_group = parent.add_argument_group("Repository")
    repo_group.add_argument(
        "-w",
        "--workdir",
        default=None,
        metavar="PATH",
        help="Working directory (default: current directory)",
    )

    upload_group = parent.add_argument_group("Upload")
    upload_group.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="N",
        help="Number of files processed in parallel (default: number of CPUs)",
    )
    upload_group.add_argument(
        "--part-size",
        default=None,
        metavar="SIZE",
        help="Multipart part size, e.g. 100MB (default: 100MB, minimum: 5MB)",
    )
    upload_group.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Skip confirmation prompts; let init overwrite an existing config",
    )

    output_group = parent.add_argument_group("Output")
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Output results as JSON",
    )
    output_group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress progress output, only show errors",
    )
    output_group.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Show debug information and every uploaded file; twice to include boto3 logs",
    )
    output_group.add_argument(
        "--log-file",
        metavar="PATH",
        help="Write logs to file",
    )
    return parent


def build_parser() -> argparse.ArgumentParser:
    common = _common_options()

    parser = argparse.ArgumentParser(
        prog="s3vn",
        description="Snapshot a directory and upload new or changed files to S3 "
        "under content-addressed keys",
        epilog="""
Examples:
  %(prog)s init photos my-backups                   # Record repo and bucket for this directory
  %(prog)s                                          # Commit the current directory
  %(prog)s commit -w ~/photos --workers 8           # Commit another directory with 8 workers
  %(prog)s --dry-run                                # Show what would be uploaded
  %(prog)s --part-size 64MB                         # Use 64 MiB multipart parts

Environment variables:
  S3VN_REPO        Repository name (alternative to --repo)
  S3VN_BUCKET      Target bucket (alternative to --bucket)
  S3VN_WORKERS     Parallel workers (alternative to --workers)
  S3VN_PART_SIZE   Multipart part size (alternative to --part-size)

Config file: <workdir>/.s3vn.toml, ~/.s3vn/config.toml or ~/.config/s3vn/config.toml
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    commit = subparsers.add_parser(
        "commit",
        parents=[common],
        help="Upload new and changed files (default)",
    )
    commit.add_argument(
        "--repo",
        default=None,
        help="Repository name used to namespace content hashes (or set S3VN_REPO)",
    )
    commit.add_argument(
        "--bucket",
        default=None,
        metavar="NAME",
        help="S3 bucket that receives file contents (or set S3VN_BUCKET)",
    )
    commit.add_argument(
        "--config",
        default=None,
        metavar="PATH",
        help="Read settings from this TOML file",
    )
    commit.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be uploaded without hashing or uploading",
    )

    aws_group = commit.add_argument_group("AWS")
    aws_group.add_argument("--region", default=None, help="AWS region of the bucket")
    aws_group.add_argument("--profile", default=None, help="AWS credentials profile")
    aws_group.add_argument(
        "--endpoint-url",
        default=None,
        metavar="URL",
        help="Custom S3-compatible endpoint",
    )

    init = subparsers.add_parser(
        "init",
        parents=[common],
        help="Write the working directory's .s3vn.toml",
    )
    init.add_argument("repo", help="Repository name used to namespace content hashes")
    init.add_argument("bucket", help="S3 bucket that receives file contents")

    return parser


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse ``args``; without a command name, ``commit`` is assumed."""
    if args is None:
        args = sys.argv[1:]
    if not args or (args[0] not in COMMANDS and args[0] not in ("-h", "--help", "--version")):
        args = [DEFAULT_COMMAND, *args]
    return build_parser().parse_args(args)
