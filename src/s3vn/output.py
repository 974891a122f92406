"""Output formatting for JSON and human-readable modes."""

import json

from .models import FileRecord


def format_size(size_bytes: int | float) -> str:
    """Format bytes as human-readable size."""
    size: float = float(size_bytes)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(size) < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} PB"


def format_duration(seconds: float) -> str:
    """Format seconds as human-readable duration."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def uploaded_entry(record: FileRecord) -> dict:
    return {
        "path": record.path,
        "size": record.size,
        "key": record.storage_key,
        "etag": record.etag,
    }


def format_success(
    files: list[dict],
    elapsed_seconds: float,
    json_output: bool = False,
    scanned: int = 0,
    skipped: int = 0,
    bucket: str | None = None,
) -> str:
    """Format the result of a completed commit."""
    total_bytes = sum(f["size"] for f in files)

    if json_output:
        return json.dumps(
            {
                "status": "success",
                "bucket": bucket,
                "files": files,
                "total_bytes": total_bytes,
                "elapsed_seconds": round(elapsed_seconds, 2),
                "summary": {
                    "scanned": scanned,
                    "uploaded": len(files),
                    "skipped": skipped,
                },
            },
            indent=2,
        )

    lines = [
        "",
        "Commit complete:",
        f"  Files: {scanned} scanned, {len(files)} uploaded, {skipped} skipped",
        f"  Size:  {format_size(total_bytes)}",
        f"  Time:  {format_duration(elapsed_seconds)}",
    ]
    if bucket:
        lines.append(f"  Bucket: {bucket}")
    return "\n".join(lines)


def format_plan(files: list[FileRecord], json_output: bool = False) -> str:
    """Format the list of files a dry run would upload."""
    if json_output:
        return json.dumps(
            {
                "status": "dry_run",
                "files": [{"path": r.path, "size": r.size} for r in files],
                "total_bytes": sum(r.size for r in files),
            },
            indent=2,
        )

    if not files:
        return "Nothing to upload."
    return "\n".join(f"Would upload: {r.path} ({format_size(r.size)})" for r in files)


def format_error(
    code: str,
    message: str,
    json_output: bool = False,
) -> str:
    """Format error result."""
    if json_output:
        return json.dumps(
            {
                "status": "error",
                "code": code,
                "message": message,
            },
            indent=2,
        )

    return f"Error: {message}"


def format_init(path: str, repo_name: str, bucket: str, json_output: bool = False) -> str:
    """Format the result of writing a working-directory config."""
    if json_output:
        return json.dumps(
            {
                "status": "success",
                "config_file": str(path),
                "repo_name": repo_name,
                "bucket": bucket,
            },
            indent=2,
        )

    return f"Initialized repository {repo_name} (bucket {bucket}) in {path}"
