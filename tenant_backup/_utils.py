import logging
from datetime import datetime, timezone

logger = logging.getLogger("tenant-backup")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_size(num_bytes: int) -> str:
    """Human readable size for log lines."""
    size = float(num_bytes)
    for unit in ("B", "KiB", "MiB", "GiB"):
        if size < 1024 or unit == "GiB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{num_bytes} B"
