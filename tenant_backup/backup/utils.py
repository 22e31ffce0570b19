"""Utility functions for backup/restore operations."""

import asyncio
import zipfile
import zlib
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from .._utils import logger, utc_now, format_size
from .exceptions import ArchiveIOError, InvalidIdentifierError, SourceMissingError

ARCHIVE_EXTENSION = "zip"
ARCHIVE_MIME_TYPE = "application/zip"
DATABASE_ENTRY_STEM = "database"

PathLike = Union[str, Path]


def database_entry_name(source_path: PathLike) -> str:
    """Name of the single archive entry, keeping the source file extension."""
    suffix = Path(source_path).suffix.lstrip(".") or "db"
    return f"{DATABASE_ENTRY_STEM}.{suffix}"


def generate_archive_name(moment: Optional[datetime] = None) -> str:
    """Generate archive filename from a timestamp.

    Args:
        moment: Instant to encode. Naive datetimes are taken as UTC.

    Returns:
        Filename in format: backup_YYYY-MM-DDTHH-MM-SS_GMT.zip
    """
    moment = moment or utc_now()
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    timestamp = moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return f"backup_{timestamp}_GMT.{ARCHIVE_EXTENSION}"


def validate_path_component(value: str, label: str = "identifier") -> str:
    """Reject values that could escape a namespace directory or key prefix."""
    if (
        not value
        or value in (".", "..")
        or value.startswith(".")
        or "/" in value
        or "\\" in value
        or "\x00" in value
    ):
        raise InvalidIdentifierError(f"Invalid {label}: {value!r}")
    return value


def _write_archive(source_path: Path, output_path: Path, entry_name: str) -> int:
    with zipfile.ZipFile(output_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
        archive.write(source_path, arcname=entry_name)
    return output_path.stat().st_size


async def create_archive(source_path: PathLike, output_path: PathLike) -> int:
    """Create a single-entry zip archive from a database file.

    Args:
        source_path: Database file to snapshot
        output_path: Output archive path

    Returns:
        Size of created archive in bytes

    Raises:
        SourceMissingError: If the source file does not exist
        ArchiveIOError: If writing the archive fails
    """
    source_path = Path(source_path)
    output_path = Path(output_path)

    if not source_path.is_file():
        raise SourceMissingError(str(source_path))

    entry_name = database_entry_name(source_path)
    logger.info(f"Creating archive: {output_path} ({entry_name})")

    try:
        archive_size = await asyncio.to_thread(_write_archive, source_path, output_path, entry_name)
    except OSError as e:
        output_path.unlink(missing_ok=True)
        if not source_path.exists():
            raise SourceMissingError(str(source_path)) from e
        raise ArchiveIOError(f"Failed to write archive {output_path.name}: {e}") from e

    logger.info(f"Archive created: {format_size(archive_size)}")
    return archive_size


def _verify_single_entry(archive_path: Path) -> zipfile.ZipInfo:
    with zipfile.ZipFile(archive_path, "r") as archive:
        infos = archive.infolist()
        if len(infos) != 1 or not infos[0].filename.startswith(f"{DATABASE_ENTRY_STEM}."):
            raise ArchiveIOError(f"Unexpected archive contents in {archive_path.name}: {archive.namelist()}")
        # testzip streams the entry and checks its CRC without holding it in memory
        bad_entry = archive.testzip()
        if bad_entry is not None:
            raise ArchiveIOError(f"Corrupt entry {bad_entry} in archive {archive_path.name}")
        return infos[0]


async def verify_archive(archive_path: PathLike) -> zipfile.ZipInfo:
    """Check that an archive holds one intact database entry.

    Args:
        archive_path: Path to a backup archive

    Returns:
        ZipInfo of the database entry; ``file_size`` is its uncompressed size
    """
    archive_path = Path(archive_path)
    try:
        return await asyncio.to_thread(_verify_single_entry, archive_path)
    except (OSError, zipfile.BadZipFile, zlib.error) as e:
        raise ArchiveIOError(f"Failed to read archive {archive_path.name}: {e}") from e
