"""
File helpers for log archiving and stockpile enforcement.
"""
import gzip
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

LOG_MARKER = ".log"
ARCHIVE_TIME_FORMAT = "%Y-%m-%d_%H-%M-%S"


def archive_name(now: Optional[datetime] = None, compressed: bool = False) -> str:
    """Timestamp based archive name. Lexicographic order is creation order."""
    stamp = (now or datetime.now()).strftime(ARCHIVE_TIME_FORMAT)
    return f"{stamp}{LOG_MARKER}" + (".gz" if compressed else "")


def _unique(target: Path) -> Path:
    if not target.exists():
        return target
    # "name.log" -> "name_1.log", sorting after "name.log"
    stem, dot, suffix = target.name.partition(".")
    counter = 1
    while True:
        candidate = target.with_name(f"{stem}_{counter}{dot}{suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def rename_unique(path: Path, new_name: str) -> Path:
    """
    Rename a file inside its directory without overwriting anything.

    Returns:
        Path the file ended up at
    """
    path = Path(path)
    target = _unique(path.with_name(new_name))
    path.rename(target)
    return target


def compress_to_gz(path: Path, new_name: Optional[str] = None, delete_source: bool = True) -> Path:
    """
    Compress a file with gzip next to the original.

    Args:
        path: File to compress
        new_name: Name of the compressed file without ".gz" (defaults to the original name)
        delete_source: Remove the uncompressed file afterwards

    Returns:
        Path of the compressed file
    """
    path = Path(path)
    target = _unique(path.with_name(f"{new_name or path.name}.gz"))
    with open(path, "rb") as src, gzip.open(target, "wb") as dst:
        shutil.copyfileobj(src, dst)
    if delete_source:
        path.unlink()
    return target


def archive(path: Path, compress: bool, name: Optional[str] = None) -> Path:
    """Rename, or compress, a log file to its archive name."""
    if compress:
        return compress_to_gz(path, name or archive_name())
    return rename_unique(path, name or archive_name())


def creation_time(path: Path) -> float:
    """
    File creation timestamp.

    Uses the birth time where the platform records one, otherwise the
    modification time.
    """
    stat = os.stat(path)
    return getattr(stat, "st_birthtime", stat.st_mtime)


def stockpiled_logs(directory: Path, live_name: str) -> List[Path]:
    """Archived log files in a directory, oldest first."""
    files = [
        p for p in Path(directory).iterdir()
        if p.is_file() and LOG_MARKER in p.name and p.name != live_name
    ]
    return sorted(files, key=lambda p: (creation_time(p), p.name))


def enforce_stockpile(
    directory: Path,
    limit: int,
    live_name: str,
    report: Optional[Callable[[str, str], None]] = None,
) -> List[Path]:
    """
    Delete the oldest archived logs until at most ``limit`` remain.

    Args:
        directory: Log directory
        limit: Amount of archived logs to keep, 0 or less keeps everything
        live_name: File name of the live log, never deleted
        report: Callback receiving (level, message)

    Returns:
        Deleted files, oldest first
    """
    report = report or (lambda level, message: None)
    if limit <= 0:
        return []

    archived = stockpiled_logs(directory, live_name)
    if len(archived) <= limit:
        return []

    report("INFO", f"Limit of stockpile has been reached (currently found {len(archived)} log files)! Deleting the oldest files...")
    deleted: List[Path] = []
    while len(archived) > limit:
        oldest = archived.pop(0)
        try:
            oldest.unlink()
        except FileNotFoundError:
            report("ERROR", f"{oldest.absolute()} was meant to be deleted, but it's missing! Something is not right...")
            continue
        except OSError as e:
            report("ERROR", f"Failed to delete the log file {oldest.absolute()}: {e}")
            continue
        deleted.append(oldest)
        report("INFO", f"{oldest.absolute()} has been deleted!")
    return deleted
