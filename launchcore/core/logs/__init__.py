from .service import (
    ARCHIVED_LOG,
    LIVE_LOG,
    LogContinuityError,
    LogService,
    LogSettings,
    PreInitMessage,
)
from .archive import archive_name, compress_to_gz, enforce_stockpile, rename_unique, stockpiled_logs

__all__ = [
    "ARCHIVED_LOG",
    "LIVE_LOG",
    "LogContinuityError",
    "LogService",
    "LogSettings",
    "PreInitMessage",
    "archive_name",
    "compress_to_gz",
    "enforce_stockpile",
    "rename_unique",
    "stockpiled_logs",
]
