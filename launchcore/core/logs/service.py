"""
Logger Service.

Creates, archives and stockpiles the launcher's log files. Until PRE_INIT has
created the live log file, every entry is buffered in memory, so the engine can
be used before the ServiceManager exists.
"""
import os
import shutil
import traceback
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from pydantic import BaseModel

from ..base_service import BaseService
from ..decorators import service
from ..lifecycle import ServiceState
from .archive import archive, compress_to_gz, enforce_stockpile, rename_unique

LIVE_LOG = "launcher.log"
ARCHIVED_LOG = "launcher-archived.log"
UNKNOWN_LOG = "unknown.log"
UNKNOWN_LATEST_LOG = "unknown_latest.log"
TIME_FORMAT = "%d-%m-%Y %H:%M:%S.%f"


class LogContinuityError(RuntimeError):
    """The live log file vanished and couldn't be recreated."""
    pass


class LogSettings(BaseModel):
    """Settings the logger reads in POST_INIT."""
    directory: Optional[Path] = None
    stockpile: bool = True
    compress: bool = True
    limit: int = 10


@dataclass(frozen=True)
class PreInitMessage:
    """Log entry waiting for the live log file."""
    message: str
    level: str
    cause: Optional[BaseException] = None
    time: datetime = field(default_factory=datetime.now)


@service(name="Logger Service", phases=[ServiceState.PRE_INIT, ServiceState.POST_INIT])
class LogService(BaseService):
    """
    Log engine writing ``[timestamp] [LEVEL] message`` lines to the live log file.

    States:
        uninitialized - entries are buffered in memory
        initialized   - entries are appended to the live log file
        crashed       - no usable file, entries are printed to the console

    Attached to loguru through ``sink``:
        logger.add(log_service.sink, format="{message}")
    """

    def __init__(
        self,
        log_file: Union[str, Path] = LIVE_LOG,
        settings_provider: Optional[Callable[[], LogSettings]] = None,
        console: Callable[[str], None] = print,
    ):
        """
        Args:
            log_file: Path of the live log file
            settings_provider: Supplies LogSettings for POST_INIT
            console: Output used once the engine crashed
        """
        super().__init__()
        self._log_file = Path(log_file)
        self.settings_provider = settings_provider
        self._console = console
        self._initialized = False
        self._crashed = False
        self._buffer: List[PreInitMessage] = []

    @property
    def log_file(self) -> Path:
        return self._log_file

    @property
    def log_path(self) -> str:
        """Absolute path of the live log file."""
        return str(self._log_file.absolute())

    @property
    def archived_file(self) -> Path:
        return self._log_file.with_name(ARCHIVED_LOG)

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def crashed(self) -> bool:
        return self._crashed

    @property
    def pending(self) -> List[PreInitMessage]:
        """Entries buffered before initialization."""
        return list(self._buffer)

    # Logging

    def log(self, message: str, level: str = "INFO", cause: Optional[BaseException] = None,
            when: Optional[datetime] = None) -> None:
        """
        Log a message, with the full chain of a cause if one is given.

        Raises:
            LogContinuityError: If the live file vanished and can't be recreated
        """
        level = level.upper()
        when = when or datetime.now()
        if not self._initialized:
            self._buffer.append(PreInitMessage(message, level, cause, when))
            return

        text = self._render(message, level, cause, when)
        if self._crashed:
            self._console(text.rstrip("\n"))
            return

        try:
            self._append(text)
        except FileNotFoundError:
            self._recover(message, level, cause, when)

    def info(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.log(f"[Logger] {message}", "INFO", cause)

    def warning(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.log(f"[Logger] {message}", "WARNING", cause)

    def error(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.log(f"[Logger] {message}", "ERROR", cause)

    def critical(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.log(f"[Logger] {message}", "CRITICAL", cause)

    def sink(self, message) -> None:
        """loguru sink. Renders the bound service name as a prefix."""
        record = message.record
        text = record["message"]
        name = record["extra"].get("service")
        if name:
            text = f"[{name}] {text}"
        exception = record["exception"]
        cause = exception.value if exception is not None else None
        self.log(text, record["level"].name, cause, when=record["time"])

    @staticmethod
    def _format(level: str, message: str, when: Optional[datetime] = None) -> str:
        stamp = (when or datetime.now()).strftime(TIME_FORMAT)[:-3]
        return f"[{stamp}] [{level}] {message}"

    def _render(self, message: str, level: str, cause: Optional[BaseException], when: datetime) -> str:
        lines = [self._format(level, message, when)]
        if cause is not None:
            lines.extend(self._render_exception(level, cause, set()))
        return "\n".join(lines) + "\n"

    def _render_exception(self, level: str, exc: BaseException, seen: set) -> List[str]:
        if id(exc) in seen:
            return []
        seen.add(id(exc))

        lines = [self._format(level, f"{type(exc).__name__}: {exc}")]
        for frame in traceback.extract_tb(exc.__traceback__):
            lines.append(f"\tat {frame.name} ({frame.filename}:{frame.lineno})")

        chained = exc.__cause__ if exc.__cause__ is not None else (
            None if exc.__suppress_context__ else exc.__context__
        )
        if chained is not None:
            lines.append(self._format(level, "Caused by:"))
            lines.extend(self._render_exception(level, chained, seen))

        for grouped in getattr(exc, "exceptions", ()):
            lines.append(self._format(level, "Contains suppressed exception:"))
            lines.extend(self._render_exception(level, grouped, seen))
        return lines

    def _append(self, text: str) -> None:
        # "a" would silently recreate a deleted file
        if not self._log_file.is_file():
            raise FileNotFoundError(f"Log file {self.log_path} is missing")
        with open(self._log_file, "a", encoding="utf-8") as f:
            f.write(text)

    def _recover(self, message: str, level: str, cause: Optional[BaseException], when: datetime) -> None:
        try:
            self._init_logger()
        except OSError:
            self.crash_init()
            if self._crashed:
                self.critical("Failed generating new log file! Application will now exit.")
                raise LogContinuityError(f"Failed generating log file {self.log_path}!")
        self.error("Log continuity broken! The log file seems to have been deleted. "
                   "Created another copy, but the rest of the log file has been lost.")
        self.error("Catching last message...")
        self.log(message, level, cause, when)

    # Initialization

    def _init_logger(self) -> None:
        """Archive the previous live file, create a new one and flush the buffer."""
        self._initialized = False
        archived = False
        if self._log_file.exists():
            os.replace(self._log_file, self.archived_file)
            archived = True

        self._log_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self._log_file, "x", encoding="utf-8"):
            pass

        if archived:
            self.info(f'Old log file found! "{self.log_path}" file has been archived for now.')
        self.info(f'"{self.log_path}" file created.')
        self.info("Logger initialization completed.")
        self._initialized = True
        self._flush()

    def _flush(self) -> None:
        pending, self._buffer = self._buffer, []
        for entry in pending:
            self.log(entry.message, entry.level, entry.cause, entry.time)

    def crash_init(self) -> None:
        """
        Last resort initialization, used when the app fails before PRE_INIT.

        Falls back to an existing log file, then to a bare new file, and finally
        to printing everything to the console.
        """
        try:
            self._init_logger()
            self.warning("Logger was initialized with use of CRASH initialization!")
            return
        except OSError as e:
            failure = e

        if self._log_file.exists():
            note = ("WARNING", "USING OLD LOG FILE DUE TO APPLICATION CRASH.")
        else:
            try:
                with open(self._log_file, "x", encoding="utf-8"):
                    pass
                note = ("WARNING", "Successfully created new log file.")
            except OSError:
                self._crashed = True
                note = ("ERROR", "Failed creating log file! Printing entire pre-init messages to the console.")

        self._initialized = True
        self._flush()
        self.log(f"[Logger] {note[1]}", note[0], failure)

    def pre_init(self) -> None:
        self._init_logger()

    # Archiving

    def post_init(self) -> None:
        """Move the logs to their final directory, archive old logs and enforce the stockpile limit."""
        settings = self.settings_provider() if self.settings_provider else LogSettings()
        live_dir = self._log_file.parent.absolute()
        target_dir = Path(settings.directory).absolute() if settings.directory else live_dir

        if target_dir.resolve() != live_dir.resolve():
            self._relocate(settings, target_dir)
        else:
            self.info("No custom path for logs has been specified, using working directory for logging!")
            archived = self.archived_file
            if archived.exists():
                if settings.stockpile:
                    self.info("Old log file found! Archiving the log file...")
                    target = archive(archived, settings.compress)
                    self.info(f'Log has been archived as "{target.name}"!')
                else:
                    self.info("Old log file found! However, stockpiling of the logs has been disabled. Deleting old log file...")
                    archived.unlink()
                    self.info("Old log file has been deleted.")

        if settings.stockpile and settings.limit > 0:
            self.info(f"Stockpiling of the logs is enabled! Stockpile limit is {settings.limit}")
            enforce_stockpile(self._log_file.parent, settings.limit, self._log_file.name, report=self.log_report)
        elif settings.stockpile:
            self.info("Stockpiling of the logs is enabled! Stockpile limit is infinite!")

        self.info("Post-Initialization of Logger finished!")

    def log_report(self, level: str, message: str) -> None:
        self.log(f"[Logger] {message}", level)

    def _relocate(self, settings: LogSettings, target_dir: Path) -> None:
        if not target_dir.exists():
            self.info(f'Custom path for logs has been specified, but it doesn\'t exist! Creating "{target_dir}".')
            target_dir.mkdir(parents=True)
        else:
            self.info(f'Custom path for logs has been specified: "{target_dir}".')

        archived = self.archived_file
        archived_in_target = target_dir / ARCHIVED_LOG
        live_in_target = target_dir / self._log_file.name

        if archived_in_target.exists():
            suffix = ".gz" if settings.compress else ""
            self.warning("Found old pre-full-archive log file in specified path! "
                         "This might signal a crash in the last post-init phase of the logger!")
            self.warning(f"The log file is going to be saved as {UNKNOWN_LOG}{suffix} for future inspection.")
            archive(archived_in_target, settings.compress, name=UNKNOWN_LOG)

        if archived.exists():
            if settings.stockpile:
                self.info("Found archived log in working directory! Moving archived log to new location...")
                shutil.move(str(archived), str(archived_in_target))
                target = archive(archived_in_target, settings.compress)
                self.info(f'Old log file has been archived as "{target.name}"!')
            else:
                self.info("Found archived log in working directory! However, stockpiling of the logs "
                          "has been disabled. Deleting old log file...")
                archived.unlink()
                self.info("Old log file has been deleted!")

        if live_in_target.exists():
            if settings.stockpile:
                self.info("Old log file found in the log directory! Archiving the log file...")
                renamed = rename_unique(live_in_target, ARCHIVED_LOG)
                target = archive(renamed, settings.compress)
                self.info(f'Old log file has been archived as "{target.name}"!')
            else:
                self.info("Found old log file in the log directory! However, stockpiling of the logs "
                          "has been disabled. Deleting old log file...")
                live_in_target.unlink()
                self.info("Old log file has been deleted!")

        if not self._log_file.exists():
            self.error("The log file doesn't exist before even archiving??? Something is horribly wrong...")
            return

        self.info("Moving currently active log file to new location...")
        if live_in_target.exists():
            self.error("Found non-archived log in the final destination, what should not happen at this point of the process!")
            self.error(f"Archiving the log under {UNKNOWN_LATEST_LOG}.gz name for future inspection.")
            unknown = rename_unique(live_in_target, UNKNOWN_LATEST_LOG)
            compress_to_gz(unknown)
        shutil.move(str(self._log_file), str(live_in_target))
        self._log_file = live_in_target
        self.info(f'Moved currently active log to the new location: "{self.log_path}".')
