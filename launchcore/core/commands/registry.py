"""
Argument and command registry.

Decodes command line tokens (``-Name`` or ``-Name:Value``) into argument
handlers, which run immediately, and startup commands, which run after every
argument was applied. Commands can also be decoded one line at a time at
runtime, e.g. from the interactive console.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from loguru import logger

Handler = Callable[[str], None]

log = logger.bind(service="Command Registry")


class CommandRegistrationError(ValueError):
    """Invalid command or argument name."""
    pass


class DecodeStatus(Enum):
    APPLIED = "applied"              # argument handler ran
    QUEUED = "queued"                # startup command waiting for the end of the scan
    BLACKLISTED = "blacklisted"      # runtime-only command found in the arguments
    IGNORED = "ignored"              # nothing registered under that name
    FAILED = "failed"                # handler raised
    EXECUTED = "executed"            # command handler ran
    NOT_FOUND = "not_found"          # unknown command at runtime
    ARGUMENT_ONLY = "argument_only"  # argument used as a runtime command


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one token or command line."""
    token: str
    name: str
    value: str
    status: DecodeStatus
    message: str = ""
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is not DecodeStatus.FAILED

    def __str__(self) -> str:
        return self.message


@dataclass
class DecodeReport:
    """Outcome of decoding a full argument list."""
    results: List[DecodeResult] = field(default_factory=list)
    commands: List[DecodeResult] = field(default_factory=list)
    queued: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def failures(self) -> List[DecodeResult]:
        return [r for r in self.results + self.commands if r.status is DecodeStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures

    def by_status(self, status: DecodeStatus) -> List[DecodeResult]:
        return [r for r in self.results if r.status is status]


def normalize(name: str) -> str:
    """Strip leading dashes and lower-case a command or argument name."""
    return name.strip().lstrip("-").lower()


def split_token(token: str, separator: str) -> Tuple[str, str]:
    """Split on the first separator into (normalized name, value)."""
    name, _, value = token.partition(separator)
    return normalize(name), value


class CommandRegistry:
    """
    Registry of argument and command handlers.

    Example:
        registry.register_argument("ThreadCount", set_thread_count)
        registry.register("update", run_update)
        registry.register("reinstall", reinstall, startup_execution=False)

        report = registry.decode_arguments(["-threadcount:4", "-update"])
        print(registry.decode("reinstall all"))
    """

    def __init__(self):
        self._arguments: Dict[str, Handler] = {}
        self._commands: Dict[str, Handler] = {}
        self._startup_blacklist: Set[str] = set()

    @property
    def arguments(self) -> List[str]:
        return sorted(self._arguments)

    @property
    def commands(self) -> List[str]:
        return sorted(self._commands)

    @property
    def runtime_only(self) -> List[str]:
        return sorted(self._startup_blacklist)

    def register(self, command: str, handler: Handler, startup_execution: bool = True) -> None:
        """
        Register a command handler.

        Args:
            command: Command name, case-insensitive, no spaces
            handler: Callable receiving the command value
            startup_execution: False to only allow the command at runtime

        Raises:
            CommandRegistrationError: If the name is empty or contains spaces
        """
        name = self._validate(command, handler)
        self._commands[name] = handler
        if startup_execution:
            self._startup_blacklist.discard(name)
        else:
            self._startup_blacklist.add(name)
        log.debug(f"Successfully registered {'' if startup_execution else 'runtime-only '}command handler for: {name}")

    def register_argument(self, argument: str, handler: Handler) -> None:
        """
        Register an argument handler.

        Raises:
            CommandRegistrationError: If the name is empty, contains spaces or is already bound
        """
        name = self._validate(argument, handler)
        if name in self._arguments:
            raise CommandRegistrationError(f"Argument -{name} is already bound to another handler!")
        self._arguments[name] = handler
        log.debug(f"Successfully registered argument handler for: {name}")

    def decode(self, line: str) -> DecodeResult:
        """
        Decode a single command line and run its handler.

        Args:
            line: Command name, optionally followed by a space and its value

        Returns:
            DecodeResult, str() of it is a status message for the user
        """
        start = time.perf_counter()
        log.info(f'Decoding line "{line}"...')
        command, value = split_token(line, " ")

        if command in self._commands:
            log.debug(f"Found command {command} in registry, executing command handler...")
            try:
                self._commands[command](value)
            except Exception as e:
                log.opt(exception=e).error(f'Exception thrown while decoding command "{command}" with value "{value}"!')
                return DecodeResult(
                    line, command, value, DecodeStatus.FAILED,
                    f"Exception was thrown while executing current command! {e!r}.",
                    e,
                )
            message = f"Command execution finished. Execution took {time.perf_counter() - start:.3f}s."
            log.info(message)
            return DecodeResult(line, command, value, DecodeStatus.EXECUTED, message)

        if command in self._arguments:
            log.warning(f"Specified command {command} is an argument!")
            return DecodeResult(
                line, command, value, DecodeStatus.ARGUMENT_ONLY,
                "Argument commands can only be executed on the startup!",
            )

        log.warning(f"No command found under name: {command}")
        return DecodeResult(line, command, value, DecodeStatus.NOT_FOUND, "No specified command found!")

    def decode_arguments(self, tokens: Sequence[str], run_commands: bool = True) -> DecodeReport:
        """
        Decode a full argument list.

        Argument handlers run in token order. Startup commands are queued and run
        after the whole list was scanned, so they see every argument applied.
        A failing handler never stops the decoding of the following tokens.

        Args:
            tokens: Raw command line tokens
            run_commands: False to leave the queued commands for run_queued()

        Returns:
            DecodeReport with one result per token and one per executed command
        """
        if tokens is None:
            raise ValueError("tokens can't be None")

        report = DecodeReport()
        log.info(f"Decoding {len(tokens)} argument(s):")

        for token in tokens:
            log.info(f"> {token}")
            name, value = split_token(token, ":")

            if name in self._arguments:
                try:
                    self._arguments[name](value)
                except Exception as e:
                    log.opt(exception=e).error(f'Exception thrown while decoding argument "{name}" with value "{value}"!')
                    report.results.append(DecodeResult(
                        token, name, value, DecodeStatus.FAILED, f"Argument -{name} failed: {e}", e
                    ))
                    continue
                report.results.append(DecodeResult(token, name, value, DecodeStatus.APPLIED, f"Argument -{name} applied."))

            elif name in self._commands:
                if name in self._startup_blacklist:
                    log.warning(f"Startup command {name} found, however this command is blacklisted from the startup execution.")
                    report.results.append(DecodeResult(
                        token, name, value, DecodeStatus.BLACKLISTED, f"Command {name} is runtime-only."
                    ))
                    continue
                log.info(f"Startup command {name} found! It will be executed after full argument decoding.")
                report.queued.append((name, value))
                report.results.append(DecodeResult(token, name, value, DecodeStatus.QUEUED, f"Command {name} queued."))

            else:
                report.results.append(DecodeResult(token, name, value, DecodeStatus.IGNORED))

        if run_commands:
            self.run_queued(report)
        return report

    def run_queued(self, report: DecodeReport) -> DecodeReport:
        """
        Run the startup commands queued by decode_arguments(), in queue order.

        Each queued command runs once, its result is added to report.commands.
        """
        queued, report.queued = report.queued, []
        for name, value in queued:
            report.commands.append(self.decode(f"{name} {value}"))
        return report

    @staticmethod
    def _validate(name: str, handler: Handler) -> str:
        if name is None or handler is None:
            raise CommandRegistrationError("Name and handler are required!")
        if not callable(handler):
            raise CommandRegistrationError(f"Handler for {name} is not callable!")
        if " " in name:
            raise CommandRegistrationError(f'Passed name ("{name}") contains illegal values!')
        normalized = normalize(name)
        if not normalized:
            raise CommandRegistrationError(f'Passed name ("{name}") is empty!')
        return normalized
