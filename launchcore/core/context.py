"""
Launcher context.

Holds the collaborators every service needs: the log engine, the service
manager, the command registry and the configuration conflict tracker.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence

from loguru import logger

from .commands import CommandRegistry, normalize, split_token
from .config.conflicts import ConfigurationConflictService
from .lifecycle import ServiceManager
from .logs import LogService


@dataclass
class LauncherContext:
    """
    Explicit context passed to services instead of global singletons.

    Example:
        context = LauncherContext.create(sys.argv[1:])
        config = ConfigurationService(context, "Main Configuration Service", "launcher.yaml")
    """
    log: LogService
    services: ServiceManager
    commands: CommandRegistry
    conflicts: ConfigurationConflictService
    arguments: List[str] = field(default_factory=list)

    @classmethod
    def create(cls, arguments: Sequence[str] = (), log_service: Optional[LogService] = None) -> "LauncherContext":
        """
        Build a context with fresh collaborators.

        The log engine and the conflict tracker are registered with the
        service manager right away.
        """
        context = cls(
            log=log_service or LogService(),
            services=ServiceManager(),
            commands=CommandRegistry(),
            conflicts=ConfigurationConflictService(),
            arguments=list(arguments),
        )
        context.services.register(context.log)
        context.services.register(context.conflicts)
        return context

    def has_argument(self, name: str) -> bool:
        """Check for a flag argument, ignoring dashes and case."""
        wanted = normalize(name)
        return any(split_token(a, ":")[0] == wanted for a in self.arguments)


@contextmanager
def managed_lifecycle(context: LauncherContext) -> Iterator[LauncherContext]:
    """
    Context manager running the full lifecycle.

    Runs PRE_INIT, INIT and POST_INIT on enter and EXITED on a clean exit.
    On an exception the CRASHED phase runs and the exception propagates.

    Example:
        with managed_lifecycle(context):
            console.run()

    Yields:
        The context, with every service initialized
    """
    try:
        context.services.run_pre_init()
        context.services.run_init()
        context.services.run_post_init()
        yield context
    except BaseException:
        logger.bind(service="Launcher").warning("Lifecycle interrupted, running CRASHED phase.")
        context.services.run_crash()
        raise
    context.services.run_exit()
