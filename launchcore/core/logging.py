import sys
from typing import List, TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from .logs import LogService

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[service]}</cyan> - <level>{message}</level>"
)


def setup_logging(log_service: "LogService", debug_mode: bool = False, console: bool = True) -> List[int]:
    """
    Configures Loguru logger.

    Args:
        log_service: Log engine receiving every record as a sink
        debug_mode: Log DEBUG records too
        console: Also print WARNING and above (everything in debug mode) to stderr

    Returns:
        Handler ids, for logger.remove()
    """
    # Remove default handler
    logger.remove()
    logger.configure(extra={"service": "Launcher"})

    handlers = []
    if console:
        level = "DEBUG" if debug_mode else "WARNING"
        handlers.append(logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT))

    # The log engine writes its own timestamps and levels
    level = "DEBUG" if debug_mode else "INFO"
    handlers.append(logger.add(log_service.sink, level=level, format="{message}", catch=False))

    logger.bind(service="Launcher").debug("Logging initialized.")
    return handlers
