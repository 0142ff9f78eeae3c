"""
Main configuration of the launcher.

Registers the "Main Configuration Service" and its keys, and turns the
relevant keys into settings for the other services.
"""
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Union

from ..core.config import ConfigurationKey, ConfigurationService, parsers
from ..core.context import LauncherContext
from ..core.logs import LogSettings

MAIN_CONFIGURATION = "Main Configuration Service"
CONFIG_FILE = "launcher-config.yaml"

MODES = ("CLI", "GUI")


class MainConfig(Enum):
    """Keys of the main configuration. Values are the key names."""
    MODE = "App-Mode"
    WORKING_DIRECTORY = "Working-Directory"
    LOG_DIRECTORY = "Log-Directory"
    STOCKPILE_LOGS = "Stockpile-Logs"
    COMPRESS_LOGS = "Compress-Logs"
    LOG_STOCKPILE_LIMIT = "Log-Stockpile-Limit"
    THREAD_COUNT = "Thread-Count"
    DOWNLOAD_ATTEMPTS = "Download-Attempts"
    UPDATER = "Updater"
    BYPASS_NETWORK_CHECK = "Bypass-Network-Check"
    EXPERIMENTAL = "Experimental"
    INTERACTIVE_CONSOLE = "Interactive-Console"

    def get(self, config: ConfigurationService) -> Any:
        return config.get_value(self.value)

    @staticmethod
    def is_console(config: ConfigurationService) -> bool:
        return MainConfig.MODE.get(config) == "CLI"

    @staticmethod
    def is_gui(config: ConfigurationService) -> bool:
        return not MainConfig.is_console(config)


def default_mode(context: LauncherContext) -> str:
    """CLI when forced, or when attached to a terminal and GUI isn't forced."""
    if context.has_argument("forceconsole"):
        return "CLI"
    if sys.stdin is not None and sys.stdin.isatty() and not context.has_argument("forcegui"):
        return "CLI"
    return "GUI"


def register_main_configuration(
    context: LauncherContext,
    path: Union[str, Path, None] = CONFIG_FILE,
) -> ConfigurationService:
    """
    Create the main configuration service, register its keys and the service itself.

    Args:
        context: Launcher context
        path: Configuration file, None keeps the configuration in memory

    Returns:
        The registered ConfigurationService
    """
    config = ConfigurationService(context, MAIN_CONFIGURATION, path)

    config.register_key(ConfigurationKey(
        MainConfig.MODE.value, lambda: default_mode(context),
        parser=parsers.choice(*MODES), verifier=parsers.one_of(*MODES),
        argument="mode", description="Sets mode of the application. Can be: CLI / GUI",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.WORKING_DIRECTORY.value, lambda: "",
        parser=parsers.path(must_exist=True),
        description="Working directory of the launcher. Empty means the current directory.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.LOG_DIRECTORY.value, lambda: "",
        parser=parsers.path(), argument="logspath",
        description="Directory the log files are kept in. Empty means the working directory.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.STOCKPILE_LOGS.value, lambda: True,
        parser=parsers.boolean(), argument="stockpilelogs",
        description="Keep the logs of previous runs.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.COMPRESS_LOGS.value, lambda: True,
        parser=parsers.boolean(), argument="compresslogs",
        description="Compress archived logs with gzip.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.LOG_STOCKPILE_LIMIT.value, lambda: 10,
        parser=parsers.integer(minimum=0), argument="logstocksize",
        description="Amount of archived logs to keep. 0 keeps every log.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.THREAD_COUNT.value, lambda: 16,
        parser=parsers.integer(1, 128), argument="threadcount",
        description="Amount of download threads. Can be 1 - 128.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.DOWNLOAD_ATTEMPTS.value, lambda: 5,
        parser=parsers.integer(1, 255), argument="downloadattempts",
        description="Attempts made for each download before giving up. Can be 1 - 255.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.UPDATER.value, lambda: True,
        parser=parsers.boolean(), argument="updater",
        description="Check for updates on startup.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.BYPASS_NETWORK_CHECK.value, lambda: False,
        parser=parsers.boolean(), argument="bypassnetworkcheck",
        description="Skip the network connection check.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.EXPERIMENTAL.value, lambda: False,
        parser=parsers.boolean(), argument="experimental",
        description="Enable experimental features.",
    ))
    config.register_key(ConfigurationKey(
        MainConfig.INTERACTIVE_CONSOLE.value, lambda: False,
        parser=parsers.boolean(), argument="console",
        description="Open the interactive command console after startup.",
    ))

    context.services.register(config)
    return config


def log_settings(config: ConfigurationService) -> LogSettings:
    """Logger settings from the main configuration."""
    directory = MainConfig.LOG_DIRECTORY.get(config)
    return LogSettings(
        directory=Path(directory) if directory else None,
        stockpile=MainConfig.STOCKPILE_LOGS.get(config),
        compress=MainConfig.COMPRESS_LOGS.get(config),
        limit=MainConfig.LOG_STOCKPILE_LIMIT.get(config),
    )
