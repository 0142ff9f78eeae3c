"""
Built-in launcher commands.
"""
from typing import Callable

from loguru import logger

from .. import __version__
from ..core.commands import CommandRegistry
from ..core.config import ConfigurationService

log = logger.bind(service="Launcher Commands")


def register_builtin_commands(
    registry: CommandRegistry,
    config: ConfigurationService,
    output: Callable[[str], None] = print,
) -> None:
    """
    Register help, version and the runtime-only config command.

    Usage:
        help
        version
        config                  - list every key
        config <key>            - show one key
        config <key> <value>    - set a key and save the file
    """

    def help_command(value: str) -> None:
        output("Commands: " + ", ".join(registry.commands))
        if registry.runtime_only:
            output("Runtime only: " + ", ".join(registry.runtime_only))
        output("Arguments: " + ", ".join(f"-{a}" for a in registry.arguments))

    def version_command(value: str) -> None:
        output(f"launchcore {__version__}")

    def config_command(value: str) -> None:
        name, _, raw = value.strip().partition(" ")
        if not name:
            for key_name, key in config.keys.items():
                output(f"{key_name} = {key.get_value()!r}")
            return

        if not raw:
            description = config.description(name)
            output(f"{name} = {config.get_value(name)!r}" + (f"  # {description}" if description else ""))
            return

        config.set_value_from_raw(name, raw.strip())
        if config.has_file:
            config.save()
        log.info(f"Key {name} changed to {config.get_value(name)!r}.")
        output(f"{name} = {config.get_value(name)!r}")

    registry.register("help", help_command)
    registry.register("version", version_command)
    registry.register("config", config_command, startup_execution=False)
