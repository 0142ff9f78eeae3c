from .app import LauncherApp, LauncherError
from .settings import MainConfig, register_main_configuration, log_settings
from .commands import register_builtin_commands

__all__ = [
    "LauncherApp",
    "LauncherError",
    "MainConfig",
    "register_main_configuration",
    "log_settings",
    "register_builtin_commands",
]
