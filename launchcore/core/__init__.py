"""
Launcher Core - Bootstrap Infrastructure.

Provides the backbone every launcher subsystem is built on:
- ServiceManager: Phase-driven service lifecycle
- ConfigurationService: Typed keys persisted to YAML files
- CommandRegistry: Command line arguments and runtime commands
- LogService: Log files with archiving and stockpile limits

Usage:
    from launchcore.core import LauncherContext, managed_lifecycle

    context = LauncherContext.create(sys.argv[1:])
    with managed_lifecycle(context):
        ...
"""
from .lifecycle import ServiceManager, ServiceState, LifecycleError, ServicePhaseError
from .base_service import BaseService
from .decorators import service
from .config import (
    ConfigurationKey,
    ConfigurationService,
    ConfigurationConflictService,
    ConfigurationError,
    ValueKind,
    parsers,
)
from .commands import CommandRegistry, CommandConsole, DecodeStatus
from .logs import LogService, LogSettings, LogContinuityError
from .context import LauncherContext, managed_lifecycle
from .logging import setup_logging

__all__ = [
    # Lifecycle
    "ServiceManager",
    "ServiceState",
    "LifecycleError",
    "ServicePhaseError",
    "BaseService",
    "service",

    # Configuration
    "ConfigurationKey",
    "ConfigurationService",
    "ConfigurationConflictService",
    "ConfigurationError",
    "ValueKind",
    "parsers",

    # Commands
    "CommandRegistry",
    "CommandConsole",
    "DecodeStatus",

    # Logging
    "LogService",
    "LogSettings",
    "LogContinuityError",
    "setup_logging",

    # Context
    "LauncherContext",
    "managed_lifecycle",
]
