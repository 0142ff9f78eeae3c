"""
Typed, persisted configuration.

    from launchcore.core.config import ConfigurationKey, ConfigurationService, parsers
"""
from .key import (
    ConfigurationError,
    ConfigurationKey,
    ConfigurationTypeError,
    ParseError,
    ValueKind,
)
from .service import ConfigurationService
from .conflicts import ConfigurationConflictError, ConfigurationConflictService, ConflictReport
from .writer import ConfigurationFormatError, read_config, render_config, write_config
from . import parsers

__all__ = [
    "ConfigurationError",
    "ConfigurationKey",
    "ConfigurationTypeError",
    "ParseError",
    "ValueKind",
    "ConfigurationService",
    "ConfigurationConflictError",
    "ConfigurationConflictService",
    "ConflictReport",
    "ConfigurationFormatError",
    "read_config",
    "render_config",
    "write_config",
    "parsers",
]
