from .registry import (
    CommandRegistry,
    CommandRegistrationError,
    DecodeReport,
    DecodeResult,
    DecodeStatus,
    normalize,
    split_token,
)
from .console import CommandConsole

__all__ = [
    "CommandRegistry",
    "CommandRegistrationError",
    "DecodeReport",
    "DecodeResult",
    "DecodeStatus",
    "normalize",
    "split_token",
    "CommandConsole",
]
