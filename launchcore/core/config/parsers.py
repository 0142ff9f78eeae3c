"""
Stock parsers for configuration keys.

Each factory returns a callable turning a raw value (from the configuration file
or a command line argument) into a typed value, raising on invalid input.
"""
from pathlib import Path
from typing import Annotated, Any, Callable, Optional

from pydantic import Field, TypeAdapter, ValidationError

from .key import ParseError

FALSE_WORDS = ("false", "disabled", "off", "0", "no")


def _validator(adapter: TypeAdapter, label: str) -> Callable[[Any], Any]:
    def parse(raw: Any) -> Any:
        try:
            return adapter.validate_python(raw)
        except ValidationError as e:
            errors = "; ".join(err["msg"] for err in e.errors())
            raise ParseError(f"Invalid {label} value {raw!r}: {errors}") from e
    return parse


def boolean() -> Callable[[Any], bool]:
    """
    Lenient boolean parser.

    Booleans pass through. Strings are True unless they are one of
    ``false``/``disabled``/``off``/``0``/``no``, so a bare flag (empty value) is True.
    """
    def parse(raw: Any) -> bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, (int, float)):
            return raw != 0
        if isinstance(raw, str):
            return raw.strip().lower() not in FALSE_WORDS
        raise ParseError(f"Invalid boolean value {raw!r}")
    return parse


def integer(minimum: Optional[int] = None, maximum: Optional[int] = None) -> Callable[[Any], int]:
    """Integer parser with optional inclusive bounds."""
    adapter = TypeAdapter(Annotated[int, Field(ge=minimum, le=maximum)])
    return _validator(adapter, "integer")


def floating(minimum: Optional[float] = None, maximum: Optional[float] = None) -> Callable[[Any], float]:
    adapter = TypeAdapter(Annotated[float, Field(ge=minimum, le=maximum)])
    return _validator(adapter, "number")


def text(strip: bool = True) -> Callable[[Any], str]:
    """String parser. Numbers and booleans from the file are turned into text."""
    def parse(raw: Any) -> str:
        if raw is None or isinstance(raw, (list, dict)):
            raise ParseError(f"Invalid text value {raw!r}")
        value = str(raw)
        return value.strip() if strip else value
    return parse


def choice(*options: str, case_sensitive: bool = False) -> Callable[[Any], str]:
    """
    Parser accepting one of the given options.

    The returned value is spelled the way the option was declared.
    """
    if not options:
        raise ValueError("choice() needs at least one option")
    lookup = {(o if case_sensitive else o.lower()): o for o in options}

    def parse(raw: Any) -> str:
        if not isinstance(raw, str):
            raise ParseError(f"Invalid choice {raw!r}, expected one of: {', '.join(options)}")
        probe = raw.strip() if case_sensitive else raw.strip().lower()
        if probe not in lookup:
            raise ParseError(f"Invalid choice {raw!r}, expected one of: {', '.join(options)}")
        return lookup[probe]
    return parse


def path(create: bool = False, must_exist: bool = False) -> Callable[[Any], str]:
    """
    Path parser. Returns the path as a string, empty string meaning "unset".

    Args:
        create: Create the directory if it doesn't exist
        must_exist: Reject paths that don't exist (ignored when create is set)
    """
    adapter = TypeAdapter(str)

    def parse(raw: Any) -> str:
        try:
            value = adapter.validate_python(raw)
        except ValidationError as e:
            raise ParseError(f"Invalid path {raw!r}") from e
        if not value:
            return value
        target = Path(value)
        if create:
            target.mkdir(parents=True, exist_ok=True)
        elif must_exist and not target.exists():
            raise ParseError(f"Specified path does not exist: {target.absolute()}")
        return value
    return parse


def one_of(*options: Any) -> Callable[[Any], bool]:
    """Verifier accepting raw values from a fixed set (case-insensitive for strings)."""
    folded = {o.lower() if isinstance(o, str) else o for o in options}

    def verify(raw: Any) -> bool:
        probe = raw.lower() if isinstance(raw, str) else raw
        try:
            return probe in folded
        except TypeError:
            return False
    return verify
