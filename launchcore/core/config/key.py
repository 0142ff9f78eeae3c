"""
Configuration Keys.

A key is one named, typed setting owned by a ConfigurationService.
"""
from enum import Enum
from typing import Any, Callable, Optional


class ConfigurationError(Exception):
    """Base class for configuration errors."""
    pass


class ConfigurationTypeError(ConfigurationError, TypeError):
    """A value does not match the kind a key was registered with."""
    pass


class ParseError(ConfigurationError, ValueError):
    """A raw value could not be parsed into the key's value."""
    pass


class ValueKind(Enum):
    """Kinds of values a configuration key can hold."""
    STRING = str
    INTEGER = int
    FLOAT = float
    BOOLEAN = bool
    LIST = list
    MAPPING = dict

    @classmethod
    def of(cls, value: Any) -> "ValueKind":
        """
        Determine the kind of a value.

        Raises:
            ConfigurationTypeError: For None or unsupported types
        """
        # bool before int, bool is an int subclass
        if isinstance(value, bool):
            return cls.BOOLEAN
        for kind in (cls.INTEGER, cls.FLOAT, cls.STRING, cls.LIST, cls.MAPPING):
            if isinstance(value, kind.value):
                return kind
        raise ConfigurationTypeError(f"Unsupported configuration value: {value!r} ({type(value).__name__})")

    def accepts(self, value: Any) -> bool:
        try:
            return ValueKind.of(value) is self
        except ConfigurationTypeError:
            return False


class ConfigurationKey:
    """
    Named, typed configuration setting.

    The kind of the key is fixed by the first value its default supplier returns
    and never changes afterwards.

    Example:
        ConfigurationKey(
            "Thread-Count",
            lambda: 16,
            parser=parsers.integer(1, 128),
            argument="threadcount",
            description="Amount of threads used for downloads.",
        )
    """

    def __init__(
        self,
        name: str,
        default: Callable[[], Any],
        parser: Optional[Callable[[Any], Any]] = None,
        verifier: Optional[Callable[[Any], bool]] = None,
        argument: Optional[str] = None,
        description: Optional[str] = None,
    ):
        """
        Args:
            name: Registry name, also the entry name in the configuration file
            default: Supplier of the default value, evaluated on every PRE_INIT
            parser: Turns raw values from the file or arguments into the key's value
            verifier: Checks whether a raw value is acceptable
            argument: Command line argument bound to this key
            description: Written as a comment above the entry in the configuration file
        """
        if not name or not name.strip():
            raise ValueError("Configuration key needs a name!")
        if not callable(default):
            raise TypeError(f"Default of key {name} has to be a supplier (callable)!")

        self._name = name
        self._default = default
        self._parser = parser
        self._verifier = verifier
        self._argument = argument
        self._description = description

        self._value = default()
        self._kind = ValueKind.of(self._value)

    @property
    def name(self) -> str:
        return self._name

    @property
    def argument(self) -> Optional[str]:
        return self._argument

    @property
    def description(self) -> Optional[str]:
        return self._description

    @property
    def kind(self) -> ValueKind:
        return self._kind

    @property
    def value(self) -> Any:
        return self._value

    def get_value(self) -> Any:
        return self._value

    def get_default(self) -> Any:
        """Evaluate the default supplier. Never cached."""
        return self._default()

    def verify(self, raw: Any) -> bool:
        """True if the raw value passes the verifier or no verifier is set."""
        return self._verifier is None or bool(self._verifier(raw))

    def parse(self, raw: Any) -> Any:
        """
        Parse a raw value. Returns it unchanged when no parser is set.

        Raises:
            ParseError: If the parser fails
        """
        if self._parser is None:
            return raw
        try:
            return self._parser(raw)
        except ParseError:
            raise
        except Exception as e:
            raise ParseError(f"Invalid value for key {self._name}: {raw!r} ({e})") from e

    def set_value(self, value: Any) -> Any:
        """
        Set the value. It has to be of the key's kind, or None.

        Raises:
            ConfigurationTypeError: If the value is of another kind
        """
        if value is not None and not self._kind.accepts(value):
            raise ConfigurationTypeError(
                f"Can't change kind of configuration key {self._name}! "
                f"Expected: {self._kind.name}, got: {type(value).__name__}"
            )
        self._value = value
        return self._value

    def parse_and_set(self, raw: Any) -> Any:
        return self.set_value(self.parse(raw))

    def __repr__(self) -> str:
        return f"ConfigurationKey({self._name!r}, kind={self._kind.name}, value={self._value!r})"
