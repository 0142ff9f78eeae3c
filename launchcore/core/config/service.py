"""
Configuration Service.

Owns a set of configuration keys and, optionally, the file they persist to.
"""
from pathlib import Path
from typing import Any, Dict, Optional, Union, TYPE_CHECKING

from ..base_service import BaseService
from ..lifecycle import ServiceState
from .key import ConfigurationError, ConfigurationKey
from .writer import ConfigurationFormatError, read_config, write_config

if TYPE_CHECKING:
    from ..context import LauncherContext


class ConfigurationService(BaseService):
    """
    Service holding configuration keys of one subsystem.

    PRE_INIT resets every key to its default and generates the file if it is
    missing. INIT loads the file, verifies and parses every entry and regenerates
    the file when anything is missing, invalid or unknown. Values can only be read
    once INIT has finished.

    Example:
        cfg = ConfigurationService(context, "Updater Configuration", Path("updater.yaml"))
        cfg.register_key(ConfigurationKey("Channel", lambda: "stable", argument="channel"))
        context.services.register(cfg)
    """

    def __init__(self, context: "LauncherContext", name: str, config_file: Optional[Union[str, Path]] = None):
        """
        Args:
            context: Launcher context the service belongs to
            name: Service name
            config_file: Path of the configuration file, None for in-memory only
        """
        super().__init__(name, phases=(ServiceState.PRE_INIT, ServiceState.INIT))
        self._context = context
        self.config_file: Optional[Path] = Path(config_file) if config_file is not None else None
        self._keys: Dict[str, ConfigurationKey] = {}
        self._overrides: Dict[str, Any] = {}
        self._initialized = False
        context.conflicts.track(self)

    @property
    def initialized(self) -> bool:
        """True once INIT has finished."""
        return self._initialized

    @property
    def has_file(self) -> bool:
        return self.config_file is not None

    @property
    def keys(self) -> Dict[str, ConfigurationKey]:
        """Copy of the registered keys, in registration order."""
        return dict(self._keys)

    def register_key(self, key: ConfigurationKey) -> ConfigurationKey:
        """
        Register a configuration key.

        Raises:
            ConfigurationError: If called after the lifecycle started
            ValueError: If a key with the same name is already registered
            CommandRegistrationError: If the key's argument is already bound by another key
        """
        if self._context.services.status is not ServiceState.NOT_STARTED:
            raise ConfigurationError("Registration of new keys has to be done before PRE_INIT!")
        if key is None:
            raise ValueError("Can't register None key!")
        if key.name in self._keys:
            raise ValueError(f"A key is already registered under name: {key.name}")

        if key.argument:
            self._context.commands.register_argument(
                key.argument, lambda raw, key=key: self._apply_argument(key, raw)
            )
        self._keys[key.name] = key
        self.logger.debug(f"Registered configuration key under name: {key.name}")
        return key

    def description(self, name: str) -> Optional[str]:
        return self._key(name).description

    def get_value(self, name: str) -> Any:
        """
        Raises:
            ConfigurationError: If the service isn't initialized yet
            KeyError: If no key with that name exists
        """
        self._ensure_initialized()
        return self._key(name).get_value()

    def set_value(self, name: str, value: Any) -> Any:
        """
        Set the in-memory value of a key. Use save() to persist it.

        Raises:
            ConfigurationError: If the service isn't initialized yet
            KeyError: If no key with that name exists
            ValueError: If value is None
        """
        self._ensure_initialized()
        if value is None:
            raise ValueError("Value can't be None!")
        return self._key(name).set_value(value)

    def set_value_from_raw(self, name: str, raw: Any) -> Any:
        self._ensure_initialized()
        key = self._key(name)
        if not key.verify(raw):
            raise ConfigurationError(f"Illegal value for key: {name}! Value: {raw!r}")
        return key.parse_and_set(raw)

    def pre_init(self) -> None:
        self.logger.info("Gathering default values of the keys...")
        for name, key in self._keys.items():
            default = key.get_default()
            if key.get_value() is not default:
                self.logger.warning(f"Default value CHANGED for key: {name}!")
                key.set_value(default)

        if self.has_file and not self.config_file.exists():
            self._generate()
        self.logger.info("PRE_INIT finished.")

    def init(self) -> None:
        if not self.has_file:
            self.logger.info("No configuration file for this configuration service.")
            self._apply_overrides()
            self._initialized = True
            return

        if not self.config_file.exists():
            raise ConfigurationError("Configuration file was not generated in PRE_INIT! Something isn't right.")

        self.logger.info("Loading configuration file...")
        regenerate = self._load()
        if regenerate:
            self.logger.warning(f'Config "{self.config_file.absolute()}" appears to be incorrect. Correcting...')
            self.config_file.unlink(missing_ok=True)
            self._generate()

        self._apply_overrides()
        self.logger.info("Configuration file loaded. INIT phase finished.")
        self._initialized = True

    def save(self) -> Path:
        """Rewrite the configuration file from the current values."""
        self._ensure_initialized()
        if not self.has_file:
            raise ConfigurationError(f"{self.name} has no configuration file!")
        self.config_file.unlink(missing_ok=True)
        return self._generate()

    def _load(self) -> bool:
        """Load values from the file. Returns True if the file needs regeneration."""
        try:
            raw_config = read_config(self.config_file)
        except ConfigurationFormatError as e:
            self.logger.opt(exception=e).error("Configuration file is unreadable!")
            return True

        regenerate = False
        for name, key in self._keys.items():
            if name not in raw_config:
                self.logger.warning(f"Missing key from configuration file! {name} ({key.kind.name})")
                regenerate = True
                continue

            raw = raw_config.pop(name)
            if not key.verify(raw):
                self.logger.error(f"Illegal value for key: {name}! Value: {raw!r}")
                regenerate = True
                continue

            try:
                key.parse_and_set(raw)
            except Exception as e:
                self.logger.opt(exception=e).error(f"Exception while parsing value for key: {name}")
                regenerate = True

        if raw_config:
            self.logger.warning("Additional keys found in the configuration file!")
            for name, value in raw_config.items():
                self.logger.warning(f"- {name} -> {value!r}")
            regenerate = True

        return regenerate

    def _generate(self) -> Path:
        self.logger.info("Generating configuration file...")
        path = write_config(self.config_file, self._keys.values())
        self.logger.info(f'Saved configuration file to: "{path}".')
        return path

    def _apply_argument(self, key: ConfigurationKey, raw: str) -> None:
        if not key.verify(raw):
            raise ConfigurationError(f"Illegal value for argument -{key.argument}: {raw!r}")
        value = key.parse(raw)
        if not key.kind.accepts(value):
            raise ConfigurationError(
                f"Argument -{key.argument} produced {type(value).__name__}, expected {key.kind.name}"
            )
        if self._initialized:
            key.set_value(value)
            self.logger.info(f"Key {key.name} set from argument -{key.argument}.")
        else:
            self._overrides[key.name] = value
            self.logger.info(f"Key {key.name} will be overridden by argument -{key.argument}.")

    def _apply_overrides(self) -> None:
        for name, value in self._overrides.items():
            self._keys[name].set_value(value)
            self.logger.info(f"Applied argument override for key: {name}")
        self._overrides.clear()

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise ConfigurationError(f"{self.name} is not yet initialized! Can't access config values before INIT.")

    def _key(self, name: str) -> ConfigurationKey:
        if name not in self._keys:
            raise KeyError(f"Key with name: {name} not found!")
        return self._keys[name]
