"""
Configuration file format.

Files are YAML documents with one top-level entry per key, in registration
order. Each entry may be preceded by comment lines describing the key and
naming the command line argument bound to it.
"""
from pathlib import Path
from typing import Any, Dict, Iterable

import yaml

from .key import ConfigurationError, ConfigurationKey

ARGUMENT_COMMENT = "Argument representation: -"


class ConfigurationFormatError(ConfigurationError):
    """The configuration file is not a readable mapping."""
    pass


def render_entry(key: ConfigurationKey) -> str:
    lines = []
    if key.description:
        lines.extend(f"# {line}".rstrip() for line in key.description.splitlines())
    if key.argument:
        lines.append(f"# {ARGUMENT_COMMENT}{key.argument}")
    dumped = yaml.safe_dump(
        {key.name: key.value},
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    lines.append(dumped.rstrip("\n"))
    return "\n".join(lines)


def render_config(keys: Iterable[ConfigurationKey]) -> str:
    """
    Serialize keys into the commented configuration format.

    Args:
        keys: Keys in the order they should appear

    Returns:
        Text of the configuration file
    """
    return "\n\n".join(render_entry(key) for key in keys) + "\n"


def write_config(path: Path, keys: Iterable[ConfigurationKey]) -> Path:
    """
    Create a new configuration file.

    Raises:
        FileExistsError: If the file already exists
    """
    path = Path(path).absolute()
    if path.exists():
        raise FileExistsError(f"Specified location already exists! ({path})")
    path.parent.mkdir(parents=True, exist_ok=True)
    text = render_config(keys)
    with open(path, "x", encoding="utf-8") as f:
        f.write(text)
    return path


def read_config(path: Path) -> Dict[str, Any]:
    """
    Read a configuration file into a flat name -> raw value mapping.

    Raises:
        ConfigurationFormatError: If the file isn't valid YAML or isn't a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFormatError(f"Error parsing configuration file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationFormatError(
            f"Configuration file '{path}' has to be a mapping, found {type(data).__name__}"
        )
    return {str(name): value for name, value in data.items()}
