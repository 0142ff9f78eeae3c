"""
Configuration conflict prevention.

Every ConfigurationService registers itself here on construction. After all of
them loaded their files (POST_INIT), the tracked services are scanned for
overlapping files and key names. Argument bindings can't overlap, the
command registry rejects a second binding of the same argument.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, TYPE_CHECKING

from ..base_service import BaseService
from ..decorators import service
from ..lifecycle import ServiceState
from .key import ConfigurationError

if TYPE_CHECKING:
    from .service import ConfigurationService


class ConfigurationConflictError(ConfigurationError):
    """Two configuration services would write to the same file."""
    pass


@dataclass
class ConflictReport:
    """Result of a conflict scan. Values are the names of the involved services."""
    path_conflicts: Dict[Path, List[str]] = field(default_factory=dict)
    key_conflicts: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.path_conflicts or self.key_conflicts)


@service(name="Configuration Conflict Prevention Service", phases=[ServiceState.POST_INIT])
class ConfigurationConflictService(BaseService):
    """
    Detects conflicts between configuration services.

    Policy:
        - two services resolving to the same file is an error, their files would
          overwrite each other
        - the same key name in several services is reported as a warning
    """

    def __init__(self):
        super().__init__()
        self._tracked: List["ConfigurationService"] = []

    def track(self, config_service: "ConfigurationService") -> None:
        if config_service is None:
            raise ValueError("Can't track None configuration service!")
        self._tracked.append(config_service)

    @property
    def tracked(self) -> List["ConfigurationService"]:
        return list(self._tracked)

    def scan(self) -> ConflictReport:
        """Scan tracked services for overlaps."""
        paths = defaultdict(list)
        keys = defaultdict(list)

        for cfg in self._tracked:
            if cfg.has_file:
                paths[cfg.config_file.resolve()].append(cfg.name)
            for name in cfg.keys:
                keys[name].append(cfg.name)

        return ConflictReport(
            path_conflicts={p: owners for p, owners in paths.items() if len(owners) > 1},
            key_conflicts={k: owners for k, owners in keys.items() if len(owners) > 1},
        )

    def post_init(self) -> None:
        self.logger.info("Scanning configuration services for potential conflicts...")
        report = self.scan()

        for name, owners in report.key_conflicts.items():
            self.logger.warning(f"Key {name} is registered in multiple services: {', '.join(owners)}")

        if report.path_conflicts:
            for path, owners in report.path_conflicts.items():
                self.logger.error(f'Services {", ".join(owners)} share the configuration file "{path}"!')
            raise ConfigurationConflictError(
                f"{len(report.path_conflicts)} configuration file(s) are shared between services!"
            )

        self.logger.info(f"No blocking conflicts found between {len(self._tracked)} configuration services.")
