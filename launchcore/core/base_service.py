from typing import FrozenSet, Iterable
from loguru import logger

from .lifecycle import ServiceState


class BaseService:
    """
    Base class for services driven by the ServiceManager.

    A service implements any subset of the phase hooks and lists the phases it
    wants to be called for. Hooks of phases missing from ``phases`` are never
    invoked, even if implemented.

        from launchcore.core.decorators import service

        @service(name="Installation Manager", phases=[ServiceState.PRE_INIT])
        class InstallationManager(BaseService):
            def pre_init(self):
                ...
    """
    _service_name: str = ""
    _service_phases: FrozenSet[ServiceState] = frozenset()

    def __init__(self, name: str = "", phases: Iterable[ServiceState] = ()):
        self._name = name or self._service_name or self.__class__.__name__
        self._phases = frozenset(phases) or self._service_phases
        self.logger = logger.bind(service=self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def phases(self) -> FrozenSet[ServiceState]:
        """Phases this service wants to be invoked for."""
        return self._phases

    def pre_init(self) -> None:
        pass

    def init(self) -> None:
        pass

    def post_init(self) -> None:
        pass

    def exit(self) -> None:
        pass

    def crash(self) -> None:
        pass

    def __repr__(self) -> str:
        phases = ", ".join(sorted(p.name for p in self._phases))
        return f"<{self.__class__.__name__} {self._name!r} [{phases}]>"
