"""
Service Lifecycle State Machine.

Drives every registered service through the fixed startup and shutdown phases.
"""
from enum import Enum
from typing import Dict, Mapping, Optional, Type, TypeVar, TYPE_CHECKING
from types import MappingProxyType
from loguru import logger

if TYPE_CHECKING:
    from .base_service import BaseService

T = TypeVar("T")

log = logger.bind(service="Service Manager")


class ServiceState(Enum):
    """Service lifecycle states."""
    NOT_STARTED = "not_started"
    PRE_INIT = "pre_init"
    INIT = "init"
    POST_INIT = "post_init"
    EXITED = "exit"
    CRASHED = "crash"


class LifecycleError(RuntimeError):
    """Exception raised for invalid lifecycle transitions."""
    pass


class ServicePhaseError(LifecycleError):
    """A service hook failed during a phase that treats failures as fatal."""

    def __init__(self, service_name: str, phase: ServiceState):
        super().__init__(
            f"Failed {phase.name} of service: {service_name}! "
            f"Service initialization exceptions are considered FATAL."
        )
        self.service_name = service_name
        self.phase = phase


class ServiceManager:
    """
    Holds registered services and advances them through the lifecycle phases.

    Order of operations:
        PRE_INIT  - crucial initialization, as early as possible
        INIT      - main initialization
        POST_INIT - work that needs every service initialized
        EXITED    - regular shutdown
        CRASHED   - unexpected shutdown, runs instead of EXITED

    Usage:
        manager = ServiceManager()
        manager.register(my_service)
        manager.run_pre_init()
        manager.run_init()
    """

    # Phase -> state required before the phase may run (None: any state)
    PREREQUISITES = {
        ServiceState.PRE_INIT: ServiceState.NOT_STARTED,
        ServiceState.INIT: ServiceState.PRE_INIT,
        ServiceState.POST_INIT: ServiceState.INIT,
        ServiceState.EXITED: ServiceState.POST_INIT,
        ServiceState.CRASHED: None,
    }

    HOOKS = {
        ServiceState.PRE_INIT: "pre_init",
        ServiceState.INIT: "init",
        ServiceState.POST_INIT: "post_init",
        ServiceState.EXITED: "exit",
        ServiceState.CRASHED: "crash",
    }

    CLOSED_FOR_REGISTRATION = (ServiceState.POST_INIT, ServiceState.EXITED, ServiceState.CRASHED)

    def __init__(self):
        self._state = ServiceState.NOT_STARTED
        self._services: Dict[str, "BaseService"] = {}

    @property
    def status(self) -> ServiceState:
        """Get current lifecycle state."""
        return self._state

    @property
    def services(self) -> Mapping[str, "BaseService"]:
        """Read-only view of registered services."""
        return MappingProxyType(self._services)

    def register(self, service: "BaseService") -> None:
        """
        Register a service.

        Args:
            service: Object implementing the service hooks

        Raises:
            LifecycleError: If registration is closed or the name is taken
        """
        if service is None:
            raise ValueError("You can't register a None service!")
        if self._state in self.CLOSED_FOR_REGISTRATION:
            raise LifecycleError(f"You can't register new services after POST_INIT! (state: {self._state.name})")
        if service.name in self._services:
            raise LifecycleError(f"Service '{service.name}' is already registered!")

        self._services[service.name] = service
        log.info(f"Registered service: {service.name}")

    def get(self, name: str, expected_type: Optional[Type[T]] = None) -> T:
        """
        Get a registered service by name.

        Args:
            name: Service name
            expected_type: Optional class the service must be an instance of

        Raises:
            KeyError: If no service with that name is registered
            TypeError: If the service is not an instance of expected_type
        """
        if name not in self._services:
            raise KeyError(f"Service under name: {name} was not found!")
        service = self._services[name]
        if expected_type is not None and not isinstance(service, expected_type):
            raise TypeError(f"Service {name} is {type(service).__name__}, not {expected_type.__name__}")
        return service

    def can_run(self, phase: ServiceState) -> bool:
        """Check whether the phase's prerequisite state is met."""
        if phase not in self.PREREQUISITES:
            return False
        required = self.PREREQUISITES[phase]
        return required is None or self._state == required

    def run_phase(self, phase: ServiceState) -> None:
        """
        Run one lifecycle phase for every service that declared it.

        Args:
            phase: Phase to run

        Raises:
            LifecycleError: If the phase can't run from the current state
            ServicePhaseError: If a hook fails outside of the CRASHED phase
        """
        if phase not in self.PREREQUISITES:
            raise LifecycleError(f"{phase.name} can't be run as a phase!")
        if not self.can_run(phase):
            raise LifecycleError(f"Can't run {phase.name} of services when status is {self._state.name}")

        old_state = self._state
        self._state = phase
        log.debug(f"Lifecycle: {old_state.value} -> {phase.value}")

        tolerant = phase is ServiceState.CRASHED
        hook_name = self.HOOKS[phase]
        for name, service in list(self._services.items()):
            if phase not in service.phases:
                continue
            log.info(f'Running phase "{phase.name}" of service: {name}')
            try:
                getattr(service, hook_name)()
            except Exception as e:
                if not tolerant:
                    raise ServicePhaseError(name, phase) from e
                log.opt(exception=e).error(
                    f"Failed {phase.name} of service: {name}! "
                    f"This exception is being ignored, but it might cause issues later on!"
                )

        log.info(f"{phase.name} phase of services finished.")

    def run_pre_init(self) -> None:
        self.run_phase(ServiceState.PRE_INIT)

    def run_init(self) -> None:
        self.run_phase(ServiceState.INIT)

    def run_post_init(self) -> None:
        self.run_phase(ServiceState.POST_INIT)

    def run_exit(self) -> None:
        self.run_phase(ServiceState.EXITED)

    def run_crash(self) -> None:
        self.run_phase(ServiceState.CRASHED)

    # Convenience properties
    @property
    def is_finished(self) -> bool:
        return self._state in (ServiceState.EXITED, ServiceState.CRASHED)
