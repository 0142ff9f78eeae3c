"""
Decorator Utilities for services.

Provides syntactic sugar for declaring service names and phases.
"""
from typing import Type, TypeVar, Optional, Iterable

from .lifecycle import ServiceState

T = TypeVar('T')


def service(name: Optional[str] = None, phases: Iterable[ServiceState] = ()):
    """
    Decorator to declare a class as a lifecycle service.

    Args:
        name: Service name (defaults to class name)
        phases: Phases the service wants its hooks invoked for

    Usage:
        @service(name="Updater", phases=[ServiceState.INIT, ServiceState.EXITED])
        class Updater(BaseService):
            def init(self):
                pass
    """
    declared = frozenset(phases)
    for phase in declared:
        if phase is ServiceState.NOT_STARTED:
            raise ValueError("NOT_STARTED is not a phase a service can run in")

    def decorator(cls: Type[T]) -> Type[T]:
        cls._service_name = name or cls.__name__
        cls._service_phases = declared
        return cls
    return decorator
