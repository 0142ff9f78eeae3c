import pytest
from unittest.mock import MagicMock

from launchcore.core.base_service import BaseService
from launchcore.core.decorators import service
from launchcore.core.lifecycle import (
    LifecycleError,
    ServiceManager,
    ServicePhaseError,
    ServiceState,
)


class RecordingService(BaseService):
    def __init__(self, name, phases, calls):
        super().__init__(name, phases)
        self.calls = calls

    def pre_init(self):
        self.calls.append((self.name, "pre_init"))

    def init(self):
        self.calls.append((self.name, "init"))

    def post_init(self):
        self.calls.append((self.name, "post_init"))

    def exit(self):
        self.calls.append((self.name, "exit"))

    def crash(self):
        self.calls.append((self.name, "crash"))


class FailingService(BaseService):
    def __init__(self, name, phases):
        super().__init__(name, phases)

    def init(self):
        raise ValueError("broken init")

    def crash(self):
        raise ValueError("broken crash")


# --- Registration Tests ---
def test_register_and_get():
    manager = ServiceManager()
    svc = BaseService("Updater")
    manager.register(svc)

    assert manager.get("Updater") is svc
    assert manager.get("Updater", BaseService) is svc
    assert "Updater" in manager.services


def test_register_rejects_none_and_duplicates():
    manager = ServiceManager()
    manager.register(BaseService("A"))

    with pytest.raises(ValueError):
        manager.register(None)
    with pytest.raises(LifecycleError):
        manager.register(BaseService("A"))


def test_get_missing_and_wrong_type():
    manager = ServiceManager()
    manager.register(BaseService("A"))

    with pytest.raises(KeyError):
        manager.get("B")
    with pytest.raises(TypeError):
        manager.get("A", RecordingService)


def test_services_view_is_read_only():
    manager = ServiceManager()
    manager.register(BaseService("A"))

    with pytest.raises(TypeError):
        manager.services["B"] = BaseService("B")


def test_registration_closed_after_post_init():
    manager = ServiceManager()
    manager.run_pre_init()
    manager.register(BaseService("during-pre-init"))
    manager.run_init()
    manager.register(BaseService("during-init"))
    manager.run_post_init()

    with pytest.raises(LifecycleError):
        manager.register(BaseService("late"))


def test_registration_does_not_invoke_hooks():
    calls = []
    manager = ServiceManager()
    manager.register(RecordingService("A", ServiceState, calls))
    assert calls == []


# --- Phase Tests ---
def test_phase_invocation_respects_declared_phases():
    calls = []
    manager = ServiceManager()
    manager.register(RecordingService("A", [ServiceState.PRE_INIT, ServiceState.INIT], calls))
    manager.register(RecordingService("B", [ServiceState.INIT], calls))

    manager.run_pre_init()
    manager.run_init()

    assert sorted(calls) == [("A", "init"), ("A", "pre_init"), ("B", "init")]
    assert manager.status is ServiceState.INIT


def test_full_lifecycle_order():
    calls = []
    manager = ServiceManager()
    manager.register(RecordingService("A", list(ServiceState)[1:5], calls))

    manager.run_pre_init()
    manager.run_init()
    manager.run_post_init()
    manager.run_exit()

    assert [c[1] for c in calls] == ["pre_init", "init", "post_init", "exit"]
    assert manager.status is ServiceState.EXITED
    assert manager.is_finished


def test_init_before_pre_init_fails_without_side_effects():
    calls = []
    manager = ServiceManager()
    manager.register(RecordingService("A", [ServiceState.INIT], calls))

    with pytest.raises(LifecycleError):
        manager.run_init()

    assert manager.status is ServiceState.NOT_STARTED
    assert calls == []


def test_phase_cannot_run_twice():
    manager = ServiceManager()
    manager.run_pre_init()
    with pytest.raises(LifecycleError):
        manager.run_pre_init()


def test_exit_requires_post_init():
    manager = ServiceManager()
    manager.run_pre_init()
    manager.run_init()
    with pytest.raises(LifecycleError):
        manager.run_exit()
    assert manager.status is ServiceState.INIT


def test_not_started_is_not_a_phase():
    with pytest.raises(LifecycleError):
        ServiceManager().run_phase(ServiceState.NOT_STARTED)


def test_failing_hook_is_fatal_outside_crash():
    manager = ServiceManager()
    manager.register(FailingService("Broken", [ServiceState.INIT]))
    manager.run_pre_init()

    with pytest.raises(ServicePhaseError) as exc_info:
        manager.run_init()

    assert exc_info.value.service_name == "Broken"
    assert exc_info.value.phase is ServiceState.INIT
    assert isinstance(exc_info.value.__cause__, ValueError)


def test_crash_runs_every_service_despite_failures():
    calls = []
    manager = ServiceManager()
    manager.register(FailingService("Broken", [ServiceState.CRASHED]))
    manager.register(RecordingService("A", [ServiceState.CRASHED], calls))

    manager.run_crash()

    assert calls == [("A", "crash")]
    assert manager.status is ServiceState.CRASHED


def test_crash_allowed_from_any_state():
    manager = ServiceManager()
    manager.run_pre_init()
    manager.run_init()
    manager.run_crash()
    assert manager.status is ServiceState.CRASHED


def test_hooks_called_on_mocks():
    svc = MagicMock()
    svc.name = "Mocked"
    svc.phases = frozenset([ServiceState.PRE_INIT])
    manager = ServiceManager()
    manager.register(svc)

    manager.run_pre_init()

    svc.pre_init.assert_called_once()
    svc.init.assert_not_called()


# --- Decorator Tests ---
def test_service_decorator_sets_name_and_phases():
    @service(name="Installation Manager", phases=[ServiceState.INIT])
    class InstallationManager(BaseService):
        pass

    svc = InstallationManager()
    assert svc.name == "Installation Manager"
    assert svc.phases == frozenset([ServiceState.INIT])


def test_service_decorator_rejects_not_started():
    with pytest.raises(ValueError):
        service(phases=[ServiceState.NOT_STARTED])


def test_undecorated_service_defaults():
    class Plain(BaseService):
        pass

    svc = Plain()
    assert svc.name == "Plain"
    assert svc.phases == frozenset()


def test_undeclared_post_init_hook_not_invoked():
    calls = []
    manager = ServiceManager()
    manager.register(RecordingService("A", [ServiceState.PRE_INIT, ServiceState.POST_INIT], calls))
    manager.register(RecordingService("B", [ServiceState.PRE_INIT], calls))

    manager.run_pre_init()
    manager.run_init()
    manager.run_post_init()

    assert sorted(calls) == [("A", "post_init"), ("A", "pre_init"), ("B", "pre_init")]
