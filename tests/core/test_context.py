import pytest
from unittest.mock import MagicMock

from launchcore.core.base_service import BaseService
from launchcore.core.context import LauncherContext, managed_lifecycle
from launchcore.core.lifecycle import ServiceState


def test_create_registers_core_services(context):
    assert context.services.get("Logger Service") is context.log
    assert context.services.get("Configuration Conflict Prevention Service") is context.conflicts
    assert context.services.status is ServiceState.NOT_STARTED


def test_has_argument():
    context = LauncherContext.create(["-ForceConsole", "-threadcount:4"])
    assert context.has_argument("forceconsole")
    assert context.has_argument("-ThreadCount")
    assert not context.has_argument("forcegui")


def test_managed_lifecycle_runs_every_phase(context):
    with managed_lifecycle(context) as ctx:
        assert ctx.services.status is ServiceState.POST_INIT
        assert ctx.log.initialized

    assert context.services.status is ServiceState.EXITED


def test_managed_lifecycle_crashes_on_error(context):
    crash_hook = MagicMock()

    class Watcher(BaseService):
        def crash(self):
            crash_hook()

    context.services.register(Watcher("Watcher", [ServiceState.CRASHED]))

    with pytest.raises(RuntimeError):
        with managed_lifecycle(context):
            raise RuntimeError("boom")

    assert context.services.status is ServiceState.CRASHED
    crash_hook.assert_called_once()
