import pytest
from loguru import logger

from launchcore.core.context import LauncherContext
from launchcore.core.logs import LogService


@pytest.fixture
def log_service(tmp_path):
    return LogService(tmp_path / "launcher.log")


@pytest.fixture
def context(log_service):
    return LauncherContext.create([], log_service)


@pytest.fixture
def log_records():
    """Collect loguru messages as (level, service, message) for the duration of a test."""
    records = []

    def sink(message):
        record = message.record
        records.append((record["level"].name, record["extra"].get("service"), record["message"]))

    handler = logger.add(sink, level="DEBUG", format="{message}")
    yield records
    logger.remove(handler)
