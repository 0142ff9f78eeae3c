import pytest

from launchcore.core.config import (
    ConfigurationError,
    ConfigurationKey,
    ConfigurationService,
    parsers,
    read_config,
    render_config,
)
from launchcore.core.context import LauncherContext
from launchcore.core.lifecycle import ServicePhaseError
from launchcore.core.logs import LogService

EXPECTED_FILE = """\
# Amount of download threads.
# Argument representation: -threadcount
Thread-Count: 16

Mode: CLI

# Argument representation: -updater
Updater: true
"""


def make_config(context, path):
    config = ConfigurationService(context, "Test Configuration", path)
    config.register_key(ConfigurationKey(
        "Thread-Count", lambda: 16, parser=parsers.integer(1, 128),
        argument="threadcount", description="Amount of download threads.",
    ))
    config.register_key(ConfigurationKey(
        "Mode", lambda: "CLI", parser=parsers.choice("CLI", "GUI"), verifier=parsers.one_of("CLI", "GUI"),
    ))
    config.register_key(ConfigurationKey("Updater", lambda: True, parser=parsers.boolean(), argument="updater"))
    context.services.register(config)
    return config


def start(context):
    context.services.run_pre_init()
    context.services.run_init()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "config" / "test.yaml"


# --- Registration Tests ---
def test_register_key_rejects_duplicates(context, config_path):
    config = make_config(context, config_path)
    with pytest.raises(ValueError):
        config.register_key(ConfigurationKey("Mode", lambda: "GUI"))


def test_register_key_only_before_pre_init(context, config_path):
    config = make_config(context, config_path)
    context.services.run_pre_init()
    with pytest.raises(ConfigurationError):
        config.register_key(ConfigurationKey("Late", lambda: 1))


def test_register_key_binds_argument(context, config_path):
    make_config(context, config_path)
    assert "threadcount" in context.commands.arguments
    assert "updater" in context.commands.arguments


def test_service_tracked_for_conflicts(context, config_path):
    config = make_config(context, config_path)
    assert config in context.conflicts.tracked


def test_keys_is_a_copy(context, config_path):
    config = make_config(context, config_path)
    config.keys.clear()
    assert list(config.keys) == ["Thread-Count", "Mode", "Updater"]


# --- Access Tests ---
def test_values_unavailable_before_init(context, config_path):
    config = make_config(context, config_path)
    context.services.run_pre_init()

    with pytest.raises(ConfigurationError):
        config.get_value("Mode")
    with pytest.raises(ConfigurationError):
        config.set_value("Mode", "GUI")


def test_get_and_set_value(context, config_path):
    config = make_config(context, config_path)
    start(context)

    assert config.get_value("Thread-Count") == 16
    config.set_value("Thread-Count", 32)
    assert config.get_value("Thread-Count") == 32
    with pytest.raises(KeyError):
        config.get_value("Missing")
    with pytest.raises(ValueError):
        config.set_value("Mode", None)


def test_description(context, config_path):
    config = make_config(context, config_path)
    assert config.description("Thread-Count") == "Amount of download threads."
    assert config.description("Mode") is None


# --- File Tests ---
def test_pre_init_generates_file(context, config_path):
    make_config(context, config_path)
    context.services.run_pre_init()

    assert config_path.read_text(encoding="utf-8") == EXPECTED_FILE


def test_generate_load_generate_round_trip(tmp_path, config_path):
    first = LauncherContext.create([], LogService(tmp_path / "first.log"))
    make_config(first, config_path)
    start(first)
    generated = config_path.read_text(encoding="utf-8")

    second = LauncherContext.create([], LogService(tmp_path / "second.log"))
    config = make_config(second, config_path)
    start(second)

    assert config_path.read_text(encoding="utf-8") == generated
    assert render_config(config.keys.values()) == generated


def test_values_loaded_from_file(context, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(EXPECTED_FILE.replace("Thread-Count: 16", "Thread-Count: 4"), encoding="utf-8")
    config = make_config(context, config_path)
    start(context)

    assert config.get_value("Thread-Count") == 4
    assert "Thread-Count: 4" in config_path.read_text(encoding="utf-8")


@pytest.mark.parametrize("broken", [
    EXPECTED_FILE.replace("# Argument representation: -updater\nUpdater: true\n", ""),
    EXPECTED_FILE + "\nUnknown-Key: 1\n",
    EXPECTED_FILE.replace("Thread-Count: 16", "Thread-Count: 500"),
    EXPECTED_FILE.replace("Mode: CLI", "Mode: TUI"),
    "- not\n- a mapping\n",
    "Thread-Count: [unclosed\n",
])
def test_invalid_file_is_regenerated(context, config_path, broken):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(broken, encoding="utf-8")
    config = make_config(context, config_path)
    start(context)

    assert config.initialized
    assert config_path.read_text(encoding="utf-8") == EXPECTED_FILE


def test_regeneration_keeps_valid_values(context, config_path):
    config_path.parent.mkdir(parents=True)
    config_path.write_text(
        EXPECTED_FILE.replace("Thread-Count: 16", "Thread-Count: 8") + "\nUnknown-Key: 1\n",
        encoding="utf-8",
    )
    config = make_config(context, config_path)
    start(context)

    assert config.get_value("Thread-Count") == 8
    assert read_config(config_path) == {"Thread-Count": 8, "Mode": "CLI", "Updater": True}


def test_init_fails_when_file_vanished(context, config_path):
    make_config(context, config_path)
    context.services.run_pre_init()
    config_path.unlink()

    with pytest.raises(ServicePhaseError) as exc_info:
        context.services.run_init()
    assert isinstance(exc_info.value.__cause__, ConfigurationError)


def test_in_memory_service(context):
    config = make_config(context, None)
    start(context)

    assert not config.has_file
    assert config.get_value("Mode") == "CLI"
    with pytest.raises(ConfigurationError):
        config.save()


def test_save_rewrites_file(context, config_path):
    config = make_config(context, config_path)
    start(context)

    config.set_value("Updater", False)
    config.save()

    assert read_config(config_path)["Updater"] is False


def test_set_value_from_raw(context, config_path):
    config = make_config(context, config_path)
    start(context)

    assert config.set_value_from_raw("Mode", "gui") == "GUI"
    with pytest.raises(ConfigurationError):
        config.set_value_from_raw("Mode", "tui")


# --- PRE_INIT Tests ---
def test_pre_init_resets_changed_defaults(context, log_records):
    defaults = iter(["first", "second"])
    config = ConfigurationService(context, "Defaults", None)
    config.register_key(ConfigurationKey("Name", lambda: next(defaults)))

    config.pre_init()
    config.init()

    assert config.get_value("Name") == "second"
    assert any(level == "WARNING" and "Name" in message for level, _, message in log_records)


def test_pre_init_keeps_identical_default(context, log_records):
    shared = ["a"]
    config = ConfigurationService(context, "Defaults", None)
    config.register_key(ConfigurationKey("Items", lambda: shared))

    config.pre_init()
    config.init()

    assert config.get_value("Items") is shared
    assert not any(level == "WARNING" for level, _, _ in log_records)


# --- Argument Tests ---
def test_argument_override_applied_after_init(context, config_path):
    config = make_config(context, config_path)
    context.services.run_pre_init()

    report = context.commands.decode_arguments(["-threadcount:4", "-updater:off"])
    assert report.ok

    context.services.run_init()
    assert config.get_value("Thread-Count") == 4
    assert config.get_value("Updater") is False
    # overrides are not persisted
    assert read_config(config_path)["Thread-Count"] == 16


def test_invalid_argument_is_reported(context, config_path):
    config = make_config(context, config_path)
    context.services.run_pre_init()

    report = context.commands.decode_arguments(["-threadcount:999"])
    context.services.run_init()

    assert not report.ok
    assert report.failures[0].name == "threadcount"
    assert config.get_value("Thread-Count") == 16


def test_argument_after_init_applies_immediately(context, config_path):
    config = make_config(context, config_path)
    start(context)

    context.commands.decode_arguments(["-threadcount:64"])
    assert config.get_value("Thread-Count") == 64
