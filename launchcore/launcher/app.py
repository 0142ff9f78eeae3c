"""
Launcher application.

Wires the core services together and drives them through the lifecycle.
"""
from pathlib import Path
from typing import Callable, List, Optional, Sequence, TextIO, Union

from loguru import logger

from .. import __version__
from ..core.commands import CommandConsole
from ..core.config import ConfigurationService
from ..core.context import LauncherContext
from ..core.logging import setup_logging
from ..core.logs import LIVE_LOG, LogService
from .commands import register_builtin_commands
from .settings import CONFIG_FILE, MainConfig, log_settings, register_main_configuration

log = logger.bind(service="Main")

FrontEnd = Callable[[LauncherContext, ConfigurationService], None]


class LauncherError(RuntimeError):
    """Launcher can't continue in the requested configuration."""
    pass


class LauncherApp:
    """
    Launcher entry point.

    Order of operations:
        register services -> PRE_INIT -> decode arguments -> INIT
        -> startup commands -> POST_INIT -> (interactive console | front-end) -> EXITED

    Any exception runs the CRASHED phase instead and makes run() return 1.

    Example:
        app = LauncherApp(sys.argv[1:])
        sys.exit(app.run())
    """

    def __init__(
        self,
        arguments: Sequence[str] = (),
        config_file: Union[str, Path, None] = CONFIG_FILE,
        log_file: Union[str, Path] = LIVE_LOG,
        front_end: Optional[FrontEnd] = None,
        stdin: Optional[TextIO] = None,
        output: Callable[[str], None] = print,
        console_logging: bool = True,
    ):
        """
        Args:
            arguments: Command line tokens
            config_file: Main configuration file, None for in-memory configuration
            log_file: Live log file
            front_end: GUI entry point, called after POST_INIT in GUI mode
            stdin: Input of the interactive console (defaults to sys.stdin)
            output: Console output
            console_logging: Mirror warnings to stderr
        """
        self.context = LauncherContext.create(arguments, LogService(log_file))
        self.config_file = config_file
        self.front_end = front_end
        self.config: Optional[ConfigurationService] = None
        self._stdin = stdin
        self._output = output
        self._console_logging = console_logging

    def run(self) -> int:
        """
        Run the launcher.

        Returns:
            Exit code, 0 on success and 1 after a crash
        """
        context = self.context
        handlers: List[int] = setup_logging(
            context.log,
            debug_mode=context.has_argument("debug"),
            console=self._console_logging,
        )
        try:
            log.info(f"launchcore {__version__}")
            self._register_services()

            context.services.run_pre_init()
            report = context.commands.decode_arguments(context.arguments, run_commands=False)
            for failure in report.failures:
                log.error(f'Argument "{failure.token}" was not applied! {failure}')

            context.services.run_init()
            # Startup commands need initialized configuration services
            for result in context.commands.run_queued(report).commands:
                if not result.ok:
                    log.error(f'Startup command "{result.name}" failed! {result}')

            gui = MainConfig.is_gui(self.config)
            if gui and self.front_end is None:
                raise LauncherError(
                    "GUI mode is not available yet! Launch the application from the command line "
                    "or pass -forceconsole."
                )

            context.services.run_post_init()
            if MainConfig.INTERACTIVE_CONSOLE.get(self.config):
                CommandConsole(context.commands, self._stdin, self._output).run()
            elif gui:
                self.front_end(context, self.config)

            context.services.run_exit()
            return 0

        except Exception as e:
            if not context.log.initialized:
                context.log.crash_init()
            log.opt(exception=e).critical("launchcore crashed!")
            self._output(
                f'launchcore crashed! Exception: "{e}"! '
                f"For more details, check the log file at: \n{context.log.log_path}"
            )
            context.services.run_crash()
            return 1

        finally:
            for handler in handlers:
                logger.remove(handler)

    def _register_services(self) -> None:
        self.config = register_main_configuration(self.context, self.config_file)
        self.context.log.settings_provider = lambda: log_settings(self.config)
        register_builtin_commands(self.context.commands, self.config, self._output)
