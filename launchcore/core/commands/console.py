"""
Interactive command console.

Reads command lines from a stream and decodes them through the registry, which
is where runtime-only commands are meant to be used.
"""
import sys
from typing import Callable, List, Optional, TextIO

from loguru import logger

from .registry import CommandRegistry, DecodeResult

log = logger.bind(service="Console")

EXIT_WORDS = ("exit", "quit")


class CommandConsole:
    """
    Read-decode-print loop over a command registry.

    Usage:
        console = CommandConsole(registry)
        console.run()  # until "exit", "quit" or end of input
    """

    def __init__(
        self,
        registry: CommandRegistry,
        stream: Optional[TextIO] = None,
        output: Callable[[str], None] = print,
        prompt: str = "> ",
    ):
        self._registry = registry
        self._stream = stream
        self._output = output
        self._prompt = prompt

    def run(self) -> List[DecodeResult]:
        """
        Run until an exit word or end of input.

        Returns:
            Results of every decoded line, in order
        """
        stream = self._stream or sys.stdin
        results: List[DecodeResult] = []
        log.info("Interactive console started.")

        while True:
            if self._prompt and stream.isatty():
                self._output(self._prompt)
            line = stream.readline()
            if not line:
                break
            line = line.strip()
            if not line:
                continue
            if line.lower() in EXIT_WORDS:
                break
            result = self._registry.decode(line)
            results.append(result)
            self._output(str(result))

        log.info(f"Interactive console closed after {len(results)} command(s).")
        return results
