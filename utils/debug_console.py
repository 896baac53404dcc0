"""Debug logging and console capture for cloud-cli.

With ``--debug`` every log record goes to an append-only debug log file and
whatever the CLI prints through Rich is mirrored there as plain text, so a
single file shows what the user saw next to what the code did.
"""

import io
import logging
import os
import re
from typing import Optional
from rich.console import Console as RichConsole

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


class DebugCapturingConsole(RichConsole):
    """Rich Console that also writes a plain-text copy of its output to a logger"""

    def __init__(self, debug_logger: Optional[logging.Logger] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.debug_logger = debug_logger
        self._log_prefix = "[CONSOLE] "

    def print(self, *objects, **kwargs):
        super().print(*objects, **kwargs)

        if self.debug_logger and self.debug_logger.isEnabledFor(logging.DEBUG):
            plain_text = self._render_to_plain_text(*objects, **kwargs)
            if plain_text.strip():
                self.debug_logger.debug(f"{self._log_prefix}{plain_text}")

    def _render_to_plain_text(self, *objects, **kwargs) -> str:
        """Render objects the way print() would, minus markup and ANSI codes"""
        buffer = io.StringIO()
        temp_console = RichConsole(
            file=buffer,
            force_terminal=False,
            width=self.width,
            legacy_windows=False
        )
        temp_console.print(*objects, **kwargs)
        return _ANSI_ESCAPE.sub('', buffer.getvalue()).rstrip()


def create_debug_console(debug_enabled: bool = False,
                         debug_logger: Optional[logging.Logger] = None) -> RichConsole:
    """Return a capturing console in debug mode, a plain Rich console otherwise"""
    if debug_enabled and debug_logger:
        return DebugCapturingConsole(debug_logger=debug_logger)
    return RichConsole()


def setup_debug_logger(log_file: str) -> logging.Logger:
    """Set up the dedicated logger that receives captured console output"""
    logger = logging.getLogger("cloud_cli.console")
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(message)s'))
    logger.addHandler(file_handler)

    # Root already writes to the same file in debug mode
    logger.propagate = False

    return logger


def configure_logging(debug: bool = False, log_level: str = "warning",
                      log_file: str = "cloud_cli_debug.log") -> Optional[logging.Logger]:
    """Configure root logging for a CLI run

    Args:
        debug: Append DEBUG records to ``log_file`` and capture console output
        log_level: Level used for stderr logging when not in debug mode
        log_file: Debug log path

    Returns:
        The console capture logger in debug mode, None otherwise
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if not debug:
        level = getattr(logging, str(log_level).upper(), logging.WARNING)
        root_logger.setLevel(level)
        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(formatter)
        root_logger.addHandler(stream_handler)
        return None

    root_logger.setLevel(logging.DEBUG)

    log_path = os.path.abspath(log_file)
    file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # httpx logs every request line at INFO; keep the terminal readable
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logging.getLogger(__name__).info(f"Debug logging enabled - appending to {log_path}")
    return setup_debug_logger(log_path)
