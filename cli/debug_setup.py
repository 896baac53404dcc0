"""Debug console setup for CLI"""

import logging
from rich.console import Console

import settings
from utils.debug_console import configure_logging, create_debug_console


def setup_debug_console(debug: bool) -> Console:
    """
    Configure logging and return the console the CLI prints to

    Args:
        debug: Whether debug mode is enabled

    Returns:
        Console instance (either regular or debug-enabled)
    """
    debug_logger = configure_logging(
        debug=debug,
        log_level=settings.LOG_LEVEL,
        log_file=settings.DEBUG_LOG_FILE,
    )
    console = create_debug_console(debug_enabled=debug, debug_logger=debug_logger)

    if debug_logger:
        debug_logger.debug("[CLI] ===== CLI SESSION STARTED =====")
        logging.getLogger(__name__).debug(f"API URL: {settings.API_URL}, callback port: {settings.CALLBACK_PORT}")
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {settings.DEBUG_LOG_FILE}[/yellow]")

    return console
