"""Logging and console output built on rich.

Modules log through ``get_logger(__name__)``. Entry points (the CLI and the
API server) may call ``setup_logging()`` once to route everything else, e.g.
uvicorn and strawberry, through the same handler. The console helpers at the
bottom are for user-facing CLI output, not for diagnostics.

Usage:
    from common.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Committed 3 file(s) to main")
    logger.warning("History chain broken at abc1234")
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# stdout carries command output, stderr carries diagnostics and errors
console = Console()
error_console = Console(stderr=True)


def _rich_handler(show_time: bool = False, show_path: bool = False) -> RichHandler:
    # Messages contain user paths and names, so rich markup stays off
    handler = RichHandler(
        console=error_console,
        show_time=show_time,
        show_path=show_path,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))
    return handler


def _root_configured() -> bool:
    return any(isinstance(h, RichHandler) for h in logging.getLogger().handlers)


def get_logger(
    name: str,
    level: str | None = None,
    show_time: bool = False,
    show_path: bool = False,
) -> logging.Logger:
    """Return the named logger, attaching a rich handler on first use.

    Args:
        name: Usually ``__name__``
        level: Level name; LOG_LEVEL (default INFO) when omitted
        show_time: Prefix records with the time
        show_path: Suffix records with the source location
    """
    logger = logging.getLogger(name)
    if logger.handlers or _root_configured():
        return logger

    if level is None:
        from common.env import env

        level = env.log_level()

    logger.setLevel(level.upper())
    logger.addHandler(_rich_handler(show_time=show_time, show_path=show_path))
    # Also reach root-level handlers, such as pytest's caplog
    logger.propagate = True
    return logger


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Install a rich handler on the root logger.

    LOG_LEVEL, when set, wins over ``level``. With ``log_file`` records are
    also appended to that file in plain text.
    """
    root = logging.getLogger()
    root.setLevel(os.getenv("LOG_LEVEL", level).upper())
    root.handlers.clear()
    root.addHandler(_rich_handler())

    # Loggers from get_logger() now defer to the root handler and level
    for existing in logging.root.manager.loggerDict.values():
        if not isinstance(existing, logging.Logger):
            continue
        own = [h for h in existing.handlers if isinstance(h, RichHandler)]
        if own:
            for handler in own:
                existing.removeHandler(handler)
            existing.setLevel(logging.NOTSET)

    if log_file:
        plain = logging.FileHandler(log_file)
        plain.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root.addHandler(plain)


def progress(message: str) -> None:
    console.print(message)


def success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def warning(message: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {message}")


def error(message: str) -> None:
    """Print to stderr with a red cross."""
    error_console.print(f"[red]✗[/red] {message}")
