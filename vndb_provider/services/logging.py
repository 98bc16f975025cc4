"""structlog setup for the VNDB metadata provider.

Events are rendered by structlog and handed to the stdlib root logger, which
owns the level and the handlers. Console output always goes to stderr since
stdout carries command results.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

DEV_CONSOLE_FORMAT = "%(asctime)s [%(levelname)8s] %(name)s: %(message)s"

# (file name, max bytes, backups)
APP_LOG = ("app.log", 10 * 1024 * 1024, 5)
ERROR_LOG = ("error.log", 5 * 1024 * 1024, 3)


def _level_number(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def _rotating_handler(log_dir: Path, spec: tuple[str, int, int]) -> logging.Handler:
    name, max_bytes, backups = spec
    handler = logging.handlers.RotatingFileHandler(
        filename=log_dir / name,
        maxBytes=max_bytes,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


class LoggingService:
    """Owns the root logger's handlers and level for one process."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
        console: bool = True,
    ) -> None:
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.console = console
        self.is_development = os.getenv("ENVIRONMENT", "development") == "development"
        # Handlers whose threshold follows ``log_level``
        self._leveled_handlers: list[logging.Handler] = []

    def configure(self) -> None:
        root = logging.getLogger()
        root.handlers.clear()
        self._leveled_handlers = []

        if self.console:
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(
                logging.Formatter(DEV_CONSOLE_FORMAT, datefmt="%H:%M:%S")
                if self.is_development
                else logging.Formatter("%(message)s")
            )
            self._leveled_handlers.append(console)
            root.addHandler(console)

        if self.log_dir:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            app_handler = _rotating_handler(self.log_dir, APP_LOG)
            self._leveled_handlers.append(app_handler)
            root.addHandler(app_handler)

            error_handler = _rotating_handler(self.log_dir, ERROR_LOG)
            error_handler.setLevel(logging.ERROR)
            root.addHandler(error_handler)

        self.set_level(self.log_level)

        structlog.configure(
            processors=self._processors(),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def set_level(self, log_level: str) -> None:
        """Change the minimum level without rebuilding handlers."""
        self.log_level = log_level.upper()
        level = _level_number(self.log_level)

        logging.getLogger().setLevel(level)
        for handler in self._leveled_handlers:
            handler.setLevel(level)

        # httpx logs every request at INFO; our client already does
        logging.getLogger("httpx").setLevel(max(level, logging.WARNING))

    def _processors(self) -> list[Any]:
        processors: list[Any] = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]
        # JSON whenever logs may end up in files or a collector
        if self.is_development and not self.log_dir:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))
        else:
            processors.append(structlog.processors.JSONRenderer())
        return processors


def setup_logging(
    log_level: str = "INFO",
    log_dir: Path | None = None,
    environment: str | None = None,
    console: bool = True,
) -> LoggingService:
    """Configure logging for the process and return the service.

    ``environment`` overrides the ``ENVIRONMENT`` variable, which selects
    the console renderer (development) or JSON (anything else).
    """
    if environment:
        os.environ["ENVIRONMENT"] = environment

    service = LoggingService(log_level=log_level, log_dir=log_dir, console=console)
    service.configure()
    return service
