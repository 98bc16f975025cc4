"""Command-line entry point for the VNDB metadata provider.

This module provides:
- Command-line argument parsing for the ``search`` and ``get`` commands
- Service construction from the loaded configuration
- JSON output of normalized metadata and user-friendly error reporting
"""

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from vndb_provider import __version__
from vndb_provider.models import ProviderConfig
from vndb_provider.services.config import ConfigurationService
from vndb_provider.services.errors import get_error_service
from vndb_provider.services.image_store import FileImageStore
from vndb_provider.services.logging import setup_logging
from vndb_provider.services.provider import VndbMetadataProvider


log = structlog.stdlib.get_logger()


class ApplicationContext:
    """Container for the provider and its collaborators.

    Services are created lazily from the configuration and closed together
    by ``cleanup``.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        image_dir: Path | None = None,
    ) -> None:
        self._config_path: Path | None = config_path
        self._image_dir: Path | None = image_dir

        self._config_service: ConfigurationService | None = None
        self._config: ProviderConfig | None = None
        self._image_store: FileImageStore | None = None
        self._provider: VndbMetadataProvider | None = None

    @property
    def config_service(self) -> ConfigurationService:
        if self._config_service is None:
            self._config_service = ConfigurationService(config_path=self._config_path)
        return self._config_service

    @property
    def config(self) -> ProviderConfig:
        """Get the configuration, with command-line overrides applied."""
        if self._config is None:
            config = self.config_service.load_config()
            if self._image_dir is not None:
                config = replace(config, image_directory=self._image_dir)
            self._config = config
        return self._config

    @property
    def image_store(self) -> FileImageStore | None:
        """Get the image store, or None when no image directory is configured."""
        if self._image_store is None and self.config.image_directory is not None:
            self._image_store = FileImageStore(
                directory=self.config.image_directory,
                timeout=self.config.timeout,
                user_agent=self.config.user_agent,
            )
        return self._image_store

    @property
    def provider(self) -> VndbMetadataProvider:
        if self._provider is None:
            self._provider = VndbMetadataProvider.from_config(
                self.config,
                image_fetcher=self.image_store,
            )
        return self._provider

    async def cleanup(self) -> None:
        """Close HTTP connections."""
        if self._provider is not None:
            await self._provider.close()
        if self._image_store is not None:
            await self._image_store.close()
        log.debug("Application cleanup complete")


class ParsedArgs:
    """Type-safe container for parsed command-line arguments."""

    def __init__(
        self,
        command: str,
        value: str,
        config: Path | None,
        log_level: str | None,
        log_dir: Path | None,
        image_dir: Path | None,
    ) -> None:
        self.command: str = command
        self.value: str = value
        self.config: Path | None = config
        self.log_level: str | None = log_level
        self.log_dir: Path | None = log_dir
        self.image_dir: Path | None = image_dir


def parse_arguments(argv: list[str] | None = None) -> ParsedArgs:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="vndb-provider",
        description="Look up visual novel metadata on VNDB",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  vndb-provider search Clannad          Search visual novels by title
  vndb-provider get v4                  Fetch full metadata for one id
  vndb-provider --image-dir ./covers get v4   Also download the cover
        """
    )

    _ = parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    _ = parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: ~/.config/vndb-provider/config.json)"
    )

    _ = parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Set the logging level (default: log_level from the config file)"
    )

    _ = parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: console only)"
    )

    _ = parser.add_argument(
        "--image-dir",
        type=Path,
        default=None,
        help="Directory where cover images are downloaded (default: covers are not downloaded)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search visual novels by title")
    _ = search_parser.add_argument("query", help="Title or part of a title")

    get_parser = subparsers.add_parser("get", help="Fetch full metadata by VNDB id")
    _ = get_parser.add_argument("id", help="Visual novel id, for example v4")

    ns = parser.parse_args(argv)

    value: str = ns.query if ns.command == "search" else ns.id

    return ParsedArgs(
        command=ns.command,
        value=value,
        config=ns.config,
        log_level=ns.log_level,
        log_dir=ns.log_dir,
        image_dir=ns.image_dir,
    )


async def run_command(context: ApplicationContext, command: str, value: str) -> Any:
    """Run one provider operation and return JSON-serializable output."""
    try:
        if command == "search":
            results = await context.provider.search(value)
            return [result.to_dict() for result in results]
        metadata = await context.provider.get_by_provider_data_id_or_fail(value)
        return metadata.to_dict()
    finally:
        await context.cleanup()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    # Configured before the config file is read so its messages reach stderr
    logging_service = setup_logging(
        log_level=args.log_level or "WARNING",
        log_dir=args.log_dir
    )

    context = ApplicationContext(
        config_path=args.config,
        image_dir=args.image_dir,
    )
    if args.log_level is None:
        logging_service.set_level(context.config.log_level)

    log.info(
        "Starting VNDB provider",
        version=__version__,
        command=args.command,
        config_path=str(args.config) if args.config else "default",
        log_level=logging_service.log_level,
    )

    try:
        output = asyncio.run(run_command(context, args.command, args.value))
        print(json.dumps(output, indent=2, ensure_ascii=False))
        exit_code = 0

    except KeyboardInterrupt:
        log.info("Interrupted by user")
        exit_code = 130

    except Exception as e:
        error_service = get_error_service()
        friendly = error_service.handle_error(
            e,
            operation=args.command,
            component="cli",
            context={"value": args.value},
        )
        print(error_service.create_user_message(friendly), file=sys.stderr)
        exit_code = 1

    log.info("Exiting", exit_code=exit_code)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
