"""Command-line interface for vapeur."""

import sys
import logging
import argparse
import asyncio
import httpx
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

logger = logging.getLogger(__name__)

from vapeur import __version__
from vapeur.api.error_handler import RemoteAPIError
from vapeur.config.folders import FolderRegistry, NoSelectionMade
from vapeur.config.loader import load_config, ConfigError
from vapeur.config.validator import validate_config, ValidationError
from vapeur.gamelist.xml_codec import StoreWriteFailure
from vapeur.workflow.reconciler import CatalogCommitError
from vapeur.workflow.service import CatalogService

console = Console()


def create_parser() -> argparse.ArgumentParser:
    """Create and configure argument parser."""
    parser = argparse.ArgumentParser(
        prog='vapeur',
        description='Steam metadata and media sync for ES-DE',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Register an ES-DE folder
  vapeur add-folder ~/ES-DE

  # Show the Steam games of a folder
  vapeur list ~/ES-DE

  # Find the Steam app id of a game
  vapeur search "Half-Life 2"

  # Fill in metadata and download media for one game
  vapeur update ~/ES-DE ./Half-Life 2.bat 220
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=Path,
        metavar='PATH',
        help='Path to config.yaml (default: ./config.yaml if present)'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    subparsers.add_parser('folders', help='List registered ES-DE folders')

    add_folder = subparsers.add_parser('add-folder', help='Register an ES-DE folder')
    add_folder.add_argument('path', nargs='?', help='ES-DE root folder')

    list_cmd = subparsers.add_parser('list', help='List the Steam games of a folder')
    list_cmd.add_argument('folder', help='ES-DE root folder')

    search = subparsers.add_parser('search', help='Search the Steam store')
    search.add_argument('name', nargs='+', help='Game name')

    details = subparsers.add_parser('details', help='Show store details for an app id')
    details.add_argument('app_id', type=int, help='Steam app id')

    update = subparsers.add_parser('update', help='Update one game from the Steam store')
    update.add_argument('folder', help='ES-DE root folder')
    update.add_argument('game_path', help='Game path as listed (e.g. ./game.bat)')
    update.add_argument('app_id', type=int, help='Steam app id')

    return parser


def _setup_logging(config: dict) -> None:
    """
    Setup logging configuration from config.

    Args:
        config: Configuration dictionary
    """
    logging_config = config.get('logging', {})

    level_str = (logging_config.get('level') or 'INFO').upper()
    level = getattr(logging, level_str, logging.INFO)

    handlers = []

    if logging_config.get('console', True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
        handlers.append(console_handler)

    log_file = logging_config.get('file')
    if log_file:
        try:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path)
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            )
            handlers.append(file_handler)
        except OSError as e:
            print(f"Error: Could not create log file '{log_file}': {e}", file=sys.stderr)
            sys.exit(1)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # httpx logs every request URL at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.INFO)


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for vapeur CLI.

    Args:
        argv: Command-line arguments (default: sys.argv)

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        validate_config(config)
    except (ConfigError, ValidationError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    _setup_logging(config)

    try:
        return asyncio.run(run_command(config, args))
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        return 130
    except (NoSelectionMade, ConfigError, RemoteAPIError, CatalogCommitError, StoreWriteFailure) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
        return 1


async def run_command(config: dict, args: argparse.Namespace) -> int:
    """
    Run one CLI command (async).

    Args:
        config: Loaded configuration
        args: Parsed command-line arguments

    Returns:
        Exit code
    """
    registry = FolderRegistry(config['paths']['folders_file'])
    logger.debug(f"Running command '{args.command}'")

    async with httpx.AsyncClient(
        follow_redirects=True,
        headers={'User-Agent': f'vapeur/{__version__}'}
    ) as http_client:
        service = CatalogService(config, http_client, registry)

        if args.command == 'folders':
            folders = await service.list_folders()
            if not folders:
                console.print("No folders registered. Use 'vapeur add-folder PATH'.")
            for folder in folders:
                console.print(folder, soft_wrap=True)

        elif args.command == 'add-folder':
            folder = await service.add_folder(lambda: args.path)
            console.print(f"Registered {folder}", soft_wrap=True)

        elif args.command == 'list':
            entries = await service.list_catalog(args.folder)
            _print_catalog(entries)

        elif args.command == 'search':
            results = await service.search_remote(' '.join(args.name))
            table = Table(title="Steam store results")
            table.add_column("App ID", justify="right")
            table.add_column("Name")
            for result in results:
                table.add_row(str(result.app_id), result.name)
            console.print(table)

        elif args.command == 'details':
            details = await service.get_remote_details(args.app_id)
            _print_details(args.app_id, details)

        elif args.command == 'update':
            entry = await service.update_game(args.folder, args.game_path, args.app_id)
            _print_catalog([entry])

    return 0


def _print_catalog(entries) -> None:
    table = Table(title=f"{len(entries)} game(s)")
    table.add_column("Path")
    table.add_column("Name")
    table.add_column("Steam ID", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("Media")

    for entry in entries:
        media = [name for name, value in entry.metadata.asset_values().items() if value]
        table.add_row(
            entry.path,
            entry.info.name or "-",
            str(entry.metadata.steamid) if entry.metadata.steamid else "-",
            f"{entry.info.rating:.2f}" if entry.info.rating else "-",
            ", ".join(media) or "-",
        )
    console.print(table)


def _print_details(app_id: int, details: dict) -> None:
    summary = details.get('reviews_summary') or {}
    release = details.get('release_date') or {}

    table = Table(title=f"Steam app {app_id}", show_header=False)
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Name", details.get('name', ''))
    table.add_row("Release date", release.get('date', ''))
    table.add_row("Developers", ", ".join(details.get('developers') or []))
    table.add_row("Publishers", ", ".join(details.get('publishers') or []))
    table.add_row("Genres", ", ".join(g.get('description', '') for g in details.get('genres') or []))
    table.add_row("Reviews", summary.get('review_score_desc', 'n/a'))
    console.print(table)


if __name__ == '__main__':
    sys.exit(main())
