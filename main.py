"""Application entry point — wires services and launches the menu or a one-shot command."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from loguru import logger

from savehaven.cli.menu import Menu
from savehaven.config import get_config
from savehaven.context import AppContext
from savehaven.core.save_manager import SaveManager
from savehaven.core.transfer import FileTransfer
from savehaven.data.database import Database
from savehaven.data.repository import SaveRepository
from savehaven.errors import SaveHavenError, StorageError
from savehaven.i18n import set_language, t
from savehaven.logger import setup_logger
from savehaven.models.save_entry import NewSave
from savehaven.utils import parse_release_date


def create_context(data_dir: Path | None = None) -> AppContext:
    """Wire all services and return an AppContext."""
    config = get_config(data_dir)

    # Logger
    setup_logger(config.data_dir / "logs", config.console_log_level)

    # Storage
    database = Database(config.database_path)
    repository = SaveRepository(database)

    # Core services
    transfer = FileTransfer()
    save_manager = SaveManager(config, database, repository, transfer)

    return AppContext(
        config=config,
        database=database,
        repository=repository,
        transfer=transfer,
        save_manager=save_manager,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="savehaven",
        description="Catalogue game saves and copy them to and from a backup store.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding config.json, the database and backups",
    )
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("menu", help="Interactive menu (default)")
    sub.add_parser("list", help="List every game and its saves")

    add = sub.add_parser("add", help="Back up a save and record it")
    add.add_argument("title", help="Game title")
    add.add_argument("source", help="Save file or folder to back up")
    add.add_argument("--publisher", default="")
    add.add_argument("--release-date", default="", help="Release date, e.g. 2017-03-03")
    add.add_argument("--platform", default="")
    add.add_argument("--notes", default="")

    restore = sub.add_parser("restore", help="Restore a recorded save")
    restore.add_argument("save_id", type=int, help="Save id as shown by 'list'")
    restore.add_argument("--to", dest="destination", default=None, help="Destination path")

    return parser


def _list(ctx: AppContext) -> None:
    games = ctx.save_manager.list_games()
    if not games:
        print(t("list.empty"))
        return
    for game in games:
        print(
            t(
                "list.game",
                id=game.id,
                title=game.title,
                publisher=game.publisher or "-",
                release_date=game.release_label,
            )
        )
        for entry in ctx.save_manager.saves_for_game(game):
            print(
                t(
                    "list.save",
                    id=entry.save.id,
                    platform=entry.platform_name or "-",
                    path=entry.backup_path,
                )
            )


def run_command(ctx: AppContext, args: argparse.Namespace) -> int:
    """Dispatch one parsed command. Returns the exit status."""
    if args.command in (None, "menu"):
        return Menu(ctx.save_manager, ctx.config.date_formats).run()

    try:
        if args.command == "list":
            _list(ctx)
        elif args.command == "add":
            entry = ctx.save_manager.add_save(
                NewSave(
                    title=args.title,
                    source_path=args.source,
                    publisher=args.publisher,
                    release_date=parse_release_date(args.release_date, ctx.config.date_formats),
                    platform=args.platform,
                    notes=args.notes,
                )
            )
            print(t("add.done", title=entry.game.title, save_id=entry.save.id, path=entry.backup_path))
        elif args.command == "restore":
            entry = ctx.save_manager.get_entry(args.save_id)
            target = ctx.save_manager.restore_save(entry, args.destination)
            print(t("retrieve.restored", path=target))
    except StorageError:
        raise
    except SaveHavenError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)

    try:
        ctx = create_context(args.data_dir)
    except StorageError as e:
        logger.critical(str(e))
        print(t("error.storage", message=e), file=sys.stderr)
        return 1

    set_language(ctx.config.language)

    try:
        return run_command(ctx, args)
    except StorageError as e:
        logger.critical(str(e))
        print(t("error.storage", message=e), file=sys.stderr)
        return 1
    finally:
        ctx.close()


if __name__ == "__main__":
    sys.exit(main())
