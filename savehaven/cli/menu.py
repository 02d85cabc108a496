"""Interactive text menu — add, retrieve and exit."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from loguru import logger

from savehaven.errors import ConstraintError, NotFoundError, ParseError, TransferError
from savehaven.i18n import t
from savehaven.models.records import Game
from savehaven.models.save_entry import NewSave, SaveEntry
from savehaven.utils import format_size, parse_release_date

if TYPE_CHECKING:
    from savehaven.core.save_manager import SaveManager


class Menu:
    """
    Read-prompt-dispatch loop.

    Runs until the user picks exit or input ends. Recoverable errors are
    reported and return to the main menu; StorageError propagates to the
    caller.

    ``input_func`` and ``output_func`` default to the terminal and can be
    replaced with scripted callables.
    """

    def __init__(
        self,
        save_manager: SaveManager,
        date_formats: list[str],
        input_func: Callable[[str], str] | None = None,
        output_func: Callable[[str], None] | None = None,
    ) -> None:
        self._saves = save_manager
        self._date_formats = date_formats
        self._input = input_func or input
        self._out = output_func or print

    def run(self) -> int:
        """Run the menu loop. Returns the process exit status."""
        self._out(t("app.banner"))
        try:
            while True:
                choice = self._main_menu()
                if choice == "1":
                    self._run_flow(self.add_flow)
                elif choice == "2":
                    self._run_flow(self.retrieve_flow)
                elif choice == "3":
                    self._out(t("menu.goodbye"))
                    return 0
                else:
                    self._out(t("menu.invalid_choice", choice=choice))
        except EOFError:
            logger.debug("End of input, leaving menu")
            self._out("")
            return 0

    def _main_menu(self) -> str:
        self._out(t("menu.header"))
        self._out(t("menu.option_add"))
        self._out(t("menu.option_retrieve"))
        self._out(t("menu.option_exit"))
        return self._ask("menu.prompt")

    def _ask(self, key: str, **kwargs: object) -> str:
        return self._input(t(key, **kwargs)).strip()

    def _run_flow(self, flow: Callable[[], None]) -> None:
        try:
            flow()
        except ParseError as e:
            logger.warning(f"Parse error: {e}")
            self._out(t("error.parse", message=e))
        except NotFoundError as e:
            logger.warning(f"Not found: {e}")
            self._out(t("error.not_found", message=e))
        except TransferError as e:
            logger.error(f"Transfer failed: {e}")
            self._out(t("error.transfer", message=e))
        except ConstraintError as e:
            logger.error(f"Constraint violation: {e}")
            self._out(t("error.constraint", message=e))

    # ── Add ──

    def add_flow(self) -> None:
        title = self._ask("add.title")
        publisher = self._ask("add.publisher")
        release_date = parse_release_date(self._ask("add.release_date"), self._date_formats)
        platform = self._ask("add.platform")
        source = self._ask("add.source")
        notes = self._ask("add.notes")

        entry = self._saves.add_save(
            NewSave(
                title=title,
                source_path=source,
                publisher=publisher,
                release_date=release_date,
                platform=platform,
                notes=notes,
            )
        )
        self._out(
            t("add.done", title=entry.game.title, save_id=entry.save.id, path=entry.backup_path)
        )

    # ── Retrieve ──

    def retrieve_flow(self) -> None:
        title = self._ask("retrieve.title")
        games = self._saves.find_games(title)
        game = games[0] if len(games) == 1 else self._choose_game(games)
        self._show_game(game)

        entries = self._saves.saves_for_game(game)
        if not entries:
            self._out(t("retrieve.no_saves"))
            return
        self._out(t("retrieve.saves_found", count=len(entries)))

        restore_all = False
        for entry in entries:
            self._show_entry(entry)
            if restore_all:
                self._restore(entry, None)
                continue

            answer = self._ask("retrieve.confirm").lower()
            if answer == "a":
                self._out(t("retrieve.restoring_all"))
                restore_all = True
                self._restore(entry, None)
            elif answer in ("", "y", "yes"):
                default = entry.default_destination or ""
                destination = self._ask("retrieve.destination", default=default)
                if entry.metadata.is_dir:
                    self._restore_items(entry, destination or None)
                else:
                    self._restore(entry, destination or None)
            else:
                self._out(t("retrieve.skipped", id=entry.save.id))

    def _choose_game(self, games: list[Game]) -> Game:
        self._out(t("retrieve.select"))
        for game in games:
            self._out(
                t(
                    "retrieve.game_choice",
                    id=game.id,
                    title=game.title,
                    publisher=game.publisher or "-",
                    release_date=game.release_label,
                )
            )
        raw = self._ask("retrieve.choose")
        try:
            game_id = int(raw)
        except ValueError:
            raise ParseError(t("retrieve.invalid_id", value=raw)) from None
        for game in games:
            if game.id == game_id:
                return game
        raise NotFoundError(t("retrieve.unknown_id", value=game_id))

    def _show_game(self, game: Game) -> None:
        self._out(t("retrieve.game_info"))
        self._out(t("retrieve.game_title", title=game.title))
        self._out(t("retrieve.game_publisher", publisher=game.publisher or "-"))
        self._out(t("retrieve.game_release", release_date=game.release_label))

    def _show_entry(self, entry: SaveEntry) -> None:
        meta = entry.metadata
        self._out(t("retrieve.save_header", id=entry.save.id))
        self._out(t("retrieve.save_platform", platform=entry.platform_name or "-"))
        self._out(t("retrieve.save_backup", path=entry.backup_path))
        if meta.source_path:
            self._out(t("retrieve.save_source", path=meta.source_path))
        if meta.notes:
            self._out(t("retrieve.save_notes", notes=meta.notes))
        if meta.size:
            self._out(t("retrieve.save_size", size=format_size(meta.size)))
        if meta.backed_up_at:
            self._out(t("retrieve.save_date", date=meta.backed_up_at))

    def _restore(self, entry: SaveEntry, destination: str | None) -> None:
        target = self._saves.restore_save(entry, destination)
        self._out(t("retrieve.restored", path=target))

    def _restore_items(self, entry: SaveEntry, destination: str | None) -> None:
        """Confirm and restore each top-level entry of a folder backup."""
        for name in self._saves.backup_items(entry):
            answer = self._ask("retrieve.copy_item", name=name).lower()
            if answer in ("", "y", "yes"):
                target = self._saves.restore_item(entry, name, destination)
                self._out(t("retrieve.restored", path=target))
            else:
                self._out(t("retrieve.item_skipped", name=name))
