"""Floor screen: the table grid with open/close and merge/split modes."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Grid
from textual.events import Key
from textual.reactive import reactive
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from hotpos.config import HISTORY_DAYS, TABLE_GRID_COLUMNS
from hotpos.history_modal import HistoryModal
from hotpos.models import TableStatus
from hotpos.rendering import format_table_card
from hotpos.session import PosSession
from hotpos.tables import MERGE_MODE, SPLIT_MODE

NORMAL_MODE = "normal"


class TablesScreen(Screen):
    """Grid of all tables.

    Normal mode: Enter opens a free table and goes to its order, ``o`` opens
    without ordering, ``x`` closes, ``h`` shows history. ``m``/``s`` enter merge
    or split selection where Space toggles selectable tables and Enter
    confirms; the first table picked in merge mode is the primary.
    """

    BINDINGS = [
        ("up", "move_cursor(-1, 0)", "Up"),
        ("down", "move_cursor(1, 0)", "Down"),
        ("left", "move_cursor(0, -1)", "Left"),
        ("right", "move_cursor(0, 1)", "Right"),
        ("enter", "activate", "Open / Order / Confirm"),
        ("escape", "cancel_mode", "Cancel mode"),
    ]

    CSS = """
    #floor-stats {
        height: 1;
        padding: 0 1;
    }

    #floor-toolbar {
        border: heavy $secondary;
        padding: 0 1;
        height: 3;
    }

    #floor-grid {
        grid-size: 4;
        grid-gutter: 0 1;
        height: 1fr;
        padding: 0 1;
    }

    .table-card {
        border: round $surface;
        height: 5;
        padding: 0 1;
    }

    .table-card.cursor {
        border: heavy $accent;
    }

    .table-card.selected {
        background: $boost;
    }

    #floor-status {
        height: 1;
        padding: 0 1;
        color: $text-muted;
    }
    """

    mode = reactive(NORMAL_MODE)
    cursor_id = reactive(1)

    def __init__(self, session: PosSession) -> None:
        super().__init__()
        self.session = session
        self.selected_ids: list[int] = []
        self.status_message = ""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(id="floor-stats")
        yield Static(id="floor-toolbar")
        with Grid(id="floor-grid"):
            for table_id in self.session.registry.ids:
                yield Static(id=f"table-{table_id}", classes="table-card")
        yield Static(id="floor-status")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#floor-grid", Grid).styles.grid_size_columns = TABLE_GRID_COLUMNS
        self.set_interval(30, self.refresh_floor)
        self.refresh_floor()

    def on_screen_resume(self) -> None:
        self.refresh_floor()

    def set_status(self, message: str) -> None:
        self.status_message = message
        if self.is_mounted:
            self.refresh_floor()

    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return
        key = event.character.lower()
        handlers = {
            " ": self.action_toggle_select,
            "o": self.action_open_only,
            "x": self.action_close_table,
            "m": self.action_merge_mode,
            "s": self.action_split_mode,
            "h": self.action_history,
            "l": self.app.action_switch_pos,
        }
        handler = handlers.get(key)
        if handler is None:
            return
        handler()
        event.stop()

    def action_move_cursor(self, rows: int, cols: int) -> None:
        ids = self.session.registry.ids
        idx = ids.index(self.cursor_id) if self.cursor_id in ids else 0
        idx = (idx + rows * TABLE_GRID_COLUMNS + cols) % len(ids)
        self.cursor_id = ids[idx]
        self.refresh_floor()

    def action_activate(self) -> None:
        if self.mode != NORMAL_MODE:
            self._confirm_mode()
            return
        registry = self.session.registry
        table = registry.get(self.cursor_id)
        if table.status is TableStatus.AVAILABLE:
            registry.open(table.id)
        self.app.open_order(registry.resolve(table.id))

    def action_open_only(self) -> None:
        if self.mode != NORMAL_MODE:
            return
        if self.session.registry.open(self.cursor_id):
            self.set_status(f"Table {self.cursor_id} opened")
        else:
            self.set_status(f"Table {self.cursor_id} is not free")

    def action_close_table(self) -> None:
        if self.mode != NORMAL_MODE:
            return
        released = self.session.registry.close(self.cursor_id)
        if released:
            self.set_status("Closed table " + ", ".join(str(tid) for tid in released))

    def action_merge_mode(self) -> None:
        self._enter_mode(MERGE_MODE)

    def action_split_mode(self) -> None:
        self._enter_mode(SPLIT_MODE)

    def action_cancel_mode(self) -> None:
        if self.mode == NORMAL_MODE:
            return
        self.mode = NORMAL_MODE
        self.selected_ids = []
        self.refresh_floor()

    def action_toggle_select(self) -> None:
        if self.mode == NORMAL_MODE:
            return
        if not self.session.registry.selectable(self.cursor_id, self.mode):
            return
        if self.cursor_id in self.selected_ids:
            self.selected_ids.remove(self.cursor_id)
        else:
            self.selected_ids.append(self.cursor_id)
        self.refresh_floor()

    def action_history(self) -> None:
        if self.mode != NORMAL_MODE:
            return
        self.app.push_screen(HistoryModal(self.session, HISTORY_DAYS))

    def _enter_mode(self, mode: str) -> None:
        self.mode = mode
        self.selected_ids = []
        self.refresh_floor()

    def _confirm_mode(self) -> None:
        registry = self.session.registry
        if self.mode == MERGE_MODE:
            if len(self.selected_ids) < 2:
                return
            primary, *secondaries = self.selected_ids
            if registry.merge(primary, secondaries):
                self.status_message = f"Merged into table {primary}"
            else:
                self.status_message = "Merge rejected"
        elif self.mode == SPLIT_MODE:
            if not self.selected_ids:
                return
            liberated = registry.split(self.selected_ids)
            self.status_message = f"Split tables {', '.join(map(str, liberated))}" if liberated else "Nothing to split"
        self.mode = NORMAL_MODE
        self.selected_ids = []
        self.refresh_floor()

    def refresh_floor(self) -> None:
        registry = self.session.registry
        used = registry.count(TableStatus.OCCUPIED, TableStatus.MERGED)
        free = registry.count(TableStatus.AVAILABLE)
        stats = Text()
        config_name = self.session.config.name if self.session.config else "No POS selected"
        user_name = self.session.user.name if self.session.user else "-"
        stats.append(f"{config_name} · {user_name}   ", style="bold")
        stats.append(f"● Free: {free}  ", style="#5fbf72")
        stats.append(f"● In use: {used}", style="#b23a48")
        self.query_one("#floor-stats", Static).update(stats)
        self.query_one("#floor-toolbar", Static).update(self._toolbar_text())

        for view in registry.views():
            card = self.query_one(f"#table-{view.id}", Static)
            dimmed = self.mode != NORMAL_MODE and not registry.selectable(view.id, self.mode)
            selected = view.id in self.selected_ids
            card.update(format_table_card(view, selected=selected, dimmed=dimmed))
            card.set_class(view.id == self.cursor_id, "cursor")
            card.set_class(selected, "selected")

        self.query_one("#floor-status", Static).update(self.status_message or "Ready")

    def _toolbar_text(self) -> str:
        count = len(self.selected_ids)
        if self.mode == MERGE_MODE:
            return f"MERGE: Space select occupied tables ({count} selected), Enter confirm, Esc cancel"
        if self.mode == SPLIT_MODE:
            return f"SPLIT: Space select merged tables ({count} selected), Enter confirm, Esc cancel"
        return "Enter open/order · O open only · X close · M merge · S split · H history · L switch POS · Ctrl+Q quit"
