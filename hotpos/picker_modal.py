"""Filterable single-choice list modal."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

CANCELLED: Any = object()


@dataclass(frozen=True)
class PickerRow:
    """One choosable row; disabled rows are shown but cannot be picked."""

    value: Any
    label: str
    detail: str = ""
    enabled: bool = True


class PickerModal(ModalScreen[Any]):
    """Centered modal listing rows; typing narrows the list by label/detail.

    Dismisses with the chosen row's ``value`` or ``CANCELLED``.
    """

    BINDINGS = [
        ("escape", "cancel", "Cancel"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "choose", "Choose"),
        ("backspace", "backspace_filter", "Delete filter char"),
    ]

    CSS = """
    PickerModal {
        align: center middle;
        background: $background 60%;
    }

    #picker-dialog {
        width: 64;
        height: auto;
        max-height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #picker-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #picker-filter {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 3;
    }

    #picker-body {
        color: white;
    }

    #picker-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, title: str, rows: list[PickerRow]) -> None:
        super().__init__()
        self.title_text = title
        self.rows = rows
        self.filter_text = ""

    def compose(self) -> ComposeResult:
        with Container(id="picker-dialog"):
            yield Static(self.title_text, id="picker-title")
            yield Static(id="picker-filter")
            yield Static(id="picker-body")
            yield Static("Type to filter, ↑/↓ move, Enter choose, Esc cancel", id="picker-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.is_printable and event.character:
            self.filter_text += event.character
            self.cursor_index = 0
            self._refresh_content()
            event.stop()

    def visible_rows(self) -> list[PickerRow]:
        needle = self.filter_text.strip().lower()
        if not needle:
            return list(self.rows)
        return [row for row in self.rows if needle in row.label.lower() or needle in row.detail.lower()]

    def action_cancel(self) -> None:
        self.dismiss(CANCELLED)

    def action_move_cursor(self, delta: int) -> None:
        rows = self.visible_rows()
        if not rows:
            return
        self.cursor_index = (self.cursor_index + delta) % len(rows)
        self._refresh_content()

    def action_backspace_filter(self) -> None:
        if not self.filter_text:
            return
        self.filter_text = self.filter_text[:-1]
        self.cursor_index = 0
        self._refresh_content()

    def action_choose(self) -> None:
        rows = self.visible_rows()
        if not rows:
            return
        row = rows[min(self.cursor_index, len(rows) - 1)]
        if not row.enabled:
            return
        self.dismiss(row.value)

    def _refresh_content(self) -> None:
        self.query_one("#picker-filter", Static).update(f"Filter: {self.filter_text}")
        body = self.query_one("#picker-body", Static)
        rows = self.visible_rows()
        if not rows:
            body.update("No matches")
            return
        if self.cursor_index >= len(rows):
            self.cursor_index = len(rows) - 1

        content = Text()
        for idx, row in enumerate(rows):
            if idx > 0:
                content.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            style = "bold white" if row.enabled and idx == self.cursor_index else ("white" if row.enabled else "dim")
            content.append(f"{pointer}{row.label}", style=style)
            if row.detail:
                content.append(f"  {row.detail}", style="dim")
        body.update(content)
