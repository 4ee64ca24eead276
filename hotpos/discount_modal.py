"""Discount entry modal screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from hotpos.models import Discount, DiscountKind
from hotpos.ordering import to_amount


class DiscountModal(ModalScreen[Discount | None]):
    """Prompt for a percent or fixed-amount discount.

    Tab switches the kind. An empty value confirms a zero discount, which
    removes an existing one.
    """

    CSS = """
    DiscountModal {
        align: center middle;
        background: $background 60%;
    }

    #discount-dialog {
        width: 56;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #discount-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #discount-kind {
        color: white;
        margin-bottom: 1;
    }

    #discount-value {
        border: heavy $secondary;
        padding: 0 1;
        color: white;
        margin-bottom: 1;
    }

    #discount-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #discount-help {
        color: #dddddd;
    }
    """

    def __init__(self, title: str, current: Discount) -> None:
        super().__init__()
        self.title_text = title
        self.kind = current.kind
        self.value = "" if current.is_zero else f"{current.value.normalize():f}"
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="discount-dialog"):
            yield Static(self.title_text, id="discount-title")
            yield Static(id="discount-kind")
            yield Static(id="discount-value")
            yield Static(id="discount-error")
            yield Static("Digits and '.'. Tab switch %/amount. Enter confirm. Esc cancel.", id="discount-help")

    def on_mount(self) -> None:
        self._refresh_content()

    def on_key(self, event: Key) -> None:
        if event.key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return

        if event.key == "enter":
            self._confirm()
            event.stop()
            return

        if event.key == "tab":
            self.kind = DiscountKind.AMOUNT if self.kind is DiscountKind.PERCENT else DiscountKind.PERCENT
            self.error = ""
            self._refresh_content()
            event.stop()
            return

        if event.key == "backspace":
            if self.value:
                self.value = self.value[:-1]
                self.error = ""
                self._refresh_content()
            event.stop()
            return

        if event.is_printable and event.character and (event.character.isdigit() or event.character == "."):
            if event.character == "." and "." in self.value:
                self.error = "Only one decimal point."
            elif len(self.value) < 12:
                self.value += event.character
                self.error = ""
            self._refresh_content()
            event.stop()

    def _confirm(self) -> None:
        if self.value == ".":
            self.error = "Enter a number."
            self._refresh_content()
            return
        self.dismiss(Discount(kind=self.kind, value=to_amount(self.value)))

    def _refresh_content(self) -> None:
        kind_label = "Percent (%)" if self.kind is DiscountKind.PERCENT else "Fixed amount"
        self.query_one("#discount-kind", Static).update(f"Type: {kind_label}")
        suffix = "%" if self.kind is DiscountKind.PERCENT else ""
        self.query_one("#discount-value", Static).update(f"{self.value}{suffix}")
        self.query_one("#discount-error", Static).update(self.error or "")
