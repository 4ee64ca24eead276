"""Payment method modal screen."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from hotpos import pricing
from hotpos.config import PAYMENT_METHODS
from hotpos.models import Order
from hotpos.rendering import format_price


class PaymentModal(ModalScreen[str | None]):
    """Show the amount due and pick how it is paid.

    Dismisses with the payment method id, or ``None`` when cancelled.
    """

    BINDINGS = [
        ("escape", "cancel", "Back"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "confirm", "Confirm payment"),
    ]

    CSS = """
    PaymentModal {
        align: center middle;
        background: $background 60%;
    }

    #payment-dialog {
        width: 60;
        height: auto;
        border: round $primary;
        background: $panel;
        padding: 1 2;
    }

    #payment-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #payment-summary {
        color: white;
        margin-bottom: 1;
    }

    #payment-methods {
        border: tall $surface;
        padding: 0 1;
    }

    #payment-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, table_label: str, order: Order) -> None:
        super().__init__()
        self.table_label = table_label
        self.order = order
        self.method_ids = list(PAYMENT_METHODS)

    def compose(self) -> ComposeResult:
        with Container(id="payment-dialog"):
            yield Static(f"Payment · {self.table_label}", id="payment-title")
            yield Static(id="payment-summary")
            yield Static(id="payment-methods")
            yield Static("↑/↓ choose method, Enter confirm, Esc back to order", id="payment-help")

    def on_mount(self) -> None:
        self.query_one("#payment-summary", Static).update(self._summary())
        self._refresh_methods()

    def _summary(self) -> Text:
        order = self.order
        text = Text()
        rows = [
            ("Items", str(pricing.item_count(order))),
            ("Before discounts", format_price(pricing.raw_total(order))),
            ("Line discounts", f"-{format_price(pricing.total_line_discounts(order))}"),
            ("Subtotal", format_price(pricing.subtotal(order))),
            ("Bill discount", f"-{format_price(pricing.bill_discount_amount(order))}"),
        ]
        for label, value in rows:
            text.append(f"{label:<18}{value:>20}\n")
        text.append(f"{'TOTAL DUE':<18}{format_price(pricing.grand_total(order)):>20}\n", style="bold #5fbf72")
        customer = order.customer.name if order.customer else "Walk-in"
        text.append(f"Customer: {customer}", style="dim")
        return text

    def _refresh_methods(self) -> None:
        lines = Text()
        for idx, method_id in enumerate(self.method_ids):
            if idx > 0:
                lines.append("\n")
            pointer = "➤ " if idx == self.cursor_index else "  "
            style = "bold white" if idx == self.cursor_index else "white"
            lines.append(f"{pointer}{PAYMENT_METHODS[method_id]}", style=style)
        self.query_one("#payment-methods", Static).update(lines)

    def action_move_cursor(self, delta: int) -> None:
        self.cursor_index = (self.cursor_index + delta) % len(self.method_ids)
        self._refresh_methods()

    def action_confirm(self) -> None:
        self.dismiss(self.method_ids[self.cursor_index])

    def action_cancel(self) -> None:
        self.dismiss(None)
