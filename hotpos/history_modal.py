"""Order history modal screen (read-only)."""

from __future__ import annotations

import asyncio
import logging

from rich.text import Text
from textual import work
from textual.app import ComposeResult
from textual.containers import Container
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Static

from hotpos.errors import GatewayError
from hotpos.models import HistoryLine, HistoryOrder
from hotpos.rendering import HISTORY_STATE_LABELS, format_datetime, format_price, history_state_style
from hotpos.session import PosSession

logger = logging.getLogger(__name__)


class HistoryModal(ModalScreen[None]):
    """Recent orders of the current POS config, with a per-order detail view."""

    BINDINGS = [
        ("escape", "back", "Back / Close"),
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "show_detail", "Details"),
    ]

    CSS = """
    HistoryModal {
        align: center middle;
        background: $background 60%;
    }

    #history-dialog {
        width: 96;
        height: 80%;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #history-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #history-body {
        height: 1fr;
        color: white;
    }

    #history-help {
        margin-top: 1;
        color: #dddddd;
    }
    """

    cursor_index = reactive(0)

    def __init__(self, session: PosSession, days: int) -> None:
        super().__init__()
        self.session = session
        self.days = days
        self.orders: list[HistoryOrder] = []
        self.selected: HistoryOrder | None = None
        self.lines: list[HistoryLine] = []
        self.is_loading = True
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="history-dialog"):
            yield Static(id="history-title")
            yield Static(id="history-body")
            yield Static("↑/↓ move, Enter details, Esc back/close", id="history-help")

    def on_mount(self) -> None:
        self._refresh_content()
        self.load_orders()

    @work(exclusive=True, group="history")
    async def load_orders(self) -> None:
        try:
            orders = await asyncio.to_thread(self.session.order_history, self.days)
        except GatewayError as exc:
            logger.warning("history_load_failed error=%r", exc)
            self.error = str(exc)
        else:
            self.orders = orders
        self.is_loading = False
        self._refresh_content()

    @work(exclusive=True, group="history")
    async def load_lines(self, order: HistoryOrder) -> None:
        try:
            lines = await asyncio.to_thread(self.session.order_lines, order)
        except GatewayError as exc:
            logger.warning("history_lines_failed order=%s error=%r", order.id, exc)
            lines = []
        if self.selected is order:
            self.lines = lines
            self.is_loading = False
            self._refresh_content()

    def action_back(self) -> None:
        if self.selected is not None:
            self.selected = None
            self.lines = []
            self.is_loading = False
            self._refresh_content()
            return
        self.dismiss(None)

    def action_move_cursor(self, delta: int) -> None:
        if self.selected is not None or not self.orders:
            return
        self.cursor_index = (self.cursor_index + delta) % len(self.orders)
        self._refresh_content()

    def action_show_detail(self) -> None:
        if self.selected is not None or not self.orders:
            return
        self.selected = self.orders[self.cursor_index]
        self.lines = []
        self.is_loading = True
        self._refresh_content()
        self.load_lines(self.selected)

    def _refresh_content(self) -> None:
        title = self.query_one("#history-title", Static)
        body = self.query_one("#history-body", Static)
        if self.selected is not None:
            title.update(f"Details · {self.selected.reference}")
            body.update(self._detail_text(self.selected))
            return

        title.update(f"Order history ({self.days} days)")
        if self.is_loading:
            body.update("Loading orders...")
        elif self.error:
            body.update(Text(f"⚠ {self.error}", style="#ffb3b3"))
        elif not self.orders:
            body.update(f"No orders in the last {self.days} days")
        else:
            body.update(self._list_text())

    def _list_text(self) -> Text:
        text = Text()
        text.append(f"  {'Reference':<24}{'Date':<18}{'Customer':<20}{'Total':>14}  State\n", style="bold")
        for idx, order in enumerate(self.orders):
            pointer = "➤ " if idx == self.cursor_index else "  "
            customer = order.customer.name if order.customer else "Walk-in"
            text.append(
                f"{pointer}{order.reference[:23]:<24}{format_datetime(order.date_order):<18}"
                f"{customer[:19]:<20}{format_price(order.amount_total):>14}  "
            )
            text.append(HISTORY_STATE_LABELS.get(order.state, order.state), style=history_state_style(order.state))
            text.append("\n")
        return text

    def _detail_text(self, order: HistoryOrder) -> Text:
        text = Text()
        customer = order.customer.name if order.customer else "Walk-in"
        text.append(f"Date      {format_datetime(order.date_order)}\n")
        text.append(f"Customer  {customer}\n")
        text.append("State     ")
        text.append(HISTORY_STATE_LABELS.get(order.state, order.state), style=history_state_style(order.state))
        text.append(f"\nTotal     {format_price(order.amount_total)}\n\n", style="bold")
        if self.is_loading:
            text.append("Loading lines...")
            return text
        if not self.lines:
            text.append("No line data")
            return text
        text.append(f"{'Product':<30}{'Qty':>6}{'Unit':>14}{'Disc':>7}{'Amount':>16}\n", style="bold")
        for line in self.lines:
            name = line.product.name if line.product else "?"
            disc = f"{line.discount_percent.normalize():f}%" if line.discount_percent > 0 else "—"
            text.append(
                f"{name[:29]:<30}{line.quantity.normalize():>6f}{format_price(line.price_unit):>14}"
                f"{disc:>7}{format_price(line.subtotal_incl):>16}\n"
            )
        return text
