"""Formatting helpers shared by screens and the receipt printer."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from rich.text import Text

from hotpos.config import CURRENCY_SUFFIX
from hotpos.models import Discount, DiscountKind, TableStatus, TableView

STATUS_LABELS = {
    TableStatus.AVAILABLE: "Free",
    TableStatus.OCCUPIED: "In use",
    TableStatus.MERGED: "Merged",
}

HISTORY_STATE_LABELS = {
    "draft": "Draft",
    "paid": "Paid",
    "done": "Done",
    "invoiced": "Invoiced",
    "cancel": "Cancelled",
}


def format_price(amount: Decimal | int) -> str:
    """Round to whole currency units and group thousands with dots."""
    whole = int(Decimal(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP))
    return f"{whole:,}".replace(",", ".") + CURRENCY_SUFFIX


def format_discount(discount: Discount) -> str:
    if discount.is_zero:
        return ""
    if discount.kind is DiscountKind.PERCENT:
        return f"-{discount.value.normalize():f}%"
    return f"-{format_price(discount.value)}"


def format_elapsed(since: datetime | None, now: datetime | None = None) -> str:
    if since is None:
        return ""
    now = now or datetime.now(timezone.utc)
    minutes = max(0, int((now - since).total_seconds() // 60))
    if minutes < 60:
        return f"{minutes} min"
    return f"{minutes // 60}h {minutes % 60:02d}m"


def format_datetime(value: datetime | None) -> str:
    if value is None:
        return "—"
    return value.astimezone().strftime("%d/%m/%Y %H:%M")


def status_style(status: TableStatus) -> str:
    """Return a consistent badge style for table states."""
    if status is TableStatus.OCCUPIED:
        return "bold #ffffff on #b23a48"
    if status is TableStatus.MERGED:
        return "bold #ffffff on #7a4bb5"
    return "bold #0b1f0f on #5fbf72"


def history_state_style(state: str) -> str:
    if state in {"paid", "done", "invoiced"}:
        return "#5fbf72"
    if state == "cancel":
        return "#ff6b6b"
    return "#e0b04a"


def merge_label(view: TableView) -> str | None:
    if view.merged_tables:
        return f"T{view.id} + " + ", ".join(str(tid) for tid in view.merged_tables)
    if view.merged_with is not None:
        return f"→ T{view.merged_with}"
    return None


def format_table_card(view: TableView, *, now: datetime | None = None, selected: bool = False, dimmed: bool = False) -> Text:
    """Render a three-line table card for the floor grid."""
    text = Text()
    marker = "✓" if selected else " "
    text.append(f"{marker} T{view.id:<3}", style="dim" if dimmed else "bold")
    text.append(f" {STATUS_LABELS[view.status]} ", style="dim" if dimmed else status_style(view.status))
    text.append("\n")
    label = merge_label(view)
    text.append(label or " ", style="#b9a3e3")
    text.append("\n")
    if view.status is TableStatus.OCCUPIED and view.order_time is not None:
        text.append(f"⏱ {format_elapsed(view.order_time, now)}", style="dim")
        if view.line_count:
            text.append(f" · {view.line_count} lines", style="dim")
    return text
