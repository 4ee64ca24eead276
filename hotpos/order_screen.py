"""Order screen: catalog search on the right, the table's order on the left."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.screen import Screen
from textual.widgets import Footer, Header, Static

from hotpos import ordering, pricing
from hotpos.discount_modal import DiscountModal
from hotpos.models import Discount, Order, Product, Ref
from hotpos.picker_modal import CANCELLED, PickerModal, PickerRow
from hotpos.rendering import format_discount, format_price
from hotpos.session import PosSession

_NONE_CHOICE = "__none__"


def window_bounds(total: int, rows: int, selected: int | None) -> tuple[int, int]:
    """Slice of ``total`` rows that keeps ``selected`` near the middle."""
    if total <= 0:
        return (0, 0)

    rows = max(1, rows)
    if total <= rows:
        return (0, total)

    if selected is None:
        start = 0
    else:
        half = rows // 2
        start = selected - half
        start = max(0, start)
        start = min(start, total - rows)

    return (start, start + rows)


class OrderScreen(Screen):
    """Edit the order of one table (or merge group).

    Normal mode keys: ``/`` search, ``+``/``-`` quantity, ``d`` remove line,
    ``%`` line discount, ``b`` bill discount, ``c``/``l``/``r`` customer,
    price list, promotion, ``[``/``]`` category, ``p`` pay, Esc back.
    """

    CSS = """
    #order-layout {
        height: 1fr;
    }

    #order-pane {
        width: 3fr;
        border: round $primary;
        padding: 0 1;
    }

    #catalog-pane {
        width: 2fr;
        border: round $secondary;
        padding: 0 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        height: 3;
    }

    #categories {
        height: auto;
        margin-bottom: 1;
    }

    #results {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #order-lines {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #order-party {
        height: auto;
        color: $text-muted;
    }

    #order-totals {
        height: auto;
        border-top: solid $surface;
    }

    #order-status {
        height: 1;
        color: $text-muted;
    }

    .pane-title {
        text-style: bold;
    }
    """

    BINDINGS = [
        ("up", "move_cursor(-1)", "Previous"),
        ("down", "move_cursor(1)", "Next"),
        ("enter", "confirm", "Add product"),
        ("backspace", "backspace_query", "Delete query char"),
        ("escape", "back", "Back"),
    ]

    input_state = reactive("normal")
    search_text = reactive("")
    selected_index = reactive(0)
    line_index = reactive(None)

    def __init__(self, session: PosSession, table_id: int) -> None:
        super().__init__()
        self.session = session
        self.table_id = session.resolve_table(table_id)
        self.order: Order = session.order_for(self.table_id)
        self.category_index: int | None = None
        self.status_message = ""
        self._unsubscribe = lambda: None

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="order-layout"):
            with Vertical(id="order-pane"):
                yield Static(id="order-title", classes="pane-title")
                yield Static(id="order-lines")
                yield Static(id="order-party")
                yield Static(id="order-totals")
                yield Static(id="order-status")
            with Vertical(id="catalog-pane"):
                yield Static(id="search-bar")
                yield Static(id="categories")
                yield Static(id="results")
        yield Footer()

    def on_mount(self) -> None:
        self._unsubscribe = self.order.subscribe(self._on_order_changed)
        self._refresh_all()

    def on_unmount(self) -> None:
        self._unsubscribe()

    def _on_order_changed(self, order: Order) -> None:
        self._refresh_order()

    @property
    def table_label(self) -> str:
        secondaries = self.session.registry.merged_tables(self.table_id)
        if secondaries:
            return f"Table {self.table_id} + " + ", ".join(str(tid) for tid in secondaries)
        return f"Table {self.table_id}"

    def on_key(self, event: Key) -> None:
        if not event.is_printable or not event.character:
            return

        if self.input_state == "active":
            self.search_text += event.character
            self.selected_index = 0
            self._refresh_catalog()
            event.stop()
            return

        handlers = {
            "/": self._start_search,
            "+": lambda: self._change_quantity(1),
            "=": lambda: self._change_quantity(1),
            "-": lambda: self._change_quantity(-1),
            "d": self._remove_selected_line,
            "%": self._edit_line_discount,
            "b": self._edit_bill_discount,
            "c": self._pick_customer,
            "l": self._pick_price_list,
            "r": self._pick_promotion,
            "[": lambda: self._cycle_category(-1),
            "]": lambda: self._cycle_category(1),
            "p": self._go_to_payment,
        }
        handler = handlers.get(event.character.lower())
        if handler is None:
            return
        handler()
        event.stop()

    # Catalog side

    def _categories(self) -> list[Ref]:
        return [Ref(c.id, c.name) for c in self.session.catalog.categories]

    def _active_category(self) -> Ref | None:
        categories = self._categories()
        if self.category_index is None or not (0 <= self.category_index < len(categories)):
            return None
        return categories[self.category_index]

    def filtered_products(self) -> list[Product]:
        category = self._active_category()
        return self.session.catalog.search(self.search_text, category.id if category else None)

    def _start_search(self) -> None:
        self.input_state = "active"
        self.search_text = ""
        self.selected_index = 0
        self._refresh_catalog()

    def _cycle_category(self, delta: int) -> None:
        count = len(self._categories())
        if count == 0:
            return
        # Position -1 stands for "all categories".
        current = -1 if self.category_index is None else self.category_index
        position = (current + 1 + delta) % (count + 1) - 1
        self.category_index = None if position < 0 else position
        self.selected_index = 0
        self._refresh_catalog()

    def action_backspace_query(self) -> None:
        if self.input_state != "active" or not self.search_text:
            return
        self.search_text = self.search_text[:-1]
        self.selected_index = 0
        self._refresh_catalog()

    def action_move_cursor(self, delta: int) -> None:
        if self.input_state == "active":
            results = self.filtered_products()
            if not results:
                self.selected_index = 0
            else:
                self.selected_index = (self.selected_index + delta) % len(results)
            self._refresh_catalog()
            return

        if not self.order.lines:
            return
        if self.line_index is None:
            self.line_index = 0 if delta > 0 else len(self.order.lines) - 1
        else:
            self.line_index = (self.line_index + delta) % len(self.order.lines)
        self._refresh_order()

    def action_confirm(self) -> None:
        if self.input_state != "active":
            return
        results = self.filtered_products()
        if not results:
            return
        product = results[min(self.selected_index, len(results) - 1)]
        ordering.add_product(self.order, product)
        self.line_index = next(i for i, line in enumerate(self.order.lines) if line.product.id == product.id)
        self.status_message = f"Added {product.name}"
        self._refresh_order()

    def action_back(self) -> None:
        if self.input_state == "active":
            self.input_state = "normal"
            self.search_text = ""
            self.selected_index = 0
            self._refresh_catalog()
            return
        self.app.pop_screen()

    # Order side

    def _selected_line_product_id(self) -> int | None:
        if self.line_index is None or not (0 <= self.line_index < len(self.order.lines)):
            return None
        return self.order.lines[self.line_index].product.id

    def _change_quantity(self, delta: int) -> None:
        product_id = self._selected_line_product_id()
        if product_id is None:
            return
        ordering.set_quantity(self.order, product_id, delta)

    def _remove_selected_line(self) -> None:
        product_id = self._selected_line_product_id()
        if product_id is None:
            return
        ordering.remove_line(self.order, product_id)

    def _edit_line_discount(self) -> None:
        product_id = self._selected_line_product_id()
        if product_id is None:
            return
        line = self.order.line_for(product_id)

        def apply(discount: Discount | None) -> None:
            if discount is not None:
                ordering.set_line_discount(self.order, product_id, discount.kind, discount.value)

        self.app.push_screen(DiscountModal(f"Discount · {line.product.name}", line.discount), apply)

    def _edit_bill_discount(self) -> None:
        def apply(discount: Discount | None) -> None:
            if discount is not None:
                ordering.set_bill_discount(self.order, discount.kind, discount.value)

        self.app.push_screen(DiscountModal("Bill discount", self.order.bill_discount), apply)

    def _pick_ref(self, title: str, none_label: str, rows: list[PickerRow], setter) -> None:
        def apply(value) -> None:
            if value is CANCELLED:
                return
            setter(self.order, None if value == _NONE_CHOICE else value)

        self.app.push_screen(PickerModal(title, [PickerRow(_NONE_CHOICE, none_label), *rows]), apply)

    def _pick_customer(self) -> None:
        rows = [
            PickerRow(c.ref, c.name, " ".join(part for part in (c.phone, c.email) if part))
            for c in self.session.catalog.customers
        ]
        self._pick_ref("Customer", "(no customer)", rows, ordering.set_customer)

    def _pick_price_list(self) -> None:
        rows = [PickerRow(ref, ref.name) for ref in self.session.catalog.price_lists]
        self._pick_ref("Price list", "(default price list)", rows, ordering.set_price_list)

    def _pick_promotion(self) -> None:
        rows = [
            PickerRow(p.ref, p.name, format_discount(Discount(p.discount_kind, p.discount_value)))
            for p in self.session.catalog.promotions
        ]
        self._pick_ref("Promotion", "(no promotion)", rows, ordering.set_promotion)

    def _go_to_payment(self) -> None:
        blocker = ordering.checkout_blocker(self.order)
        if blocker:
            self.status_message = blocker
            self._refresh_order()
            return
        self.app.start_payment(self.table_id, self.table_label)

    # Rendering

    def _visible_rows(self, widget: Static) -> int:
        height = widget.size.height
        if height <= 0:
            return 8
        return max(1, height)

    def _refresh_all(self) -> None:
        self._refresh_order()
        self._refresh_catalog()

    def _refresh_order(self) -> None:
        try:
            lines_widget = self.query_one("#order-lines", Static)
        except NoMatches:
            return

        self.query_one("#order-title", Static).update(self.table_label)
        lines = self.order.lines
        if not lines:
            self.line_index = None
            lines_widget.update("(no items yet, press / to search)")
        else:
            if self.line_index is None or self.line_index >= len(lines):
                self.line_index = len(lines) - 1
            start, end = window_bounds(len(lines), self._visible_rows(lines_widget), self.line_index)
            text = Text()
            if start > 0:
                text.append("⋮\n", style="dim")
            for idx in range(start, end):
                if idx > start:
                    text.append("\n")
                line = lines[idx]
                pointer = "➤ " if idx == self.line_index else "  "
                text.append(f"{pointer}{line.quantity:>3} × {line.product.name}")
                text.append(f"  {format_price(pricing.line_total(line))}", style="bold")
                if not line.discount.is_zero:
                    text.append(f"  {format_discount(line.discount)}", style="#e0b04a")
                    text.append(f" (was {format_price(pricing.line_base(line))})", style="dim strike")
            if end < len(lines):
                text.append("\n⋮", style="dim")
            lines_widget.update(text)

        party = Text()
        party.append(f"Customer: {self.order.customer.name if self.order.customer else 'none'}")
        party.append(f" · Price list: {self.order.price_list.name if self.order.price_list else 'default'}")
        party.append(f" · Promotion: {self.order.promotion.name if self.order.promotion else 'none'}")
        self.query_one("#order-party", Static).update(party)
        self.query_one("#order-totals", Static).update(self._totals_text())
        self.query_one("#order-status", Static).update(self.status_message or self._hint())

    def _totals_text(self) -> Text:
        order = self.order
        text = Text()
        text.append(f"Subtotal {format_price(pricing.subtotal(order))}")
        bill = pricing.bill_discount_amount(order)
        if bill > 0:
            text.append(f"   Bill discount {format_discount(order.bill_discount)} = -{format_price(bill)}", style="#e0b04a")
        text.append(f"\nTOTAL {format_price(pricing.grand_total(order))}", style="bold #5fbf72")
        if not ordering.can_checkout(order):
            text.append("   (payment locked)", style="dim")
        return text

    def _hint(self) -> str:
        return "/ search · +/- qty · d remove · % line disc · b bill disc · c customer · l price list · r promo · p pay · Esc back"

    def _refresh_catalog(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        if self.input_state == "active":
            bar.update(f"Search: {self.search_text}")
        else:
            bar.update("Press / to search products")

        category = self._active_category()
        cats = Text()
        cats.append("All", style="bold reverse" if category is None else "")
        for ref in self._categories():
            cats.append("  ")
            cats.append(ref.name, style="bold reverse" if category and ref.id == category.id else "")
        self.query_one("#categories", Static).update(cats)

        results_widget = self.query_one("#results", Static)
        results = self.filtered_products()
        if not results:
            results_widget.update("No products")
            return
        if self.selected_index >= len(results):
            self.selected_index = 0

        start, end = window_bounds(len(results), self._visible_rows(results_widget), self.selected_index)
        text = Text()
        if start > 0:
            text.append("⋮\n", style="dim")
        for idx in range(start, end):
            if idx > start:
                text.append("\n")
            product = results[idx]
            active = self.input_state == "active" and idx == self.selected_index
            pointer = "➤ " if active else "  "
            in_order = self.order.line_for(product.id)
            text.append(f"{pointer}{product.name}", style="bold" if active else "")
            text.append(f"  {format_price(product.price)}", style="dim")
            if in_order is not None:
                text.append(f"  ×{in_order.quantity}", style="#5fbf72")
        if end < len(results):
            text.append("\n⋮", style="dim")
        results_widget.update(text)
