"""Domain models for the POS front end."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable


class DiscountKind(str, Enum):
    PERCENT = "percent"
    AMOUNT = "amount"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MERGED = "merged"


@dataclass(frozen=True)
class Ref:
    """An opaque backend record reference with its display name."""

    id: int
    name: str


@dataclass(frozen=True)
class Discount:
    """A percent-of or fixed-amount-off reduction."""

    kind: DiscountKind = DiscountKind.PERCENT
    value: Decimal = Decimal(0)

    @property
    def is_zero(self) -> bool:
        return self.value <= 0

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "value": self.value}


NO_DISCOUNT = Discount()


@dataclass(frozen=True)
class Category:
    id: int
    name: str
    parent: Ref | None = None


@dataclass(frozen=True)
class Product:
    """A sellable catalog product."""

    id: int
    name: str
    price: Decimal
    category: Ref | None = None
    default_code: str | None = None
    barcode: str | None = None


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    phone: str | None = None
    email: str | None = None

    @property
    def ref(self) -> Ref:
        return Ref(self.id, self.name)


@dataclass(frozen=True)
class Promotion:
    id: int
    name: str
    discount_kind: DiscountKind
    discount_value: Decimal

    @property
    def ref(self) -> Ref:
        return Ref(self.id, self.name)


@dataclass
class OrderLine:
    """One product line of an in-progress order."""

    product: Product
    quantity: int = 1
    discount: Discount = NO_DISCOUNT


@dataclass(eq=False)
class Order:
    """The in-progress lines, discounts, and party references of one table.

    Totals are never stored here; observers registered with ``subscribe`` are
    called after every mutation and re-derive them from ``hotpos.pricing``.
    """

    lines: list[OrderLine] = field(default_factory=list)
    bill_discount: Discount = NO_DISCOUNT
    customer: Ref | None = None
    price_list: Ref | None = None
    promotion: Ref | None = None
    _observers: list[Callable[["Order"], None]] = field(default_factory=list, repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def line_for(self, product_id: int) -> OrderLine | None:
        for line in self.lines:
            if line.product.id == product_id:
                return line
        return None

    def subscribe(self, observer: Callable[["Order"], None]) -> Callable[[], None]:
        """Register an observer and return a callable that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def notify(self) -> None:
        for observer in list(self._observers):
            observer(self)

    def clear(self) -> None:
        self.lines.clear()
        self.bill_discount = NO_DISCOUNT
        self.customer = None
        self.price_list = None
        self.promotion = None
        self.notify()


@dataclass
class Table:
    """A physical seating unit. Merge links live in the registry."""

    id: int
    status: TableStatus = TableStatus.AVAILABLE
    guest_count: int = 0
    order_time: datetime | None = None
    order: Order = field(default_factory=Order)

    @property
    def number(self) -> int:
        return self.id


@dataclass(frozen=True)
class TableView:
    """Read-only snapshot of a table including its merge links."""

    id: int
    status: TableStatus
    guest_count: int
    order_time: datetime | None
    merged_with: int | None
    merged_tables: tuple[int, ...]
    line_count: int

    @property
    def is_merge_primary(self) -> bool:
        return bool(self.merged_tables)

    @property
    def is_merge_secondary(self) -> bool:
        return self.merged_with is not None


@dataclass
class Catalog:
    """Reference data fetched once per POS session."""

    products: list[Product] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    price_lists: list[Ref] = field(default_factory=list)
    promotions: list[Promotion] = field(default_factory=list)

    def product(self, product_id: int) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def search(self, query: str = "", category_id: int | None = None) -> list[Product]:
        """Filter products by category, then by name, internal code, or barcode."""
        results = self.products
        if category_id is not None:
            results = [p for p in results if p.category is not None and p.category.id == category_id]
        q = query.strip().lower()
        if not q:
            return list(results)
        return [
            p
            for p in results
            if q in p.name.lower()
            or (p.default_code and q in p.default_code.lower())
            or (p.barcode and q in p.barcode.lower())
        ]


@dataclass(frozen=True)
class UserInfo:
    uid: int
    name: str
    login: str
    email: str = ""


@dataclass(frozen=True)
class Credentials:
    """What the operator types into the sign-in form."""

    url: str = ""
    db: str = ""
    username: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.url and self.db and self.username)


@dataclass(frozen=True)
class PosSessionInfo:
    id: int
    name: str
    state: str
    user: Ref | None = None


@dataclass(frozen=True)
class PosConfig:
    """A backend POS configuration and who currently holds its session."""

    id: int
    name: str
    price_list: Ref | None = None
    session: PosSessionInfo | None = None
    status: str = "available"

    @property
    def is_locked(self) -> bool:
        return self.status == "locked"


@dataclass(frozen=True)
class CompletedLine:
    product_id: int
    quantity: int
    line_discount: Discount


@dataclass(frozen=True)
class CompletedOrder:
    """Payload handed to the journal and printer once payment succeeds."""

    table_id: int
    lines: tuple[CompletedLine, ...]
    bill_discount: Discount
    grand_total: Decimal
    payment_method: str
    completed_at: datetime
    customer_id: int | None = None
    price_list_id: int | None = None
    promotion_id: int | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "table_id": self.table_id,
            "lines": [
                {
                    "product_id": line.product_id,
                    "quantity": line.quantity,
                    "line_discount": line.line_discount.as_dict(),
                }
                for line in self.lines
            ],
            "bill_discount": self.bill_discount.as_dict(),
            "customer_id": self.customer_id,
            "price_list_id": self.price_list_id,
            "promotion_id": self.promotion_id,
            "grand_total": self.grand_total,
            "payment_method": self.payment_method,
            "completed_at": self.completed_at.isoformat(),
        }


@dataclass(frozen=True)
class HistoryOrder:
    id: int
    name: str
    reference: str
    date_order: datetime | None
    customer: Ref | None
    amount_total: Decimal
    state: str
    line_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class HistoryLine:
    id: int
    product: Ref | None
    quantity: Decimal
    price_unit: Decimal
    discount_percent: Decimal
    subtotal_incl: Decimal
