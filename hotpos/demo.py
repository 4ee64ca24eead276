"""Offline gateway with a static catalog, used when no ERP URL is configured."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from hotpos.models import (
    Category,
    Customer,
    DiscountKind,
    HistoryLine,
    HistoryOrder,
    PosConfig,
    PosSessionInfo,
    Product,
    Promotion,
    Ref,
    UserInfo,
)

MAIN = Ref(1, "Main Dishes")
STARTERS = Ref(2, "Starters")
DRINKS = Ref(3, "Drinks")
DESSERTS = Ref(4, "Desserts")

CATEGORIES: list[Category] = [Category(ref.id, ref.name) for ref in (MAIN, STARTERS, DRINKS, DESSERTS)]

PRODUCTS: list[Product] = [
    Product(1, "Phở bò", Decimal(45000), MAIN, default_code="PHO01"),
    Product(2, "Bún chả", Decimal(40000), MAIN, default_code="BUN01"),
    Product(3, "Cơm rang", Decimal(35000), MAIN, default_code="COM01"),
    Product(4, "Gỏi cuốn", Decimal(30000), STARTERS, default_code="GOI01"),
    Product(5, "Chả giò", Decimal(25000), STARTERS, default_code="CHA01"),
    Product(6, "Nộm bò", Decimal(35000), STARTERS, default_code="NOM01"),
    Product(7, "Trà đá", Decimal(5000), DRINKS, barcode="8930000000071"),
    Product(8, "Cà phê sữa", Decimal(20000), DRINKS, barcode="8930000000088"),
    Product(9, "Sinh tố bơ", Decimal(30000), DRINKS, barcode="8930000000095"),
    Product(10, "Bia Hà Nội", Decimal(15000), DRINKS, barcode="8930000000101"),
    Product(11, "Bánh flan", Decimal(15000), DESSERTS),
    Product(12, "Chè đậu đỏ", Decimal(12000), DESSERTS),
]

CUSTOMERS: list[Customer] = [
    Customer(1, "Walk-in customer"),
    Customer(2, "Nguyễn Văn A", phone="0901234567", email="a@mail.com"),
    Customer(3, "Trần Thị B", phone="0912345678", email="b@mail.com"),
]

PRICE_LISTS: list[Ref] = [Ref(1, "Public Pricelist"), Ref(2, "VIP Pricelist"), Ref(3, "Staff Pricelist")]

PROMOTIONS: list[Promotion] = [
    Promotion(1, "Happy Hour 10%", DiscountKind.PERCENT, Decimal(10)),
    Promotion(2, "50k off bills over 500k", DiscountKind.AMOUNT, Decimal(50000)),
    Promotion(3, "Buy 2 drinks get 1 free", DiscountKind.PERCENT, Decimal(100)),
]

DEMO_USER = UserInfo(uid=1, name="Demo Cashier", login="demo")

POS_CONFIGS: list[PosConfig] = [
    PosConfig(1, "POS Ground Floor", price_list=PRICE_LISTS[0]),
    PosConfig(
        2,
        "POS First Floor",
        price_list=PRICE_LISTS[0],
        session=PosSessionInfo(20, "POS/2026/0002", "opened", Ref(DEMO_USER.uid, DEMO_USER.name)),
        status="mine",
    ),
    PosConfig(
        3,
        "POS Bar",
        price_list=PRICE_LISTS[1],
        session=PosSessionInfo(30, "POS/2026/0003", "opened", Ref(7, "Nguyễn Văn A")),
        status="locked",
    ),
    PosConfig(4, "POS Garden", price_list=PRICE_LISTS[0]),
]


def _history(now: datetime) -> tuple[list[HistoryOrder], dict[int, HistoryLine]]:
    orders = [
        HistoryOrder(1, "POS/001", "Order 00001-001-0001", now - timedelta(hours=3), Ref(2, "Nguyễn Văn A"), Decimal(159000), "paid", (1, 2, 3)),
        HistoryOrder(2, "POS/002", "Order 00001-001-0002", now - timedelta(hours=1), None, Decimal(40000), "paid", (4,)),
        HistoryOrder(3, "POS/003", "Order 00001-001-0003", now - timedelta(days=1), Ref(3, "Trần Thị B"), Decimal(75000), "done", (5, 6)),
    ]
    lines = [
        HistoryLine(1, Ref(1, "Phở bò"), Decimal(2), Decimal(45000), Decimal(0), Decimal(90000)),
        HistoryLine(2, Ref(8, "Cà phê sữa"), Decimal(3), Decimal(20000), Decimal(10), Decimal(54000)),
        HistoryLine(3, Ref(11, "Bánh flan"), Decimal(1), Decimal(15000), Decimal(0), Decimal(15000)),
        HistoryLine(4, Ref(2, "Bún chả"), Decimal(1), Decimal(40000), Decimal(0), Decimal(40000)),
        HistoryLine(5, Ref(4, "Gỏi cuốn"), Decimal(2), Decimal(30000), Decimal(0), Decimal(60000)),
        HistoryLine(6, Ref(10, "Bia Hà Nội"), Decimal(1), Decimal(15000), Decimal(0), Decimal(15000)),
    ]
    return orders, {line.id: line for line in lines}


class DemoGateway:
    """Serves the static catalog above; every login succeeds."""

    def __init__(self) -> None:
        self.user: UserInfo | None = None
        self._configs = list(POS_CONFIGS)

    def login(self, url: str, db: str, username: str, password: str) -> UserInfo:
        login = username.strip()
        self.user = replace(DEMO_USER, name=login or DEMO_USER.name, login=login or DEMO_USER.login)
        return self.user

    def pos_configs(self) -> list[PosConfig]:
        return list(self._configs)

    def open_pos_session(self, config_id: int) -> PosSessionInfo | None:
        for idx, config in enumerate(self._configs):
            if config.id != config_id:
                continue
            if config.session is None:
                session = PosSessionInfo(config_id * 10, f"POS/2026/{config_id:04d}", "opened", Ref(DEMO_USER.uid, DEMO_USER.name))
                self._configs[idx] = replace(config, session=session, status="mine")
            return self._configs[idx].session
        return None

    def products(self) -> list[Product]:
        return list(PRODUCTS)

    def customers(self) -> list[Customer]:
        return list(CUSTOMERS)

    def categories(self) -> list[Category]:
        return list(CATEGORIES)

    def price_lists(self) -> list[Ref]:
        return list(PRICE_LISTS)

    def promotions(self) -> list[Promotion]:
        return list(PROMOTIONS)

    def order_history(self, config_id: int, days: int) -> list[HistoryOrder]:
        now = datetime.now(timezone.utc)
        orders, _ = _history(now)
        since = now - timedelta(days=days)
        return [order for order in orders if order.date_order is None or order.date_order >= since]

    def order_lines(self, line_ids: list[int]) -> list[HistoryLine]:
        _, lines = _history(datetime.now(timezone.utc))
        return [lines[lid] for lid in line_ids if lid in lines]
