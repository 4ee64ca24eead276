"""Odoo 12 XML-RPC gateway.

Everything the backend returns is normalized here: many2one values such as
``[7, "Main Dishes"]`` or ``False`` become ``Ref``/``None``, prices become
``Decimal``, and timestamps become aware ``datetime`` values. Nothing past this
module sees a backend tuple shape.
"""

from __future__ import annotations

import logging
import xmlrpc.client
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Callable, Protocol
from urllib.parse import urlsplit, urlunsplit

from hotpos.config import ODOO_DEFAULT_PORT
from hotpos.errors import AuthenticationError, GatewayError
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

logger = logging.getLogger(__name__)

_ODOO_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
_PROMOTION_FIELDS = ["id", "name", "discount_type", "discount_percentage", "discount_fixed_amount", "active"]
_SESSION_FIELDS = ["id", "name", "state", "config_id", "user_id"]


class Gateway(Protocol):
    """What the POS session needs from a backend."""

    def login(self, url: str, db: str, username: str, password: str) -> UserInfo: ...

    def pos_configs(self) -> list[PosConfig]: ...

    def open_pos_session(self, config_id: int) -> PosSessionInfo | None: ...

    def products(self) -> list[Product]: ...

    def customers(self) -> list[Customer]: ...

    def categories(self) -> list[Category]: ...

    def price_lists(self) -> list[Ref]: ...

    def promotions(self) -> list[Promotion]: ...

    def order_history(self, config_id: int, days: int) -> list[HistoryOrder]: ...

    def order_lines(self, line_ids: list[int]) -> list[HistoryLine]: ...


def to_ref(value: Any) -> Ref | None:
    """Normalize an Odoo many2one value."""
    if value is None or value is False:
        return None
    if isinstance(value, (list, tuple)):
        if not value or value[0] in (None, False):
            return None
        name = str(value[1]) if len(value) > 1 and value[1] not in (None, False) else str(value[0])
        return Ref(int(value[0]), name)
    if isinstance(value, int) and not isinstance(value, bool):
        return Ref(value, str(value))
    return None


def to_decimal(value: Any) -> Decimal:
    if value is None or value is False:
        return Decimal(0)
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def to_text(value: Any) -> str | None:
    if value is None or value is False:
        return None
    text = str(value).strip()
    return text or None


def to_datetime(value: Any) -> datetime | None:
    """Odoo sends naive UTC timestamps as strings."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = to_text(value)
    if text is None:
        return None
    try:
        return datetime.strptime(text, _ODOO_DATETIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def parse_product(row: dict) -> Product:
    return Product(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        price=to_decimal(row.get("list_price")),
        category=to_ref(row.get("pos_categ_id")),
        default_code=to_text(row.get("default_code")),
        barcode=to_text(row.get("barcode")),
    )


def parse_customer(row: dict) -> Customer:
    return Customer(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        phone=to_text(row.get("phone")) or to_text(row.get("mobile")),
        email=to_text(row.get("email")),
    )


def parse_category(row: dict) -> Category:
    return Category(id=int(row["id"]), name=str(row.get("name") or ""), parent=to_ref(row.get("parent_id")))


def parse_promotion(row: dict) -> Promotion:
    if row.get("discount_type") == "fixed_amount":
        kind, value = DiscountKind.AMOUNT, to_decimal(row.get("discount_fixed_amount"))
    else:
        kind, value = DiscountKind.PERCENT, to_decimal(row.get("discount_percentage"))
    return Promotion(id=int(row["id"]), name=str(row.get("name") or ""), discount_kind=kind, discount_value=value)


def parse_session(row: dict) -> PosSessionInfo:
    return PosSessionInfo(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        state=str(row.get("state") or ""),
        user=to_ref(row.get("user_id")),
    )


def session_status(session: PosSessionInfo | None, uid: int | None) -> str:
    """Classify a config by who holds its open session."""
    if session is None or not session.state or session.state == "closed":
        return "available"
    if session.user is not None and session.user.id == uid:
        return "mine"
    return "locked"


def parse_history_order(row: dict) -> HistoryOrder:
    return HistoryOrder(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        reference=to_text(row.get("pos_reference")) or str(row.get("name") or ""),
        date_order=to_datetime(row.get("date_order")),
        customer=to_ref(row.get("partner_id")),
        amount_total=to_decimal(row.get("amount_total")),
        state=str(row.get("state") or ""),
        line_ids=tuple(int(lid) for lid in row.get("lines") or ()),
    )


def parse_history_line(row: dict) -> HistoryLine:
    return HistoryLine(
        id=int(row["id"]),
        product=to_ref(row.get("product_id")),
        quantity=to_decimal(row.get("qty")),
        price_unit=to_decimal(row.get("price_unit")),
        discount_percent=to_decimal(row.get("discount")),
        subtotal_incl=to_decimal(row.get("price_subtotal_incl")),
    )


def history_since(days: int, today: date | None = None) -> str:
    start = (today or datetime.now(timezone.utc).date()) - timedelta(days=days)
    return f"{start.isoformat()} 00:00:00"


def endpoint(url: str, path: str) -> str:
    """Build an XML-RPC endpoint, defaulting plain http to the Odoo port."""
    parts = urlsplit(url.strip().rstrip("/"))
    if not parts.scheme or not parts.hostname:
        raise GatewayError(f"Invalid server URL: {url!r}")
    netloc = parts.netloc
    if parts.port is None and parts.scheme == "http":
        netloc = f"{netloc}:{ODOO_DEFAULT_PORT}"
    return urlunsplit((parts.scheme, netloc, f"{parts.path}{path}", "", ""))


class OdooGateway:
    """Talks to Odoo through ``xmlrpc.client``; one proxy per call."""

    def __init__(self, proxy_factory: Callable[..., Any] = xmlrpc.client.ServerProxy) -> None:
        self._proxy_factory = proxy_factory
        self._url: str | None = None
        self._db = ""
        self._uid: int | None = None
        self._password = ""
        self.user: UserInfo | None = None

    @property
    def uid(self) -> int | None:
        return self._uid

    def _proxy(self, path: str) -> Any:
        if self._url is None:
            raise GatewayError("Not logged in")
        return self._proxy_factory(endpoint(self._url, path), allow_none=True)

    def login(self, url: str, db: str, username: str, password: str) -> UserInfo:
        common = self._proxy_factory(endpoint(url, "/xmlrpc/2/common"), allow_none=True)
        try:
            uid = common.authenticate(db, username, password, {})
        except (xmlrpc.client.Fault, xmlrpc.client.ProtocolError, OSError) as exc:
            logger.warning("login_failed url=%s error=%r", url, exc)
            raise GatewayError(f"Cannot connect to Odoo: {exc}") from exc
        if not uid:
            raise AuthenticationError("Wrong username or password")

        self._url, self._db, self._uid, self._password = url, db, int(uid), password
        rows = self._execute("res.users", "read", [[self._uid]], {"fields": ["name", "login", "email"]})
        row = rows[0] if rows else {}
        self.user = UserInfo(
            uid=self._uid,
            name=str(row.get("name") or username),
            login=str(row.get("login") or username),
            email=to_text(row.get("email")) or "",
        )
        logger.info("login_ok uid=%s db=%s", self._uid, db)
        return self.user

    def _execute(self, model: str, method: str, args: list, kwargs: dict | None = None) -> Any:
        if self._uid is None:
            raise GatewayError("Not logged in")
        proxy = self._proxy("/xmlrpc/2/object")
        try:
            return proxy.execute_kw(self._db, self._uid, self._password, model, method, args, kwargs or {})
        except (xmlrpc.client.Fault, xmlrpc.client.ProtocolError, OSError) as exc:
            logger.warning("odoo_call_failed model=%s method=%s error=%r", model, method, exc)
            raise GatewayError(f"Odoo error ({model}.{method}): {exc}") from exc

    def _search_read(self, model: str, domain: list, fields: list[str], **extra: Any) -> list[dict]:
        return self._execute(model, "search_read", [domain], {"fields": fields, **extra}) or []

    def pos_configs(self) -> list[PosConfig]:
        rows = self._search_read(
            "pos.config",
            [],
            ["id", "name", "stock_location_id", "pricelist_id", "company_id", "current_session_id", "current_session_state"],
        )
        configs = []
        for row in rows:
            session = None
            session_ref = to_ref(row.get("current_session_id"))
            if session_ref is not None:
                try:
                    sessions = self._execute(
                        "pos.session", "read", [[session_ref.id]], {"fields": ["id", "name", "state", "user_id", "config_id"]}
                    )
                except GatewayError:
                    # A config whose session cannot be read is still listed.
                    sessions = []
                if sessions:
                    session = parse_session(sessions[0])
            configs.append(
                PosConfig(
                    id=int(row["id"]),
                    name=str(row.get("name") or ""),
                    price_list=to_ref(row.get("pricelist_id")),
                    session=session,
                    status=session_status(session, self._uid),
                )
            )
        return configs

    def _open_sessions(self, config_id: int) -> list[dict]:
        return self._search_read("pos.session", [["config_id", "=", config_id], ["state", "!=", "closed"]], _SESSION_FIELDS)

    def open_pos_session(self, config_id: int) -> PosSessionInfo | None:
        sessions = self._open_sessions(config_id)
        if not sessions:
            try:
                self._execute("pos.config", "open_session_cb", [[config_id]])
            except GatewayError as exc:
                raise GatewayError(f"Cannot open POS session: {exc}") from exc
            sessions = self._open_sessions(config_id)
        if not sessions:
            return None
        return parse_session(sessions[0])

    def products(self) -> list[Product]:
        rows = self._search_read(
            "product.product",
            [["sale_ok", "=", True], ["available_in_pos", "=", True]],
            ["id", "name", "list_price", "pos_categ_id", "barcode", "default_code", "categ_id"],
        )
        return [parse_product(row) for row in rows]

    def customers(self) -> list[Customer]:
        rows = self._search_read("res.partner", [["customer", "=", True]], ["id", "name", "phone", "mobile", "email", "street"])
        return [parse_customer(row) for row in rows]

    def categories(self) -> list[Category]:
        rows = self._search_read("pos.category", [], ["id", "name", "parent_id", "sequence"])
        return [parse_category(row) for row in rows]

    def price_lists(self) -> list[Ref]:
        rows = self._search_read("product.pricelist", [], ["id", "name", "currency_id", "active"])
        return [Ref(int(row["id"]), str(row.get("name") or "")) for row in rows]

    def promotions(self) -> list[Promotion]:
        """Read promotion programs; installations without the coupon module have none."""
        attempts = (
            ("sale.coupon.program", [["program_type", "=", "promotion_program"]]),
            ("coupon.program", []),
        )
        for model, domain in attempts:
            try:
                rows = self._search_read(model, domain, _PROMOTION_FIELDS)
            except GatewayError:
                continue
            return [parse_promotion(row) for row in rows]
        return []

    def order_history(self, config_id: int, days: int) -> list[HistoryOrder]:
        rows = self._search_read(
            "pos.order",
            [["config_id", "=", config_id], ["date_order", ">=", history_since(days)]],
            [
                "id",
                "name",
                "date_order",
                "partner_id",
                "amount_total",
                "amount_tax",
                "amount_paid",
                "amount_return",
                "state",
                "pos_reference",
                "lines",
                "session_id",
                "user_id",
            ],
            order="date_order desc",
        )
        return [parse_history_order(row) for row in rows]

    def order_lines(self, line_ids: list[int]) -> list[HistoryLine]:
        if not line_ids:
            return []
        rows = self._search_read(
            "pos.order.line",
            [["id", "in", list(line_ids)]],
            ["id", "order_id", "product_id", "qty", "price_unit", "price_subtotal", "price_subtotal_incl", "discount"],
        )
        return [parse_history_line(row) for row in rows]
