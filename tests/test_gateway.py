"""
Tests for hotpos.gateway — record normalization and the XML-RPC client.
"""

import xmlrpc.client
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from hotpos.errors import AuthenticationError, GatewayError
from hotpos.gateway import (
    OdooGateway,
    endpoint,
    history_since,
    parse_customer,
    parse_history_order,
    parse_product,
    parse_promotion,
    session_status,
    to_datetime,
    to_decimal,
    to_ref,
)
from hotpos.models import DiscountKind, PosSessionInfo, Ref


class TestNormalizers:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ([7, "Main Dishes"], Ref(7, "Main Dishes")),
            ((7, "Main Dishes"), Ref(7, "Main Dishes")),
            (False, None),
            (None, None),
            ([], None),
            ([False, ""], None),
            (9, Ref(9, "9")),
            ("junk", None),
        ],
    )
    def test_to_ref(self, raw, expected):
        assert to_ref(raw) == expected

    def test_to_decimal(self):
        assert to_decimal(45000.0) == Decimal("45000.0")
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(False) == Decimal(0)
        assert to_decimal("12.50") == Decimal("12.50")

    def test_to_datetime(self):
        assert to_datetime("2025-06-15 08:30:00") == datetime(2025, 6, 15, 8, 30, tzinfo=timezone.utc)
        assert to_datetime(False) is None
        assert to_datetime("yesterday") is None


class TestParsers:
    def test_product(self):
        product = parse_product(
            {"id": 5, "name": "Phở bò", "list_price": 45000.0, "pos_categ_id": [1, "Main"], "barcode": False, "default_code": "PHO01"}
        )
        assert product.price == Decimal("45000.0")
        assert product.category == Ref(1, "Main")
        assert product.barcode is None
        assert product.default_code == "PHO01"

    def test_customer_phone_falls_back_to_mobile(self):
        customer = parse_customer({"id": 2, "name": "A", "phone": False, "mobile": "0901", "email": False})
        assert customer.phone == "0901"
        assert customer.email is None

    def test_promotion_kinds(self):
        fixed = parse_promotion({"id": 1, "name": "50k", "discount_type": "fixed_amount", "discount_fixed_amount": 50000})
        pct = parse_promotion({"id": 2, "name": "10%", "discount_type": "percentage", "discount_percentage": 10})
        assert (fixed.discount_kind, fixed.discount_value) == (DiscountKind.AMOUNT, Decimal("50000"))
        assert (pct.discount_kind, pct.discount_value) == (DiscountKind.PERCENT, Decimal("10"))

    def test_history_order(self):
        order = parse_history_order(
            {
                "id": 3,
                "name": "POS/003",
                "pos_reference": False,
                "date_order": "2025-06-15 08:30:00",
                "partner_id": False,
                "amount_total": 75000.0,
                "state": "paid",
                "lines": [5, 6],
            }
        )
        assert order.reference == "POS/003"
        assert order.customer is None
        assert order.line_ids == (5, 6)

    def test_session_status(self):
        mine = PosSessionInfo(1, "S1", "opened", Ref(4, "Me"))
        assert session_status(None, 4) == "available"
        assert session_status(PosSessionInfo(1, "S1", "closed", Ref(9, "X")), 4) == "available"
        assert session_status(mine, 4) == "mine"
        assert session_status(mine, 5) == "locked"


class TestEndpoint:
    def test_plain_http_gets_default_port(self):
        assert endpoint("http://erp.local", "/xmlrpc/2/common") == "http://erp.local:8069/xmlrpc/2/common"

    def test_explicit_port_and_https_untouched(self):
        assert endpoint("http://erp.local:8080/", "/x") == "http://erp.local:8080/x"
        assert endpoint("https://erp.example.com", "/x") == "https://erp.example.com/x"

    def test_invalid_url(self):
        with pytest.raises(GatewayError):
            endpoint("erp.local", "/x")

    def test_history_since(self):
        assert history_since(7, today=date(2025, 6, 15)) == "2025-06-08 00:00:00"


class FakeProxy:
    def __init__(self, server, url):
        self.server = server
        self.url = url

    def authenticate(self, db, username, password, context):
        return self.server.uid

    def execute_kw(self, db, uid, password, model, method, args, kwargs):
        self.server.calls.append((model, method))
        handler = self.server.handlers.get((model, method))
        if handler is None:
            raise xmlrpc.client.Fault(2, f"Object {model} doesn't exist")
        return handler(args, kwargs)


class FakeServer:
    def __init__(self, uid=4):
        self.uid = uid
        self.calls = []
        self.handlers = {
            ("res.users", "read"): lambda args, kwargs: [{"name": "Cashier", "login": "cashier", "email": False}],
        }

    def factory(self, url, allow_none=False):
        return FakeProxy(self, url)


def _gateway(server: FakeServer) -> OdooGateway:
    gateway = OdooGateway(proxy_factory=server.factory)
    gateway.login("http://erp.local", "db", "cashier", "secret")
    return gateway


class TestOdooGateway:
    def test_login(self):
        gateway = _gateway(FakeServer())
        assert gateway.uid == 4
        assert gateway.user.name == "Cashier"
        assert gateway.user.email == ""

    def test_wrong_password(self):
        gateway = OdooGateway(proxy_factory=FakeServer(uid=False).factory)
        with pytest.raises(AuthenticationError):
            gateway.login("http://erp.local", "db", "cashier", "bad")

    def test_calls_require_login(self):
        with pytest.raises(GatewayError, match="Not logged in"):
            OdooGateway(proxy_factory=FakeServer().factory).products()

    def test_fault_becomes_gateway_error(self):
        gateway = _gateway(FakeServer())
        with pytest.raises(GatewayError, match="product.product"):
            gateway.products()

    def test_promotions_fall_back_then_empty(self):
        server = FakeServer()
        gateway = _gateway(server)
        assert gateway.promotions() == []
        assert ("sale.coupon.program", "search_read") in server.calls
        assert ("coupon.program", "search_read") in server.calls

    def test_promotions_from_second_model(self):
        server = FakeServer()
        server.handlers[("coupon.program", "search_read")] = lambda args, kwargs: [
            {"id": 1, "name": "Happy", "discount_type": "percentage", "discount_percentage": 10}
        ]
        assert [p.name for p in _gateway(server).promotions()] == ["Happy"]

    def test_open_pos_session_creates_when_missing(self):
        server = FakeServer()
        sessions = []

        def search_sessions(args, kwargs):
            return list(sessions)

        def open_cb(args, kwargs):
            sessions.append({"id": 11, "name": "POS/11", "state": "opened", "user_id": [4, "Cashier"]})
            return True

        server.handlers[("pos.session", "search_read")] = search_sessions
        server.handlers[("pos.config", "open_session_cb")] = open_cb
        session = _gateway(server).open_pos_session(1)
        assert session == PosSessionInfo(11, "POS/11", "opened", Ref(4, "Cashier"))

    def test_pos_configs_status(self):
        server = FakeServer()
        server.handlers[("pos.config", "search_read")] = lambda args, kwargs: [
            {"id": 1, "name": "Ground", "pricelist_id": [1, "Public"], "current_session_id": False},
            {"id": 2, "name": "Bar", "pricelist_id": False, "current_session_id": [30, "POS/30"]},
        ]
        server.handlers[("pos.session", "read")] = lambda args, kwargs: [
            {"id": 30, "name": "POS/30", "state": "opened", "user_id": [9, "Other"]}
        ]
        configs = _gateway(server).pos_configs()
        assert [c.status for c in configs] == ["available", "locked"]
        assert configs[0].price_list == Ref(1, "Public")
