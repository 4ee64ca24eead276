"""
Tests for hotpos.session — POS selection, catalog loading and checkout.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from hotpos.demo import PRODUCTS, DemoGateway
from hotpos.errors import CheckoutNotAllowed, GatewayError
from hotpos.models import DiscountKind, Ref, TableStatus
from hotpos.ordering import add_product, set_bill_discount, set_customer
from hotpos.session import PosSession

NOW = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
WALK_IN = Ref(1, "Walk-in customer")
PHO = PRODUCTS[0]
TEA = PRODUCTS[6]


class FlakyGateway(DemoGateway):
    """Demo backend whose promotion endpoint can be switched off."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_promotions = False

    def promotions(self):
        if self.fail_promotions:
            raise GatewayError("promotion read failed")
        return super().promotions()


def _session(gateway=None, tables=6) -> PosSession:
    session = PosSession(gateway or DemoGateway(), tables, clock=lambda: NOW)
    session.login("", "", "cashier", "")
    return session


def _config(session: PosSession, config_id: int):
    return next(c for c in session.pos_configs() if c.id == config_id)


def _ready_session() -> PosSession:
    session = _session()
    session.select_pos(_config(session, 1))
    return session


class TestSelectPos:
    def test_opens_session_and_loads_catalog(self):
        session = _session()
        remote = session.select_pos(_config(session, 1))
        assert remote is not None and remote.state == "opened"
        assert session.config.id == 1
        assert len(session.catalog.products) == len(PRODUCTS)
        assert session.catalog.promotions

    def test_resumes_own_session(self):
        session = _session()
        config = _config(session, 2)
        assert session.select_pos(config) == config.session

    def test_locked_config_rejected(self):
        session = _session()
        with pytest.raises(GatewayError, match="in use"):
            session.select_pos(_config(session, 3))
        assert session.config is None

    def test_failed_catalog_keeps_previous_state(self):
        gateway = FlakyGateway()
        session = _session(gateway)
        session.select_pos(_config(session, 1))
        session.registry.open(1)
        gateway.fail_promotions = True

        with pytest.raises(GatewayError):
            session.select_pos(_config(session, 4))
        assert session.config.id == 1
        assert len(session.catalog.promotions) == 3
        assert session.registry.get(1).status is TableStatus.OCCUPIED

    def test_load_catalog_failure_keeps_old_catalog(self):
        gateway = FlakyGateway()
        session = _session(gateway)
        session.select_pos(_config(session, 1))
        before = session.catalog
        gateway.fail_promotions = True
        with pytest.raises(GatewayError):
            session.load_catalog()
        assert session.catalog is before

    def test_selecting_resets_tables(self):
        session = _ready_session()
        session.registry.open(2)
        session.select_pos(_config(session, 4))
        assert session.registry.count(TableStatus.AVAILABLE) == 6


class TestCheckout:
    def test_not_ready_raises(self):
        session = _ready_session()
        session.registry.open(1)
        add_product(session.order_for(1), PHO)
        assert not session.can_checkout(1)
        with pytest.raises(CheckoutNotAllowed):
            session.complete_payment(1, "cash")
        assert session.registry.get(1).status is TableStatus.OCCUPIED

    def test_completed_payload(self):
        session = _ready_session()
        session.registry.open(1)
        order = session.order_for(1)
        add_product(order, PHO)
        add_product(order, PHO)
        add_product(order, TEA)
        set_customer(order, WALK_IN)
        set_bill_discount(order, DiscountKind.AMOUNT, "5000")

        assert session.amount_due(1) == Decimal("90000")
        completed = session.complete_payment(1, "card")
        assert completed.table_id == 1
        assert completed.grand_total == Decimal("90000")
        assert completed.payment_method == "card"
        assert completed.completed_at == NOW
        assert completed.customer_id == WALK_IN.id
        assert [(line.product_id, line.quantity) for line in completed.lines] == [(PHO.id, 2), (TEA.id, 1)]
        assert session.registry.get(1).status is TableStatus.AVAILABLE
        assert order.is_empty

    def test_paying_from_secondary_releases_group(self):
        session = _ready_session()
        for tid in (1, 2, 3):
            session.registry.open(tid)
        session.registry.merge(1, [2, 3])
        order = session.order_for(3)
        add_product(order, PHO)
        set_customer(order, WALK_IN)

        completed = session.complete_payment(3, "cash")
        assert completed.table_id == 1
        assert session.registry.count(TableStatus.AVAILABLE) == 6
        assert session.registry.merged_tables(1) == ()

    def test_checkout_holds_tables_until_released(self):
        session = _ready_session()
        for tid in (1, 2):
            session.registry.open(tid)
        session.registry.merge(1, [2])
        order = session.order_for(2)
        add_product(order, PHO)
        set_customer(order, WALK_IN)

        completed = session.checkout(2, "transfer")
        assert completed.table_id == 1
        assert session.registry.get(1).status is TableStatus.OCCUPIED
        assert session.registry.merged_tables(1) == (2,)
        assert not order.is_empty

        assert session.release(completed) == [1, 2]
        assert session.registry.count(TableStatus.AVAILABLE) == 8
        assert order.is_empty


class TestLogoutAndHistory:
    def test_logout_clears_state(self):
        session = _ready_session()
        session.registry.open(1)
        session.logout()
        assert session.user is None
        assert session.config is None
        assert session.catalog.products == []
        assert session.registry.count(TableStatus.AVAILABLE) == 6

    def test_history_needs_config(self):
        assert _session().order_history(7) == []

    def test_history_and_lines(self):
        session = _ready_session()
        orders = session.order_history(7)
        assert len(orders) == 3
        lines = session.order_lines(orders[0])
        assert [line.id for line in lines] == list(orders[0].line_ids)
