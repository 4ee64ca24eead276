"""Top-level POS session: gateway, catalog snapshot, tables, and checkout."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from hotpos import pricing
from hotpos.errors import CheckoutNotAllowed, GatewayError
from hotpos.gateway import Gateway
from hotpos.models import (
    Catalog,
    CompletedLine,
    CompletedOrder,
    HistoryLine,
    HistoryOrder,
    Order,
    PosConfig,
    PosSessionInfo,
    UserInfo,
)
from hotpos.ordering import can_checkout
from hotpos.tables import TableRegistry

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PosSession:
    """Owns the table registry and everything loaded from the backend.

    Screens receive the session and read ``registry``/``catalog`` from it;
    there is no module-level table state.
    """

    def __init__(self, gateway: Gateway, table_count: int, clock: Callable[[], datetime] = _utc_now) -> None:
        self.gateway = gateway
        self.table_count = table_count
        self._clock = clock
        self.registry = TableRegistry(table_count, clock=clock)
        self.catalog = Catalog()
        self.user: UserInfo | None = None
        self.config: PosConfig | None = None
        self.remote_session: PosSessionInfo | None = None

    def login(self, url: str, db: str, username: str, password: str) -> UserInfo:
        self.user = self.gateway.login(url, db, username, password)
        return self.user

    def logout(self) -> None:
        self.user = None
        self.config = None
        self.remote_session = None
        self.catalog = Catalog()
        self.registry.reset()

    def pos_configs(self) -> list[PosConfig]:
        return self.gateway.pos_configs()

    def select_pos(self, config: PosConfig) -> PosSessionInfo | None:
        """Open (or resume) the remote session for ``config`` and load its catalog.

        Nothing local changes unless every backend call succeeds.
        """
        if config.is_locked:
            holder = config.session.user.name if config.session and config.session.user else "another user"
            raise GatewayError(f"{config.name} is in use by {holder}")
        session = config.session if config.status == "mine" else self.gateway.open_pos_session(config.id)
        catalog = self._fetch_catalog()
        self.config = config
        self.remote_session = session
        self.catalog = catalog
        self.registry.reset()
        logger.info("pos_selected config=%s session=%s products=%s", config.id, session.name if session else None, len(catalog.products))
        return session

    def _fetch_catalog(self) -> Catalog:
        return Catalog(
            products=self.gateway.products(),
            customers=self.gateway.customers(),
            categories=self.gateway.categories(),
            price_lists=self.gateway.price_lists(),
            promotions=self.gateway.promotions(),
        )

    def load_catalog(self) -> Catalog:
        """Refresh the catalog; on failure the previous one stays in place."""
        self.catalog = self._fetch_catalog()
        return self.catalog

    def resolve_table(self, table_id: int) -> int:
        return self.registry.resolve(table_id)

    def order_for(self, table_id: int) -> Order:
        return self.registry.order_for(table_id)

    def can_checkout(self, table_id: int) -> bool:
        return can_checkout(self.order_for(table_id))

    def amount_due(self, table_id: int) -> Decimal:
        return pricing.grand_total(self.order_for(table_id))

    def checkout(self, table_id: int, method: str) -> CompletedOrder:
        """Build the completed-order payload for ``table_id`` without releasing anything."""
        primary_id = self.resolve_table(table_id)
        order = self.order_for(primary_id)
        if not can_checkout(order):
            raise CheckoutNotAllowed(f"Table {primary_id} is not ready for payment")

        return CompletedOrder(
            table_id=primary_id,
            lines=tuple(CompletedLine(line.product.id, line.quantity, line.discount) for line in order.lines),
            bill_discount=order.bill_discount,
            grand_total=pricing.grand_total(order),
            payment_method=method,
            completed_at=self._clock(),
            customer_id=order.customer.id if order.customer else None,
            price_list_id=order.price_list.id if order.price_list else None,
            promotion_id=order.promotion.id if order.promotion else None,
        )

    def release(self, completed: CompletedOrder) -> list[int]:
        """Free the table group a settled order was served on."""
        released = self.registry.close(completed.table_id)
        logger.info(
            "payment_completed table=%s method=%s total=%s released=%s",
            completed.table_id,
            completed.payment_method,
            completed.grand_total,
            released,
        )
        return released

    def complete_payment(self, table_id: int, method: str) -> CompletedOrder:
        """Settle the order serving ``table_id`` and release its table group."""
        completed = self.checkout(table_id, method)
        self.release(completed)
        return completed

    def order_history(self, days: int) -> list[HistoryOrder]:
        if self.config is None:
            return []
        return self.gateway.order_history(self.config.id, days)

    def order_lines(self, order: HistoryOrder) -> list[HistoryLine]:
        return self.gateway.order_lines(list(order.line_ids))
