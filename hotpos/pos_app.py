"""Main Textual app class."""

from __future__ import annotations

import asyncio
import logging
import sqlite3

from textual import work
from textual.app import App
from textual.binding import Binding

from hotpos.errors import AuthenticationError, CheckoutNotAllowed, GatewayError
from hotpos.login_modal import LoginModal
from hotpos.models import Credentials, PosConfig, TableStatus
from hotpos.order_screen import OrderScreen
from hotpos.payment_modal import PaymentModal
from hotpos.persistence import (
    RECEIPT_PRINT_FAILED,
    RECEIPT_PRINTED,
    bootstrap_schema,
    last_login,
    remember_login,
    save_completed_order,
    update_receipt_status,
)
from hotpos.picker_modal import CANCELLED, PickerModal, PickerRow
from hotpos.printer import check_printer_dependencies, print_receipt, receipt_lines
from hotpos.rendering import format_price
from hotpos.session import PosSession
from hotpos.tables_screen import TablesScreen

logger = logging.getLogger(__name__)

_CONFIG_STATUS_DETAIL = {
    "available": "",
    "mine": "your open session",
    "locked": "in use",
}


class HotPosApp(App):
    """Restaurant front end: table floor, order editing and checkout."""

    TITLE = "HotPOS"
    SUB_TITLE = "Connecting..."

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(
        self,
        session: PosSession,
        credentials: Credentials,
        db_path: str | None = None,
        print_receipts: bool = True,
        login_required: bool = False,
    ) -> None:
        super().__init__()
        self.session = session
        self.credentials = credentials
        self.db_path = db_path
        self.print_receipts = print_receipts
        self.login_required = login_required
        self.printer_ready = False
        self.tables_screen: TablesScreen | None = None

    def on_mount(self) -> None:
        bootstrap_schema(self.db_path)
        if self.print_receipts:
            self.printer_ready, msg = check_printer_dependencies()
        else:
            msg = "Printing disabled"
        logger.info("app_mount printer_status=%r", msg)
        if self.login_required:
            self.credentials = self._with_remembered_login(self.credentials)
        self.tables_screen = TablesScreen(self.session)
        self.tables_screen.set_status(msg)
        self.push_screen(self.tables_screen)
        self.connect()

    def set_status(self, message: str) -> None:
        if self.tables_screen is not None:
            self.tables_screen.set_status(message)

    def _with_remembered_login(self, credentials: Credentials) -> Credentials:
        """Fill blank server, database, and user fields from the last sign-in."""
        try:
            remembered = last_login(self.db_path)
        except sqlite3.Error as exc:
            logger.warning("last_login_unreadable error=%r", exc)
            return credentials
        if remembered is None:
            return credentials
        url, db, username = remembered
        return Credentials(
            url=credentials.url or url,
            db=credentials.db or db,
            username=credentials.username or username,
            password=credentials.password,
        )

    def request_login(self, error: str = "") -> None:
        self.sub_title = "Sign in"
        self.push_screen(LoginModal(self.credentials, error), self._on_login_submitted)

    def _on_login_submitted(self, credentials: Credentials | None) -> None:
        if credentials is None:
            self.sub_title = "Offline"
            self.set_status("Not signed in (L to sign in)")
            return
        self.credentials = credentials
        self.connect()

    @work(exclusive=True, group="backend")
    async def connect(self) -> None:
        if self.login_required and not (self.credentials.is_complete and self.credentials.password):
            self.request_login()
            return

        creds = self.credentials
        self.sub_title = "Connecting..."
        try:
            user = await asyncio.to_thread(self.session.login, creds.url, creds.db, creds.username, creds.password)
            configs = await asyncio.to_thread(self.session.pos_configs)
        except AuthenticationError as exc:
            logger.warning("login_rejected user=%s", creds.username)
            self.request_login(str(exc))
            return
        except GatewayError as exc:
            logger.warning("connect_failed error=%r", exc)
            if self.login_required:
                self.request_login(str(exc))
                return
            self.sub_title = "Offline"
            self.set_status(f"Login failed: {exc} (L to retry)")
            return

        logger.info("connected user=%s configs=%s", user.login, len(configs))
        if self.login_required:
            try:
                remember_login(creds.url, creds.db, creds.username, self.db_path)
            except sqlite3.Error as exc:
                logger.warning("remember_login_failed error=%r", exc)
        self.sub_title = user.name
        if not configs:
            self.set_status("No POS configurations available")
            return
        self.push_screen(PickerModal("Select POS", self._config_rows(configs)), self._on_config_chosen)

    def _config_rows(self, configs: list[PosConfig]) -> list[PickerRow]:
        rows = []
        for config in configs:
            detail = _CONFIG_STATUS_DETAIL.get(config.status, config.status)
            if config.is_locked and config.session and config.session.user:
                detail = f"in use by {config.session.user.name}"
            rows.append(PickerRow(config, config.name, detail, enabled=not config.is_locked))
        return rows

    def _on_config_chosen(self, choice: PosConfig) -> None:
        if choice is CANCELLED:
            if self.session.config is None:
                self.set_status("No POS selected (L to choose)")
            return
        self.select_pos(choice)

    @work(exclusive=True, group="backend")
    async def select_pos(self, config: PosConfig) -> None:
        self.set_status(f"Opening {config.name}...")
        try:
            await asyncio.to_thread(self.session.select_pos, config)
        except GatewayError as exc:
            logger.warning("select_pos_failed config=%s error=%r", config.id, exc)
            self.set_status(f"Could not open {config.name}: {exc}")
            return
        self.sub_title = f"{config.name} · {self.session.user.name if self.session.user else ''}"
        self.set_status(f"{config.name} ready, {len(self.session.catalog.products)} products")

    def action_switch_pos(self) -> None:
        """Drop the current POS and start over from login.

        Open tables are discarded, so the operator confirms first when any
        table is in use.
        """
        in_use = self.session.registry.count(TableStatus.OCCUPIED, TableStatus.MERGED)
        if not in_use:
            self._switch_pos()
            return
        rows = [
            PickerRow(False, "Keep working"),
            PickerRow(True, "Discard open tables and switch", f"{in_use} in use"),
        ]
        self.push_screen(PickerModal("Switch POS / user?", rows), self._on_switch_confirmed)

    def _on_switch_confirmed(self, choice: bool) -> None:
        if choice is True:
            self._switch_pos()

    def _switch_pos(self) -> None:
        self.session.logout()
        self.set_status("Logged out")
        if self.login_required:
            self.request_login()
        else:
            self.connect()

    def open_order(self, table_id: int) -> None:
        if self.session.config is None:
            self.set_status("Select a POS first (L)")
            return
        self.push_screen(OrderScreen(self.session, table_id))

    def start_payment(self, table_id: int, table_label: str) -> None:
        order = self.session.order_for(table_id)

        def settle(method: str | None) -> None:
            if method is None:
                return
            self._settle(table_id, method)

        self.push_screen(PaymentModal(table_label, order), settle)

    def _settle(self, table_id: int, method: str) -> None:
        """Journal the payment, then release the tables, then print."""
        catalog = self.session.catalog
        try:
            completed = self.session.checkout(table_id, method)
        except CheckoutNotAllowed as exc:
            self.notify(str(exc), severity="warning")
            return

        try:
            receipt = save_completed_order(completed, self.db_path)
        except sqlite3.Error as exc:
            logger.error("receipt_save_failed table=%s error=%r", completed.table_id, exc)
            message = f"Payment not recorded, table {completed.table_id} kept open: {exc}"
            self.notify(message, severity="error")
            self.set_status(message)
            return

        self.session.release(completed)
        if isinstance(self.screen, OrderScreen):
            self.pop_screen()

        paid = f"Table {completed.table_id} paid {format_price(completed.grand_total)}"
        if not self.print_receipts:
            self.set_status(f"{paid}, receipt {receipt.receipt_id[:8]} saved")
            return

        title = self.session.config.name if self.session.config else ""
        try:
            print_receipt(receipt_lines(completed, catalog, title=title))
        except Exception as exc:
            self._mark_receipt(receipt.receipt_id, RECEIPT_PRINT_FAILED)
            logger.warning("receipt_print_failed receipt=%s error=%r", receipt.receipt_id, exc)
            self.set_status(f"{paid}, saved {receipt.receipt_id[:8]} but print failed: {exc}")
            return

        self._mark_receipt(receipt.receipt_id, RECEIPT_PRINTED)
        logger.info("receipt_printed receipt=%s", receipt.receipt_id)
        self.set_status(f"{paid}, receipt {receipt.receipt_id[:8]} printed")

    def _mark_receipt(self, receipt_id: str, status: str) -> None:
        try:
            update_receipt_status(receipt_id, status, self.db_path)
        except sqlite3.Error as exc:
            logger.error("receipt_status_failed receipt=%s status=%s error=%r", receipt_id, status, exc)
