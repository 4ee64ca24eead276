"""Entry point for the HotPOS Textual app."""

from __future__ import annotations

import logging

from hotpos.config import DB_PATH, DEMO_MODE, ODOO_DB, ODOO_PASSWORD, ODOO_URL, ODOO_USER, TABLE_COUNT, configure_logging
from hotpos.demo import DemoGateway
from hotpos.gateway import OdooGateway
from hotpos.models import Credentials
from hotpos.pos_app import HotPosApp
from hotpos.session import PosSession

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the Textual application."""
    configure_logging()
    gateway = DemoGateway() if DEMO_MODE else OdooGateway()
    logger.info("startup backend=%s tables=%s", type(gateway).__name__, TABLE_COUNT)
    session = PosSession(gateway, TABLE_COUNT)
    credentials = Credentials(url=ODOO_URL, db=ODOO_DB, username=ODOO_USER, password=ODOO_PASSWORD)
    HotPosApp(session, credentials, db_path=DB_PATH, login_required=not DEMO_MODE).run()


if __name__ == "__main__":
    main()
