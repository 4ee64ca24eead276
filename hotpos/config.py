"""Runtime configuration defaults for the backend, journal, and printing."""

from __future__ import annotations

import logging
import os
from pathlib import Path


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# HOTPOS_DEMO=1 skips the server and uses the offline demo catalog.
DEMO_MODE = os.environ.get("HOTPOS_DEMO", "").strip().lower() in {"1", "true", "yes"}

# Prefills for the sign-in form.
ODOO_URL = os.environ.get("HOTPOS_ODOO_URL", "").strip()
ODOO_DB = os.environ.get("HOTPOS_ODOO_DB", "").strip()
ODOO_USER = os.environ.get("HOTPOS_ODOO_USER", "").strip()
ODOO_PASSWORD = os.environ.get("HOTPOS_ODOO_PASSWORD", "")
ODOO_DEFAULT_PORT = 8069

TABLE_COUNT = max(1, _env_int("HOTPOS_TABLE_COUNT", 16))
TABLE_GRID_COLUMNS = 4
HISTORY_DAYS = max(1, _env_int("HOTPOS_HISTORY_DAYS", 7))

DB_PATH = _env_str("HOTPOS_DB_PATH", "data/hotpos.db")
LOG_PATH = _env_str("HOTPOS_LOG_PATH", "/tmp/hotpos-debug.log")

CURRENCY_SUFFIX = _env_str("HOTPOS_CURRENCY_SUFFIX", "đ")

PAYMENT_METHODS: dict[str, str] = {
    "cash": "Cash",
    "card": "Bank card",
    "transfer": "Bank transfer",
    "momo": "MoMo",
}

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 24
PRINTER_FONT_PATH = "/System/Library/Fonts/SFNS.ttf"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_LINE_SPACING_PX = 6


def configure_logging(path: str | None = None, level: int = logging.DEBUG) -> None:
    """Send log records to the debug file; the terminal belongs to the UI."""
    log_file = Path(path or LOG_PATH)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    root = logging.getLogger("hotpos")
    root.setLevel(level)
    root.addHandler(handler)
