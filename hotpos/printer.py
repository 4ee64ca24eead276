"""Thermal receipt printing over ESC/POS USB."""

from __future__ import annotations

import os
from pathlib import Path

from hotpos.config import (
    PAYMENT_METHODS,
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_LINE_SPACING_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from hotpos.models import Catalog, CompletedOrder, OrderLine
from hotpos.pricing import line_total
from hotpos.rendering import format_discount, format_price

_RULE = "-" * 32
_FONT_OVERRIDE_ENV = "HOTPOS_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/TTF/DejaVuSans.ttf",
    "/usr/share/fonts/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/noto/NotoSans-Regular.ttf",
    "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
)


def receipt_lines(completed: CompletedOrder, catalog: Catalog, title: str = "") -> list[str]:
    """Build the plain-text body of a receipt."""
    lines: list[str] = []
    if title:
        lines.append(title)
    lines.append(f"Table {completed.table_id}")
    lines.append(completed.completed_at.astimezone().strftime("%d/%m/%Y %H:%M"))
    customer = next((c for c in catalog.customers if c.id == completed.customer_id), None)
    if customer is not None:
        lines.append(f"Customer: {customer.name}")
    lines.append(_RULE)

    for line in completed.lines:
        product = catalog.product(line.product_id)
        if product is None:
            lines.append(f"{line.quantity} x #{line.product_id}")
            continue
        lines.append(f"{line.quantity} x {product.name}")
        priced = OrderLine(product=product, quantity=line.quantity, discount=line.line_discount)
        discount = format_discount(line.line_discount)
        suffix = f" ({discount})" if discount else ""
        lines.append(f"    {format_price(line_total(priced))}{suffix}")

    lines.append(_RULE)
    bill_discount = format_discount(completed.bill_discount)
    if bill_discount:
        lines.append(f"Bill discount {bill_discount}")
    lines.append(f"TOTAL {format_price(completed.grand_total)}")
    lines.append(f"Paid by {PAYMENT_METHODS.get(completed.payment_method, completed.payment_method)}")
    return lines


def resolve_printer_font_path() -> str:
    """
    Resolve a printer font path.

    Resolution order:
    1. HOTPOS_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise RuntimeError(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer unavailable: {exc}")
    return (True, "Printer ready")


def render_receipt(lines: list[str], font: object) -> object:
    """Draw all lines onto one 1-bit canvas at the printer's width."""
    from PIL import Image, ImageDraw

    measure = ImageDraw.Draw(Image.new("1", (1, 1), color=1))
    slot = max(measure.textbbox((0, 0), "Ág", font=font)[3], 1) + PRINTER_LINE_SPACING_PX
    img = Image.new("1", (PRINTER_WIDTH_PX, slot * max(1, len(lines)) + PRINTER_LINE_SPACING_PX), color=1)
    draw = ImageDraw.Draw(img)
    y = PRINTER_LINE_SPACING_PX
    for line in lines:
        draw.text((PRINTER_LEFT_INDENT_PX, y), line, font=font, fill=0)
        y += slot
    return img


def print_receipt(lines: list[str]) -> None:
    """Print a receipt and cut the paper."""
    if not lines:
        return
    try:
        from escpos.printer import Usb
        from PIL import ImageFont
    except Exception as exc:
        raise RuntimeError(f"Printer dependencies unavailable: {exc}") from exc

    printer = Usb(PRINTER_USB_VENDOR_ID, PRINTER_USB_PRODUCT_ID)
    font = ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    printer.image(render_receipt(lines, font))
    printer.cut()
