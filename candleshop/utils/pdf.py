# candleshop/utils/pdf.py
import logging
from io import BytesIO
from pathlib import Path
from typing import Mapping

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from candleshop.models.order import Order
from candleshop.utils.pricing import line_total

logger = logging.getLogger(__name__)

# Optional TTF fonts for characters outside Latin-1 (č, ć, š, ž ...)
FONT_DIR = Path(__file__).parent.parent / "assets" / "fonts"
FONT_REGULAR_PATH = FONT_DIR / "DejaVuSans.ttf"
FONT_BOLD_PATH = FONT_DIR / "DejaVuSans-Bold.ttf"

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"

PAYMENT_LABELS = {
    "cash": "Cash on delivery",
    "bank_transfer": "Bank transfer",
    "paypal": "PayPal",
    "credit_card": "Credit card",
}

_fonts_inited = False
def _init_fonts():
    """Registers the bundled TTF fonts once, keeping the built-in ones if they are missing."""
    global _fonts_inited, FONT_REGULAR_NAME, FONT_BOLD_NAME
    if _fonts_inited:
        return
    _fonts_inited = True

    if not FONT_REGULAR_PATH.exists():
        logger.debug("Font file not found at %s, using Helvetica", FONT_REGULAR_PATH)
        return

    pdfmetrics.registerFont(TTFont("DejaVuSans", str(FONT_REGULAR_PATH)))
    FONT_REGULAR_NAME = "DejaVuSans"
    if FONT_BOLD_PATH.exists():
        pdfmetrics.registerFont(TTFont("DejaVuSans-Bold", str(FONT_BOLD_PATH)))
        FONT_BOLD_NAME = "DejaVuSans-Bold"
    else:
        FONT_BOLD_NAME = FONT_REGULAR_NAME


def render_order_invoice(order: Order, store: Mapping[str, str]) -> bytes:
    """
    Renders an order confirmation / invoice as PDF:
    - header with order number and date
    - seller (store settings) on the left, buyer (shipping address) on the right
    - item table
    - subtotal, shipping and total
    """
    _init_fonts()

    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    width, height = A4

    def draw_text(x, y, text, font=None, size=10, align="left"):
        c.setFont(font or FONT_REGULAR_NAME, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        elif align == "center":
            c.drawCentredString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    # --- 1. HEADER ---
    y = height - 20 * mm
    draw_text(190 * mm, y, f"Invoice for order #{order.id}", font=FONT_BOLD_NAME, size=16, align="right")
    y -= 8 * mm
    created = order.created_at.strftime("%d.%m.%Y") if order.created_at else ""
    draw_text(190 * mm, y, f"Date: {created}", size=10, align="right")

    y -= 6 * mm
    c.setLineWidth(0.5)
    c.line(20 * mm, y, 190 * mm, y)
    y -= 10 * mm

    # --- 2. SELLER vs BUYER ---
    column_top = y
    draw_text(20 * mm, y, "SELLER:", font=FONT_BOLD_NAME)
    y -= 5 * mm
    for line in (
        store.get("store_legal_name") or store.get("store_name"),
        store.get("address"),
        " ".join(filter(None, [store.get("postalCode"), store.get("city")])),
        f"Tax ID: {store['store_tax_id']}" if store.get("store_tax_id") else None,
        store.get("email"),
    ):
        if line:
            draw_text(20 * mm, y, line)
            y -= 5 * mm
    seller_bottom = y

    y = column_top
    draw_text(110 * mm, y, "SHIP TO:", font=FONT_BOLD_NAME)
    y -= 5 * mm
    buyer = order.user
    name = " ".join(filter(None, [getattr(buyer, "first_name", None), getattr(buyer, "last_name", None)]))
    for line in (
        name or getattr(buyer, "username", None),
        order.shipping_address,
        " ".join(filter(None, [order.shipping_postal_code, order.shipping_city])),
        order.shipping_country,
    ):
        if line:
            draw_text(110 * mm, y, line)
            y -= 5 * mm

    y = min(y, seller_bottom) - 10 * mm

    # --- 3. ITEMS ---
    draw_text(20 * mm, y, "Product", font=FONT_BOLD_NAME)
    draw_text(125 * mm, y, "Qty", font=FONT_BOLD_NAME, align="right")
    draw_text(155 * mm, y, "Price", font=FONT_BOLD_NAME, align="right")
    draw_text(190 * mm, y, "Total", font=FONT_BOLD_NAME, align="right")
    y -= 3 * mm
    c.line(20 * mm, y, 190 * mm, y)
    y -= 6 * mm

    for it in order.items:
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
        variant = ", ".join(filter(None, [it.scent_name, it.color_name]))
        label = f"{it.product_name} ({variant})" if variant else it.product_name
        draw_text(20 * mm, y, label[:60])
        draw_text(125 * mm, y, it.quantity, align="right")
        draw_text(155 * mm, y, f"{it.price} EUR", align="right")
        draw_text(190 * mm, y, f"{line_total(it.price, it.quantity)} EUR", align="right")
        y -= 6 * mm

    # --- 4. SUMMARY ---
    y -= 4 * mm
    c.line(110 * mm, y, 190 * mm, y)
    y -= 6 * mm
    for label, amount, font in (
        ("Subtotal", order.subtotal, None),
        ("Shipping", order.shipping_cost, None),
        ("Total", order.total, FONT_BOLD_NAME),
    ):
        draw_text(150 * mm, y, f"{label}:", font=font, align="right")
        draw_text(190 * mm, y, f"{amount} EUR", font=font, align="right")
        y -= 6 * mm

    y -= 4 * mm
    draw_text(20 * mm, y, f"Payment method: {PAYMENT_LABELS.get(order.payment_method, order.payment_method)}")

    c.showPage()
    c.save()
    return buf.getvalue()
