# backend/utils/pdf.py
from io import BytesIO
from typing import List, Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from config import settings
from utils.invoice import format_money, group_totals, invoice_number

FONT_REGULAR_NAME = "Helvetica"
FONT_BOLD_NAME = "Helvetica-Bold"


def generate_group_invoice_pdf(orders: List, customer_name: str, delivery_address: Optional[str] = None) -> bytes:
    """
    Renders the invoice of one order group:
    - header with invoice number and date
    - seller (left) and buyer (right)
    - product table
    - totals
    """
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    currency = settings.BASE_CURRENCY
    parent = next((o for o in orders if o.is_parent), orders[0])

    def draw_text(x, y, text, font=FONT_REGULAR_NAME, size=10, align="left"):
        c.setFont(font, size)
        text_str = str(text) if text is not None else ""
        if align == "right":
            c.drawRightString(x, y, text_str)
        elif align == "center":
            c.drawCentredString(x, y, text_str)
        else:
            c.drawString(x, y, text_str)

    # --- Header ---
    y = height - 20 * mm
    draw_text(190 * mm, y, f"Invoice: {invoice_number(parent.order_group_id)}", font=FONT_BOLD_NAME, size=16, align="right")
    y -= 8 * mm
    created = parent.created_at.strftime("%Y-%m-%d") if parent.created_at else ""
    draw_text(190 * mm, y, f"Date: {created}", align="right")
    y -= 5 * mm
    draw_text(190 * mm, y, f"Payment: {parent.payment_method or '-'} ({parent.payment_status})", size=9, align="right")

    # --- Parties ---
    y -= 15 * mm
    draw_text(20 * mm, y, "Seller", font=FONT_BOLD_NAME, size=11)
    draw_text(110 * mm, y, "Buyer", font=FONT_BOLD_NAME, size=11)
    y -= 6 * mm
    draw_text(20 * mm, y, settings.COMPANY_NAME)
    draw_text(110 * mm, y, customer_name)
    if delivery_address:
        y -= 5 * mm
        draw_text(110 * mm, y, delivery_address, size=9)

    # --- Items table ---
    y -= 15 * mm
    columns = [(20, "#"), (30, "Product"), (120, "Qty"), (140, "Unit price"), (190, "Amount")]
    for x, label in columns:
        draw_text(x * mm, y, label, font=FONT_BOLD_NAME, align="right" if x >= 140 else "left")
    y -= 2 * mm
    c.line(20 * mm, y, 190 * mm, y)

    for index, o in enumerate(orders, start=1):
        y -= 7 * mm
        if y < 40 * mm:
            c.showPage()
            y = height - 20 * mm
        name = o.product_name if o.price_option == "regular" else f"{o.product_name} ({o.price_option})"
        draw_text(20 * mm, y, index)
        draw_text(30 * mm, y, name[:50])
        draw_text(120 * mm, y, o.quantity)
        draw_text(140 * mm, y, format_money(o.unit_price, currency), align="right")
        draw_text(190 * mm, y, format_money(o.sub_total_amt, currency), align="right")

    # --- Totals ---
    totals = group_totals(orders)
    y -= 5 * mm
    c.line(110 * mm, y, 190 * mm, y)
    for label, key in (("Subtotal", "sub_total"), ("Discount", "discount"), ("Tax", "tax"), ("Shipping", "shipping")):
        if key != "sub_total" and not totals[key]:
            continue
        y -= 6 * mm
        value = -totals[key] if key == "discount" else totals[key]
        draw_text(150 * mm, y, label, align="right")
        draw_text(190 * mm, y, format_money(value, currency), align="right")
    y -= 8 * mm
    draw_text(150 * mm, y, "Total", font=FONT_BOLD_NAME, size=12, align="right")
    draw_text(190 * mm, y, format_money(totals["total"], currency), font=FONT_BOLD_NAME, size=12, align="right")

    c.showPage()
    c.save()
    return buffer.getvalue()
