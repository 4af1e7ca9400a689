# backend/utils/invoice.py
from html import escape
from typing import List, Optional

from config import settings


def format_money(amount: float, currency: str = "NGN") -> str:
    return f"{currency} {amount:,.2f}"


def invoice_number(group_id: str) -> str:
    return f"INV-{group_id.replace('GRP-', '')}"


def group_totals(orders: List) -> dict:
    """Reads the group totals from the parent line, summing lines when absent."""
    parent = next((o for o in orders if o.is_parent), orders[0])
    if parent.group_total is not None:
        return {
            "sub_total": parent.group_sub_total,
            "discount": parent.group_discount,
            "tax": parent.group_tax,
            "shipping": parent.group_shipping,
            "total": parent.group_total,
        }
    return {
        "sub_total": round(sum(o.sub_total_amt for o in orders), 2),
        "discount": round(sum(o.discount_amount for o in orders), 2),
        "tax": round(sum(o.tax_amount for o in orders), 2),
        "shipping": round(sum(o.shipping_cost for o in orders), 2),
        "total": round(sum(o.total_amt for o in orders), 2),
    }


def render_invoice_html(orders: List, customer_name: str, delivery_address: Optional[str] = None,
                        sales_agent: Optional[str] = None) -> str:
    """HTML invoice for one order group, used as the email body."""
    parent = next((o for o in orders if o.is_parent), orders[0])
    currency = settings.BASE_CURRENCY
    totals = group_totals(orders)

    rows = []
    for index, o in enumerate(orders, start=1):
        option = "" if o.price_option == "regular" else f"<div style='font-size:12px;color:#666'>{escape(o.price_option)} delivery</div>"
        rows.append(
            "<tr>"
            f"<td style='padding:8px;text-align:center'>{index}</td>"
            f"<td style='padding:8px'><strong>{escape(o.product_name)}</strong>{option}</td>"
            f"<td style='padding:8px;text-align:center'>{o.quantity}</td>"
            f"<td style='padding:8px;text-align:right'>{format_money(o.unit_price, currency)}</td>"
            f"<td style='padding:8px;text-align:right'>{format_money(o.sub_total_amt, currency)}</td>"
            "</tr>"
        )

    summary = [("Subtotal", totals["sub_total"])]
    if totals["discount"]:
        summary.append(("Discount", -totals["discount"]))
    if totals["tax"]:
        summary.append(("Tax", totals["tax"]))
    if totals["shipping"]:
        summary.append(("Shipping", totals["shipping"]))
    summary_rows = "".join(
        f"<tr><td colspan='4' style='text-align:right;padding:4px'>{label}</td>"
        f"<td style='text-align:right;padding:4px'>{format_money(value, currency)}</td></tr>"
        for label, value in summary
    )

    created = parent.created_at.strftime("%d %B %Y") if parent.created_at else ""
    agent = f"<p>Sales agent: {escape(sales_agent)}</p>" if sales_agent else ""
    address = f"<p>{escape(delivery_address)}</p>" if delivery_address else ""

    return f"""<!DOCTYPE html>
<html>
<head><meta charset="UTF-8"><title>Invoice {invoice_number(parent.order_group_id)}</title></head>
<body style="font-family:Arial,sans-serif;color:#333;max-width:800px;margin:0 auto;padding:20px">
  <h2>{escape(settings.COMPANY_NAME)}</h2>
  <h3>Invoice {invoice_number(parent.order_group_id)}</h3>
  <p>Date: {created}<br>Order group: {escape(parent.order_group_id)}<br>Payment: {escape(parent.payment_method or "-")} ({escape(parent.payment_status)})</p>
  <h4>Bill to</h4>
  <p><strong>{escape(customer_name)}</strong></p>
  {address}
  {agent}
  <table style="width:100%;border-collapse:collapse">
    <thead><tr><th>#</th><th>Product</th><th>Qty</th><th>Unit price</th><th>Amount</th></tr></thead>
    <tbody>{"".join(rows)}</tbody>
    <tfoot>{summary_rows}
      <tr><td colspan="4" style="text-align:right;padding:4px"><strong>Total</strong></td>
      <td style="text-align:right;padding:4px"><strong>{format_money(totals["total"], currency)}</strong></td></tr>
    </tfoot>
  </table>
  <p>Thank you for your business.</p>
</body>
</html>"""
