# Overview: Plain-text receipt formatting for completed sales.

from __future__ import annotations

from ..models import Sale

RECEIPT_WIDTH = 40


def format_money(cents: int | None) -> str:
    if cents is None:
        return "-"
    sign = "-" if cents < 0 else ""
    return f"{sign}{abs(cents) / 100:,.2f}"


def _row(left: str, right: str) -> str:
    space = max(RECEIPT_WIDTH - len(left) - len(right), 1)
    return f"{left}{' ' * space}{right}"


def format_receipt(sale: Sale, vendor_name: str | None = None) -> str:
    rows = []
    if vendor_name:
        rows.append(vendor_name.center(RECEIPT_WIDTH).rstrip())
    rows.append(_row("Ref", sale.reference_code))
    rows.append(_row("Date", sale.created_at.strftime("%Y-%m-%d %H:%M")))
    rows.append(_row("Customer", sale.customer_name))
    rows.append("-" * RECEIPT_WIDTH)

    for line in sale.lines:
        rows.append(line.name[:RECEIPT_WIDTH])
        rows.append(_row(
            f"  {line.quantity} x {format_money(line.unit_price_cents)}",
            format_money(line.line_total_cents),
        ))

    rows.append("-" * RECEIPT_WIDTH)
    rows.append(_row("Subtotal", format_money(sale.subtotal_cents)))
    rows.append(_row(f"Tax ({sale.tax_rate_bps / 100:g}%)", format_money(sale.tax_cents)))
    rows.append(_row("TOTAL", format_money(sale.total_cents)))
    rows.append(_row("Paid by", sale.payment_method))

    if sale.amount_paid_cents is not None:
        rows.append(_row("Tendered", format_money(sale.amount_paid_cents)))
        rows.append(_row("Change", format_money(sale.change_due_cents)))

    return "\n".join(rows) + "\n"
