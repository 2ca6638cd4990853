# Overview: Read-side queries over the vendor's sales ledger.

"""
Sales are written only by checkout_service.finalize_sale; this module
never updates or deletes them.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Sale


class SaleNotFound(Exception):
    """Sale does not exist for this vendor."""


def list_sales(vendor_id: int, page: int | None = None, per_page: int | None = None) -> dict:
    """Vendor's sales, newest first, with optional pagination."""
    base_query = (
        db.session.query(Sale)
        .filter(Sale.vendor_id == vendor_id)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
    )

    if page is None:
        sales = base_query.all()
        return {
            "items": [s.to_dict(include_lines=False) for s in sales],
            "count": len(sales),
        }

    per_page = max(min(per_page or 20, 100), 1)  # Default 20, range 1-100
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    sales = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [s.to_dict(include_lines=False) for s in sales],
        "count": len(sales),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_sale(vendor_id: int, sale_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id, vendor_id=vendor_id).first()
    if sale is None:
        raise SaleNotFound(f"Sale {sale_id} not found")
    return sale
