# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from fashionhub.extensions import db
from fashionhub.models import Sale, SaleLine, Product
from fashionhub.time_utils import parse_iso_datetime, to_utc_z


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


def _parse_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    try:
        start_dt = parse_iso_datetime(start) if start else None
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ReportError("start and end must be ISO-8601 datetimes")
    if start_dt and end_dt and start_dt > end_dt:
        raise ReportError("start must be before end")
    return start_dt, end_dt


def _filter_range(query, start_dt, end_dt):
    if start_dt:
        query = query.filter(Sale.created_at >= start_dt)
    if end_dt:
        query = query.filter(Sale.created_at <= end_dt)
    return query


def sales_stats(*, start: str | None = None, end: str | None = None) -> dict:
    """Overall sales totals plus a breakdown by payment method."""
    start_dt, end_dt = _parse_range(start, end)

    overall = _filter_range(
        db.session.query(
            func.count(Sale.id).label("total_sales"),
            func.coalesce(func.sum(Sale.total_cents), 0).label("total_revenue_cents"),
        ),
        start_dt,
        end_dt,
    ).one()

    total_sales = int(overall.total_sales or 0)
    total_revenue = int(overall.total_revenue_cents or 0)

    by_method = _filter_range(
        db.session.query(
            Sale.payment_method,
            func.count(Sale.id).label("count"),
            func.coalesce(func.sum(Sale.total_cents), 0).label("total_cents"),
        ),
        start_dt,
        end_dt,
    ).group_by(Sale.payment_method).order_by(Sale.payment_method.asc()).all()

    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "overall": {
            "total_sales": total_sales,
            "total_revenue_cents": total_revenue,
            "average_order_value_cents": (total_revenue // total_sales) if total_sales else 0,
        },
        "by_payment_method": [
            {
                "payment_method": row.payment_method,
                "count": int(row.count or 0),
                "total_cents": int(row.total_cents or 0),
            }
            for row in by_method
        ],
    }


def top_products(*, start: str | None = None, end: str | None = None, limit: int = 10) -> dict:
    """Best sellers by units sold (ties broken by revenue)."""
    if limit < 1 or limit > 100:
        raise ReportError("limit must be between 1 and 100")
    start_dt, end_dt = _parse_range(start, end)

    units = func.coalesce(func.sum(SaleLine.quantity), 0)
    revenue = func.coalesce(func.sum(SaleLine.line_total_cents), 0)

    query = db.session.query(
        SaleLine.product_id,
        func.max(SaleLine.product_name).label("product_name"),
        units.label("units_sold"),
        revenue.label("revenue_cents"),
    ).join(Sale, SaleLine.sale_id == Sale.id)
    query = _filter_range(query, start_dt, end_dt)

    rows = (
        query.group_by(SaleLine.product_id)
        .order_by(units.desc(), revenue.desc(), SaleLine.product_id.asc())
        .limit(limit)
        .all()
    )
    return {
        "start": to_utc_z(start_dt) if start_dt else None,
        "end": to_utc_z(end_dt) if end_dt else None,
        "rows": [
            {
                "product_id": row.product_id,
                "product_name": row.product_name,
                "units_sold": int(row.units_sold or 0),
                "revenue_cents": int(row.revenue_cents or 0),
            }
            for row in rows
        ],
    }


def inventory_summary() -> dict:
    row = db.session.query(
        func.count(Product.id).label("product_count"),
        func.coalesce(func.sum(Product.stock), 0).label("total_units"),
        func.coalesce(func.sum(Product.stock * Product.price_cents), 0).label("stock_value_cents"),
    ).one()

    low_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.stock <= Product.min_stock
    ).scalar()
    out_of_stock_count = db.session.query(func.count(Product.id)).filter(
        Product.stock == 0
    ).scalar()

    return {
        "product_count": int(row.product_count or 0),
        "total_units": int(row.total_units or 0),
        "stock_value_cents": int(row.stock_value_cents or 0),
        "low_stock_count": int(low_stock_count or 0),
        "out_of_stock_count": int(out_of_stock_count or 0),
    }
