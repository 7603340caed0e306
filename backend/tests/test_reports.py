"""
Reporting tests: sales stats, best sellers and inventory valuation.
"""

import pytest

from fashionhub.services import reporting_service, sales_service, session_service
from fashionhub.services.reporting_service import ReportError

from conftest import auth_headers


@pytest.fixture
def two_sales(admin_user, sales_user, make_product):
    shirt = make_product(name="Oxford Shirt", price_cents=2000, stock=10)
    tie = make_product(name="Silk Tie", price_cents=1000, stock=10)

    sales_service.create_sale(
        user=sales_user,
        items=[{"product_id": shirt.id, "quantity": 1}, {"product_id": tie.id, "quantity": 3}],
        payment_method="CASH",
    )
    sales_service.create_sale(
        user=admin_user,
        items=[{"product_id": tie.id, "quantity": 1}],
        payment_method="UPI",
    )
    return shirt, tie


class TestSalesStats:

    def test_overall_and_by_method(self, two_sales):
        stats = reporting_service.sales_stats()

        # 5000 + 5% tax, 1000 + 5% tax
        assert stats["overall"] == {
            "total_sales": 2,
            "total_revenue_cents": 6300,
            "average_order_value_cents": 3150,
        }
        assert stats["by_payment_method"] == [
            {"payment_method": "CASH", "count": 1, "total_cents": 5250},
            {"payment_method": "UPI", "count": 1, "total_cents": 1050},
        ]

    def test_empty_range(self, two_sales):
        stats = reporting_service.sales_stats(start="2000-01-01", end="2000-12-31")

        assert stats["overall"]["total_sales"] == 0
        assert stats["overall"]["average_order_value_cents"] == 0
        assert stats["start"] == "2000-01-01T00:00:00Z"

    @pytest.mark.parametrize("start,end", [("yesterday", None), ("2026-02-01", "2026-01-01")])
    def test_bad_range(self, db_session, start, end):
        with pytest.raises(ReportError):
            reporting_service.sales_stats(start=start, end=end)


class TestTopProducts:

    def test_ranked_by_units(self, two_sales):
        shirt, tie = two_sales

        rows = reporting_service.top_products(start="2000-01-01", end="2100-01-01")["rows"]

        assert rows == [
            {"product_id": tie.id, "product_name": "Silk Tie", "units_sold": 4, "revenue_cents": 4000},
            {"product_id": shirt.id, "product_name": "Oxford Shirt", "units_sold": 1, "revenue_cents": 2000},
        ]

    def test_limit(self, two_sales):
        assert len(reporting_service.top_products(limit=1)["rows"]) == 1
        with pytest.raises(ReportError):
            reporting_service.top_products(limit=0)


class TestInventorySummary:

    def test_summary(self, make_product):
        make_product(price_cents=500, stock=4, min_stock=2)
        make_product(price_cents=300, stock=1, min_stock=2)
        make_product(price_cents=900, stock=0, min_stock=2)

        summary = reporting_service.inventory_summary()

        assert summary == {
            "product_count": 3,
            "total_units": 5,
            "stock_value_cents": 2300,
            "low_stock_count": 2,
            "out_of_stock_count": 1,
        }


class TestReportRoutes:

    def test_admin_access(self, client, admin_headers, two_sales):
        resp = client.get("/api/reports/top-products?limit=5", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["rows"][0]["units_sold"] == 4

        resp = client.get("/api/reports/inventory-summary", headers=admin_headers)
        assert resp.get_json()["product_count"] == 2

        resp = client.get("/api/sales/stats", headers=admin_headers)
        assert resp.get_json()["overall"]["total_sales"] == 2

    def test_sales_person_needs_permission(self, client, sales_headers):
        assert client.get("/api/reports/inventory-summary", headers=sales_headers).status_code == 403

    def test_reports_permission_grants_access(self, client, make_user):
        analyst = make_user(email="analyst@fashionhub.test", can_view_reports=True)
        _, token = session_service.create_session(user_id=analyst.id)

        resp = client.get("/api/reports/inventory-summary", headers=auth_headers(token))
        assert resp.status_code == 200

    def test_bad_range_is_400(self, client, admin_headers):
        resp = client.get("/api/sales/stats?start=not-a-date", headers=admin_headers)
        assert resp.status_code == 400
