"""
POS checkout tests.

Verifies:
- Totals, discounts and GST are computed server-side in integer cents
- Stock is decremented atomically with the sale insert
- Insufficient stock and discount caps reject the whole sale
- Sales visibility per role
"""

import pytest

from fashionhub.extensions import db
from fashionhub.models import Product, Sale
from fashionhub.services import sales_service
from fashionhub.services.sales_service import SaleError
from fashionhub.services.stock_service import InsufficientStockError
from fashionhub.time_utils import utcnow


def _stock(product_id: int) -> int:
    return db.session.get(Product, product_id, populate_existing=True).stock


class TestCheckoutService:

    def test_totals_and_stock(self, sales_user, make_product):
        p = make_product(price_cents=1000, stock=5)

        sale = sales_service.create_sale(
            user=sales_user,
            items=[{"product_id": p.id, "quantity": 2, "discount_percent": 10}],
            payment_method="CASH",
        )

        assert sale.invoice_number == f"INV-{utcnow():%y%m}-00001"
        assert sale.subtotal_cents == 2000
        assert sale.discount_cents == 200
        assert sale.tax_cents == 90
        assert sale.total_cents == 1890
        assert sale.sales_person_name == "Sales Person"
        assert sale.lines[0].line_total_cents == 1800
        assert _stock(p.id) == 3

    def test_tax_rounds_half_up(self, sales_user, make_product):
        p = make_product(price_cents=1010, stock=1)

        sale = sales_service.create_sale(
            user=sales_user,
            items=[{"product_id": p.id, "quantity": 1}],
            payment_method="UPI",
            upi_transaction_id="UPI123",
        )

        assert sale.tax_cents == 51
        assert sale.total_cents == 1061
        assert sale.upi_transaction_id == "UPI123"

    def test_insufficient_stock_rejects_whole_sale(self, sales_user, make_product):
        ok = make_product(stock=10)
        short = make_product(name="Linen Trousers", stock=1)

        with pytest.raises(InsufficientStockError) as exc_info:
            sales_service.create_sale(
                user=sales_user,
                items=[
                    {"product_id": ok.id, "quantity": 1},
                    {"product_id": short.id, "quantity": 2},
                ],
                payment_method="CASH",
            )

        assert exc_info.value.details == {"product_id": short.id, "available": 1, "required": 2}
        assert _stock(ok.id) == 10
        assert _stock(short.id) == 1
        assert db.session.query(Sale).count() == 0

    def test_quantities_for_same_product_are_aggregated(self, sales_user, make_product):
        p = make_product(stock=5)

        with pytest.raises(InsufficientStockError):
            sales_service.create_sale(
                user=sales_user,
                items=[
                    {"product_id": p.id, "quantity": 3},
                    {"product_id": p.id, "quantity": 3},
                ],
                payment_method="CASH",
            )
        assert _stock(p.id) == 5

    def test_sales_person_discount_cap(self, sales_user, make_product):
        p = make_product(stock=5, max_discount_for_sales=30)

        with pytest.raises(SaleError, match="exceeds maximum 10%"):
            sales_service.create_sale(
                user=sales_user,
                items=[{"product_id": p.id, "quantity": 1, "discount_percent": 15}],
                payment_method="CASH",
            )
        assert _stock(p.id) == 5

    def test_admin_discount_cap_from_product(self, admin_user, make_product):
        p = make_product(stock=5, max_discount_for_admin=20)

        sale = sales_service.create_sale(
            user=admin_user,
            items=[{"product_id": p.id, "quantity": 1, "discount_percent": 20}],
            payment_method="CASH",
        )
        assert sale.discount_cents == 200

        with pytest.raises(SaleError):
            sales_service.create_sale(
                user=admin_user,
                items=[{"product_id": p.id, "quantity": 1, "discount_percent": 21}],
                payment_method="CASH",
            )

    def test_user_without_discount_permission(self, make_user, make_product):
        user = make_user(email="nodiscount@fashionhub.test", can_discount=False)
        p = make_product(stock=5)

        with pytest.raises(SaleError):
            sales_service.create_sale(
                user=user,
                items=[{"product_id": p.id, "quantity": 1, "discount_percent": 1}],
                payment_method="CASH",
            )

    def test_product_default_discount(self, sales_user, make_product):
        p = make_product(price_cents=1000, stock=5, discount_enabled=True, discount_percent=5)

        sale = sales_service.create_sale(
            user=sales_user,
            items=[{"product_id": p.id, "quantity": 1}],
            payment_method="CASH",
        )

        assert sale.lines[0].discount_percent == 5
        assert sale.discount_cents == 50

    @pytest.mark.parametrize("payment_method", ["CHEQUE", None, "cash"])
    def test_invalid_payment_method(self, sales_user, make_product, payment_method):
        p = make_product(stock=5)
        with pytest.raises(SaleError, match="payment_method"):
            sales_service.create_sale(
                user=sales_user,
                items=[{"product_id": p.id, "quantity": 1}],
                payment_method=payment_method,
            )

    def test_unknown_product(self, sales_user):
        with pytest.raises(SaleError, match="not found"):
            sales_service.create_sale(
                user=sales_user,
                items=[{"product_id": 777, "quantity": 1}],
                payment_method="CASH",
            )

    def test_invoice_numbers_are_sequential(self, sales_user, make_product):
        p = make_product(stock=5)
        numbers = [
            sales_service.create_sale(
                user=sales_user,
                items=[{"product_id": p.id, "quantity": 1}],
                payment_method="CASH",
            ).invoice_number
            for _ in range(3)
        ]
        assert [n[-5:] for n in numbers] == ["00001", "00002", "00003"]


class TestSalesRoutes:

    def test_checkout_endpoint(self, client, sales_headers, make_product):
        p = make_product(price_cents=50000, stock=2)

        resp = client.post("/api/sales", headers=sales_headers, json={
            "items": [{"product_id": p.id, "quantity": 1}],
            "payment_method": "CREDIT_CARD",
            "card_last4": "4242",
            "customer_name": "Meera",
        })

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["total_cents"] == 52500
        assert body["card_last4"] == "4242"
        assert _stock(p.id) == 1

    def test_checkout_insufficient_stock_is_400(self, client, sales_headers, make_product):
        p = make_product(stock=0)

        resp = client.post("/api/sales", headers=sales_headers, json={
            "items": [{"product_id": p.id, "quantity": 1}],
            "payment_method": "CASH",
        })

        assert resp.status_code == 400
        assert resp.get_json()["details"]["available"] == 0

    @pytest.mark.parametrize("extra, field", [
        ({"payment_method": "CREDIT_CARD", "card_last4": 4242}, "card_last4"),
        ({"payment_method": "UPI", "upi_transaction_id": 123}, "upi_transaction_id"),
        ({"payment_method": "CASH", "customer_name": ["Meera"]}, "customer_name"),
        ({"payment_method": "CASH", "customer_phone": 9876543210}, "customer_phone"),
        ({"payment_method": ["CASH"]}, "payment_method"),
    ])
    def test_checkout_wrong_type_text_fields_are_400(self, client, sales_headers, make_product, extra, field):
        p = make_product(stock=2)

        resp = client.post("/api/sales", headers=sales_headers, json={
            "items": [{"product_id": p.id, "quantity": 1}],
            **extra,
        })

        assert resp.status_code == 400
        assert field in resp.get_json()["error"]
        assert _stock(p.id) == 2

    def test_checkout_wrong_type_line_size_is_400(self, client, sales_headers, make_product):
        p = make_product(stock=2)

        resp = client.post("/api/sales", headers=sales_headers, json={
            "items": [{"product_id": p.id, "quantity": 1, "size": 42}],
            "payment_method": "CASH",
        })

        assert resp.status_code == 400
        assert "items[0].size" in resp.get_json()["error"]

    def test_sales_person_sees_only_own_sales(self, client, admin_user, sales_user, admin_headers, sales_headers, make_product):
        p = make_product(stock=10)
        own = sales_service.create_sale(
            user=sales_user, items=[{"product_id": p.id, "quantity": 1}], payment_method="CASH"
        )
        other = sales_service.create_sale(
            user=admin_user, items=[{"product_id": p.id, "quantity": 1}], payment_method="CASH"
        )

        resp = client.get("/api/sales", headers=sales_headers)
        assert [s["id"] for s in resp.get_json()["items"]] == [own.id]

        resp = client.get("/api/sales", headers=admin_headers)
        assert resp.get_json()["count"] == 2

        resp = client.get(f"/api/sales/{other.id}", headers=sales_headers)
        assert resp.status_code == 404

        resp = client.get(f"/api/sales/{other.id}", headers=admin_headers)
        assert resp.status_code == 200

    def test_stats_requires_reports_permission(self, client, sales_headers, admin_headers):
        assert client.get("/api/sales/stats", headers=sales_headers).status_code == 403
        assert client.get("/api/sales/stats", headers=admin_headers).status_code == 200
