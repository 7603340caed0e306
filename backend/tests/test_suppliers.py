"""
Supplier management tests (admin only).
"""

import pytest


class TestSupplierRoutes:

    def test_create_and_get(self, client, admin_headers):
        resp = client.post("/api/suppliers", headers=admin_headers, json={
            "name": "Premium Fabrics Co",
            "contact_person": "Priya Sharma",
            "email": "priya@premiumfabrics.com",
            "city": "Delhi",
            "gstin": "07AAAAA0000A1Z5",
        })

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["status"] == "active"

        resp = client.get(f"/api/suppliers/{body['id']}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["city"] == "Delhi"

    @pytest.mark.parametrize("payload,message", [
        ({}, "Missing required fields: name"),
        ({"name": "  "}, "name cannot be blank"),
        ({"name": "X", "status": "dormant"}, "status must be"),
        ({"name": "X", "email": "not-an-email"}, "email is not valid"),
        ({"name": "X", "rating": 5}, "Field not allowed: rating"),
    ])
    def test_invalid_payloads(self, client, admin_headers, payload, message):
        resp = client.post("/api/suppliers", headers=admin_headers, json=payload)

        assert resp.status_code == 400
        assert message in resp.get_json()["error"]

    def test_list_filters(self, client, admin_headers, supplier):
        client.post("/api/suppliers", headers=admin_headers, json={"name": "Old Mill", "status": "inactive"})

        resp = client.get("/api/suppliers", headers=admin_headers)
        assert [s["name"] for s in resp.get_json()["items"]] == ["Fashion Textiles Ltd", "Old Mill"]

        resp = client.get("/api/suppliers?status=active", headers=admin_headers)
        assert resp.get_json()["count"] == 1

        resp = client.get("/api/suppliers?search=mumbai", headers=admin_headers)
        assert resp.get_json()["items"][0]["id"] == supplier.id

    def test_update(self, client, admin_headers, supplier):
        resp = client.put(f"/api/suppliers/{supplier.id}", headers=admin_headers, json={"phone": "+91 98765 43210"})

        assert resp.status_code == 200
        assert resp.get_json()["phone"] == "+91 98765 43210"

    def test_delete_unused(self, client, admin_headers, supplier):
        resp = client.delete(f"/api/suppliers/{supplier.id}", headers=admin_headers)
        assert resp.status_code == 200

        resp = client.get(f"/api/suppliers/{supplier.id}", headers=admin_headers)
        assert resp.status_code == 404

    def test_delete_in_use_is_409(self, client, admin_headers, supplier, make_product, make_purchase_order):
        make_purchase_order([(make_product(), 1)])

        resp = client.delete(f"/api/suppliers/{supplier.id}", headers=admin_headers)

        assert resp.status_code == 409

    def test_sales_person_forbidden(self, client, sales_headers):
        resp = client.get("/api/suppliers", headers=sales_headers)

        assert resp.status_code == 403
        assert resp.get_json()["required_roles"] == ["admin"]
