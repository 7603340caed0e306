"""
Draft cart tests: parked carts snapshot the catalog and never touch stock.
"""

import pytest

from fashionhub.extensions import db
from fashionhub.models import Product, DraftLine
from fashionhub.services import draft_service
from fashionhub.services.draft_service import DraftValidationError, DraftNotFoundError


class TestDraftService:

    def test_create_snapshots_catalog(self, sales_user, make_product):
        p = make_product(name="Denim Jacket", price_cents=3500, stock=1, size="M", color="Blue")

        draft = draft_service.create_draft(
            payload={"name": "Counter 2", "items": [{"product_id": p.id, "quantity": 3}]},
            user=sales_user,
        )

        line = draft.lines[0]
        assert line.product_name == "Denim Jacket"
        assert line.price_cents == 3500
        assert line.size == "M"
        assert line.color == "Blue"
        assert draft.created_by_user_id == sales_user.id
        # more than on hand is fine; nothing is reserved
        assert db.session.get(Product, p.id, populate_existing=True).stock == 1

    def test_name_required(self, sales_user):
        with pytest.raises(DraftValidationError, match="name"):
            draft_service.create_draft(payload={"name": "   "}, user=sales_user)

    @pytest.mark.parametrize("item,message", [
        ({"product_id": 999, "quantity": 1}, "not found"),
        ({"quantity": 1}, "product_id"),
        ({"product_id": "1", "quantity": 1}, "product_id"),
        ({"product_id": 1, "quantity": 0}, "quantity must be >= 1"),
    ])
    def test_invalid_items(self, sales_user, db_session, item, message):
        with pytest.raises(DraftValidationError, match=message):
            draft_service.create_draft(payload={"name": "Bad", "items": [item]}, user=sales_user)

    @pytest.mark.parametrize("payload,message", [
        ({"name": 5}, "name must be a string"),
        ({"name": "Counter", "customer_name": ["Arjun"]}, "customer_name must be a string"),
        ({"name": "Counter", "customer_phone": 9876543210}, "customer_phone must be a string"),
        ({"name": "Counter", "notes": {"gift": True}}, "notes must be a string"),
        ({"name": "Counter", "customer_phone": "9" * 40}, "customer_phone exceeds max length 32"),
    ])
    def test_text_fields_must_be_strings(self, sales_user, payload, message):
        with pytest.raises(DraftValidationError, match=message):
            draft_service.create_draft(payload=payload, user=sales_user)

    def test_line_size_must_be_string(self, sales_user, make_product):
        p = make_product()
        with pytest.raises(DraftValidationError, match=r"items\[0\]\.size"):
            draft_service.create_draft(
                payload={"name": "Bad", "items": [{"product_id": p.id, "quantity": 1, "size": 40}]},
                user=sales_user,
            )

    def test_discount_above_100(self, sales_user, make_product):
        p = make_product()
        with pytest.raises(DraftValidationError, match="discount_percent"):
            draft_service.create_draft(
                payload={"name": "Bad", "items": [{"product_id": p.id, "quantity": 1, "discount_percent": 150}]},
                user=sales_user,
            )

    def test_update_replaces_lines(self, sales_user, make_product):
        a = make_product()
        b = make_product()
        draft = draft_service.create_draft(
            payload={"name": "Fitting room", "items": [{"product_id": a.id, "quantity": 1}]},
            user=sales_user,
        )

        updated = draft_service.update_draft(
            draft_id=draft.id,
            payload={"notes": "Wants it gift wrapped", "items": [{"product_id": b.id, "quantity": 2}]},
        )

        assert updated.notes == "Wants it gift wrapped"
        assert [(line.product_id, line.quantity) for line in updated.lines] == [(b.id, 2)]
        assert db.session.query(DraftLine).count() == 1

    def test_delete(self, sales_user):
        draft = draft_service.create_draft(payload={"name": "Tmp"}, user=sales_user)
        draft_service.delete_draft(draft_id=draft.id)

        with pytest.raises(DraftNotFoundError):
            draft_service.get_draft(draft.id)


class TestDraftRoutes:

    def test_crud_roundtrip(self, client, sales_headers, make_product):
        p = make_product(price_cents=1200)

        resp = client.post("/api/drafts", headers=sales_headers, json={
            "name": "Walk-in",
            "customer_name": "Arjun",
            "items": [{"product_id": p.id, "quantity": 1, "price_cents": 1100}],
        })
        assert resp.status_code == 201
        draft_id = resp.get_json()["id"]
        assert resp.get_json()["items"][0]["price_cents"] == 1100
        assert resp.get_json()["created_by_name"] == "Sales Person"

        resp = client.get("/api/drafts", headers=sales_headers)
        assert resp.get_json()["count"] == 1

        resp = client.put(f"/api/drafts/{draft_id}", headers=sales_headers, json={"name": ""})
        assert resp.status_code == 400

        resp = client.delete(f"/api/drafts/{draft_id}", headers=sales_headers)
        assert resp.status_code == 200

        resp = client.get(f"/api/drafts/{draft_id}", headers=sales_headers)
        assert resp.status_code == 404

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/drafts").status_code == 401

    def test_wrong_type_text_fields_are_400(self, client, sales_headers):
        resp = client.post("/api/drafts", headers=sales_headers, json={"name": 5})
        assert resp.status_code == 400
        assert "name must be a string" in resp.get_json()["error"]

        resp = client.post("/api/drafts", headers=sales_headers, json={"name": "Walk-in"})
        draft_id = resp.get_json()["id"]

        resp = client.put(f"/api/drafts/{draft_id}", headers=sales_headers, json={"notes": ["a"]})
        assert resp.status_code == 400

        resp = client.get(f"/api/drafts/{draft_id}", headers=sales_headers)
        assert resp.get_json()["name"] == "Walk-in"
        assert resp.get_json()["notes"] is None
