"""
CLI bootstrap and health endpoint tests.
"""

from fashionhub.extensions import db
from fashionhub.models import User, Supplier


class TestSeedCommand:

    def test_seed_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["system", "seed"])
        assert result.exit_code == 0
        assert "PASS Created user: admin@fashionhub.com" in result.output

        result = runner.invoke(args=["system", "seed"])
        assert result.exit_code == 0
        assert "already exists, skipping" in result.output

        assert db.session.query(User).count() == 2
        assert db.session.query(Supplier).count() == 2

    def test_users_list(self, app, admin_user):
        result = app.test_cli_runner().invoke(args=["users", "list"])

        assert result.exit_code == 0
        assert "admin@fashionhub.test" in result.output

    def test_low_stock(self, app, make_product):
        make_product(name="Wool Socks", stock=1, min_stock=5)

        result = app.test_cli_runner().invoke(args=["inventory", "low-stock"])

        assert "Wool Socks" in result.output


class TestHealth:

    def test_health(self, client, db_session):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"] == {"products": 0, "users": 0}

    def test_unknown_route_is_json_404(self, client, db_session):
        resp = client.get("/api/nope")

        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Route not found"
