"""Tests for the webhook management API and the HTTP front door."""


def _create(client, **body):
    body.setdefault("name", "orders")
    return client.post("/api/webhooks", json=body)


# ===================================================================
# Create
# ===================================================================


class TestCreateWebhook:
    def test_create_returns_201_with_generated_endpoint(self, client):
        resp = _create(client, name="orders")

        assert resp.status_code == 201
        assert resp.headers["content-type"].startswith("application/json")
        data = resp.json()
        assert data["name"] == "orders"
        assert data["is_active"] is True
        assert data["endpoint"].isalnum()
        assert len(data["endpoint"]) == 26
        assert isinstance(data["id"], int)
        assert data["created_at"] is not None

    def test_create_stores_description_and_secret(self, client):
        data = _create(client, name="billing", description="Stripe events", secret="s3cret").json()

        assert data["description"] == "Stripe events"
        assert data["secret"] == "s3cret"

    def test_endpoints_are_unique(self, client):
        endpoints = {_create(client, name=f"hook-{i}").json()["endpoint"] for i in range(25)}
        assert len(endpoints) == 25

    def test_missing_name_is_rejected(self, client):
        resp = client.post("/api/webhooks", json={"description": "no name"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Webhook name is required"}
        assert client.get("/api/webhooks").json() == []

    def test_empty_and_blank_names_are_rejected(self, client):
        for name in ("", "   "):
            resp = _create(client, name=name)
            assert resp.status_code == 400
            assert resp.json()["error"] == "Webhook name is required"

        assert client.get("/api/webhooks").json() == []

    def test_non_string_name_is_rejected(self, client):
        resp = _create(client, name=42)
        assert resp.status_code == 400

    def test_malformed_json_is_rejected(self, client):
        resp = client.post(
            "/api/webhooks",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request data"}


# ===================================================================
# Read / list
# ===================================================================


class TestReadWebhooks:
    def test_get_by_id(self, client):
        created = _create(client, name="orders").json()

        resp = client.get(f"/api/webhooks/{created['id']}")

        assert resp.status_code == 200
        assert resp.json()["endpoint"] == created["endpoint"]

    def test_get_unknown_id_is_404(self, client):
        resp = client.get("/api/webhooks/9999")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Webhook not found"}

    def test_non_integer_id_is_404(self, client):
        for path in ("/api/webhooks/abc", "/api/webhooks/1.5", "/api/webhooks/99999999999999999999"):
            resp = client.get(path)

            assert resp.status_code == 404
            assert resp.json() == {"error": "Webhook not found"}

    def test_list_is_newest_first_with_aggregates(self, client):
        first = _create(client, name="first").json()
        second = _create(client, name="second").json()
        client.post(f"/webhook/{first['endpoint']}", content="a")
        client.post(f"/webhook/{first['endpoint']}", content="b")

        rows = client.get("/api/webhooks").json()

        assert [row["id"] for row in rows] == [second["id"], first["id"]]
        assert rows[0]["total_requests"] == 0
        assert rows[0]["last_request"] is None
        assert rows[1]["total_requests"] == 2
        assert rows[1]["last_request"] is not None


# ===================================================================
# Update
# ===================================================================


class TestUpdateWebhook:
    def test_update_replaces_all_fields(self, client):
        created = _create(client, name="orders", description="old", secret="s").json()

        resp = client.put(
            f"/api/webhooks/{created['id']}",
            json={"name": "orders-v2", "description": "new", "secret": "t", "is_active": False},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["name"] == "orders-v2"
        assert data["description"] == "new"
        assert data["secret"] == "t"
        assert data["is_active"] is False
        assert data["endpoint"] == created["endpoint"]

    def test_omitted_fields_are_cleared(self, client):
        created = _create(client, name="orders", description="keep?", secret="s").json()
        client.put(f"/api/webhooks/{created['id']}", json={"name": "orders", "is_active": False})

        resp = client.put(f"/api/webhooks/{created['id']}", json={"name": "orders"})

        data = resp.json()
        assert data["description"] is None
        assert data["secret"] is None
        assert data["is_active"] is True

    def test_update_requires_name(self, client):
        created = _create(client).json()

        resp = client.put(f"/api/webhooks/{created['id']}", json={"description": "x"})

        assert resp.status_code == 400
        assert client.get(f"/api/webhooks/{created['id']}").json()["name"] == "orders"

    def test_unknown_id_is_checked_before_name(self, client):
        resp = client.put("/api/webhooks/9999", json={"name": ""})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Webhook not found"}

    def test_non_integer_id_is_404(self, client):
        resp = client.put("/api/webhooks/abc", json={"name": "ghost"})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Webhook not found"}

    def test_update_unknown_id_is_404(self, client):
        resp = client.put("/api/webhooks/9999", json={"name": "ghost"})
        assert resp.status_code == 404


# ===================================================================
# Delete
# ===================================================================


class TestDeleteWebhook:
    def test_delete_removes_webhook(self, client):
        created = _create(client).json()

        resp = client.delete(f"/api/webhooks/{created['id']}")

        assert resp.status_code == 200
        assert resp.json() == {"message": "Webhook deleted successfully"}
        assert client.get(f"/api/webhooks/{created['id']}").status_code == 404

    def test_delete_cascades_to_history_and_stats(self, client):
        created = _create(client).json()
        client.post(f"/webhook/{created['endpoint']}", content="hello")

        client.delete(f"/api/webhooks/{created['id']}")

        assert client.get(f"/api/webhooks/{created['id']}/requests").json() == []
        assert client.get(f"/api/webhooks/{created['id']}/stats").json() == []

    def test_delete_non_integer_id_is_404(self, client):
        resp = client.delete("/api/webhooks/abc")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Webhook not found"}

    def test_delete_unknown_id_is_404(self, client):
        resp = client.delete("/api/webhooks/9999")
        assert resp.status_code == 404


# ===================================================================
# Front door
# ===================================================================


class TestFrontDoor:
    def test_unmatched_route_is_json_404(self, client):
        resp = client.get("/nope")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Not found"}

    def test_unsupported_method_is_json_404(self, client):
        for method, path in (("PATCH", "/api/webhooks"), ("POST", "/api/webhooks/1"), ("POST", "/health")):
            resp = client.request(method, path)

            assert resp.status_code == 404
            assert resp.json() == {"error": "Not found"}

    def test_favicon_is_empty_404(self, client):
        resp = client.get("/favicon.ico")

        assert resp.status_code == 404
        assert resp.content == b""

    def test_cors_preflight(self, client):
        resp = client.options(
            "/api/webhooks",
            headers={
                "Origin": "https://dashboard.example.com",
                "Access-Control-Request-Method": "PUT",
                "Access-Control-Request-Headers": "Authorization, Content-Type",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "PUT" in resp.headers["access-control-allow-methods"]

    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    def test_metrics_exposes_ingestion_counter(self, client):
        client.post("/webhook/does-not-exist", content="x")

        resp = client.get("/metrics")

        assert resp.status_code == 200
        assert 'hookrelay_webhooks_received_total{outcome="not_found"}' in resp.text
