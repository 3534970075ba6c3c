from fastapi.testclient import TestClient


class TestHealth:
    def test_liveness(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["service"] == "storefront-api"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Request-ID" in response.headers

    def test_readiness(self, client: TestClient):
        response = client.get("/api/health/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["database"]["status"] == "healthy"


class TestProductRoutes:
    """Public catalog."""

    def test_list_with_filters(self, client: TestClient, make_product):
        make_product(name="Casio Duro", brand="Casio", price=9000)
        make_product(name="Seiko 5", brand="Seiko", price=25000)
        make_product(name="Orient Star", brand="Orient", price=40000)

        response = client.get(
            "/api/products",
            params={"brands": ["Casio", "Seiko"], "sort": "price-desc", "limit": 1},
        )
        assert response.status_code == 200
        page = response.json()
        assert page["total"] == 2
        assert page["total_pages"] == 2
        assert [p["name"] for p in page["products"]] == ["Seiko 5"]

    def test_invalid_query(self, client: TestClient):
        assert client.get("/api/products", params={"sort": "random"}).status_code == 422
        assert client.get("/api/products", params={"limit": 500}).status_code == 422

    def test_facets(self, client: TestClient, make_product):
        make_product(brand="Casio", price=900)
        make_product(brand="Seiko", price=1900)
        facets = client.get("/api/products/facets").json()
        assert facets == {
            "brands": ["Casio", "Seiko"],
            "categories": ["Men's Watches"],
            "min_price": 900,
            "max_price": 1900,
        }

    def test_facets_on_empty_catalog(self, client: TestClient):
        """Should report zero prices when there are no products."""
        assert client.get("/api/products/facets").json() == {
            "brands": [],
            "categories": [],
            "min_price": 0,
            "max_price": 0,
        }

    def test_detail_with_related(self, client: TestClient, make_product):
        main = make_product()
        sibling = make_product()
        response = client.get(f"/api/products/{main.id}")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == main.id
        assert [p["id"] for p in body["related"]] == [sibling.id]

    def test_unknown_product(self, client: TestClient):
        response = client.get("/api/products/missing")
        assert response.status_code == 404
        assert response.json() == {"detail": "Product not found"}


class TestContactRoutes:
    def test_submit(self, client: TestClient):
        response = client.post(
            "/api/contact",
            json={
                "name": "Ali <b>Raza</b>",
                "email": "Ali@Example.com",
                "subject": "Strap size",
                "message": "Do you sell 22mm straps?",
            },
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_validation(self, client: TestClient):
        missing = client.post("/api/contact", json={"name": "Ali", "email": "ali@example.com"})
        assert missing.status_code == 400
        assert missing.json() == {"detail": "All fields are required"}

        bad_email = client.post(
            "/api/contact",
            json={"name": "Ali", "email": "ali", "subject": "Hi", "message": "Hello"},
        )
        assert bad_email.status_code == 400
        assert bad_email.json() == {"detail": "Invalid email address"}

    def test_client_error_report(self, client: TestClient):
        response = client.post(
            "/api/log-error", json={"message": "TypeError: x is undefined", "url": "/cart"}
        )
        assert response.json() == {"success": True}
