from fastapi.testclient import TestClient

from tests.fixtures.core import TEST_PASSWORD


class TestAuthRoutes:
    """Signup, login and the bearer-token guard."""

    def test_signup_returns_token(self, client: TestClient):
        response = client.post(
            "/api/auth/signup",
            json={"email": "New@Example.com", "password": TEST_PASSWORD, "full_name": "Sara"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "new@example.com"
        assert "password_hash" not in data["user"]

        me = client.get(
            "/api/auth/me", headers={"Authorization": f"Bearer {data['access_token']}"}
        )
        assert me.status_code == 200
        assert me.json()["user"]["full_name"] == "Sara"

    def test_signup_errors(self, client: TestClient, customer):
        duplicate = client.post(
            "/api/auth/signup", json={"email": customer.email, "password": TEST_PASSWORD}
        )
        assert duplicate.status_code == 409

        weak = client.post(
            "/api/auth/signup", json={"email": "weak@example.com", "password": "password"}
        )
        assert weak.status_code == 400
        assert "uppercase" in weak.json()["detail"]

    def test_login(self, client: TestClient, customer):
        response = client.post(
            "/api/auth/login", json={"email": "ayesha@example.com", "password": TEST_PASSWORD}
        )
        assert response.status_code == 200
        assert response.json()["user"]["id"] == customer.id

        failed = client.post(
            "/api/auth/login", json={"email": "ayesha@example.com", "password": "Wr0ng!pass"}
        )
        assert failed.status_code == 401
        assert failed.json() == {"detail": "Invalid email or password"}

    def test_change_password(self, client: TestClient, customer, customer_headers):
        response = client.post(
            "/api/auth/change-password",
            headers=customer_headers,
            json={"current_password": TEST_PASSWORD, "new_password": "N3w!Password"},
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        login = client.post(
            "/api/auth/login", json={"email": customer.email, "password": "N3w!Password"}
        )
        assert login.status_code == 200

    def test_missing_or_bad_token(self, client: TestClient):
        assert client.get("/api/auth/me").json() == {"detail": "Missing Bearer token"}
        assert client.get("/api/auth/me").status_code == 401

        bad = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
        assert bad.status_code == 401

    def test_token_for_deleted_user(self, client: TestClient, jwt_generator):
        token = jwt_generator.generate_jwt(subject="ghost-user")
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json() == {"detail": "User not found"}


class TestAdminGuard:
    def test_customers_are_forbidden(self, client: TestClient, customer_headers):
        response = client.get("/api/admin/stats", headers=customer_headers)
        assert response.status_code == 403
        assert response.json() == {"detail": "Forbidden: Admin access required"}

    def test_role_comes_from_database(
        self, client: TestClient, customer, jwt_generator
    ):
        """A token claiming admin must not grant admin to a customer."""
        token = jwt_generator.generate_jwt(subject=customer.id, claims={"roles": ["admin"]})
        response = client.get(
            "/api/admin/stats", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 403

    def test_anonymous_is_unauthorised(self, client: TestClient):
        assert client.get("/api/admin/orders").status_code == 401


class TestPasswordResetRoutes:
    """Forgot-password email and token redemption."""

    def test_forgot_password_emails_a_token(self, client: TestClient, customer, email_outbox):
        response = client.post("/api/auth/forgot-password", json={"email": customer.email})
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert email_outbox.kinds() == ["password_reset"]
        assert email_outbox.sent[0].to == customer.email
        assert email_outbox.sent[0].token

    def test_unknown_email_gets_the_same_answer(self, client: TestClient, customer, email_outbox):
        known = client.post("/api/auth/forgot-password", json={"email": customer.email})
        unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})
        assert unknown.status_code == 200
        assert unknown.json() == known.json()
        assert len(email_outbox.sent) == 1

    def test_reset_password_then_login(self, client: TestClient, customer, email_outbox):
        client.post("/api/auth/forgot-password", json={"email": customer.email})
        token = email_outbox.sent[0].token
        new_password = "Fr3sh!Start99"

        weak = client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "password"}
        )
        assert weak.status_code == 400

        response = client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": new_password}
        )
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Password has been reset successfully",
        }

        login = client.post(
            "/api/auth/login", json={"email": customer.email, "password": new_password}
        )
        assert login.status_code == 200

        reused = client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "An0ther!Pass1"}
        )
        assert reused.status_code == 400
        assert reused.json() == {"detail": "Reset link is invalid or has expired"}

    def test_reset_rejects_access_tokens(self, client: TestClient, customer_token):
        response = client.post(
            "/api/auth/reset-password",
            json={"token": customer_token, "new_password": "Fr3sh!Start99"},
        )
        assert response.status_code == 400
