"""HTTP tests through FastAPI's TestClient with the database and core services overridden."""

import unittest

from fastapi.testclient import TestClient

from gatekeeper.api.deps import get_password_hasher, get_token_service
from gatekeeper.core.database import get_db
from gatekeeper.main import app
from gatekeeper.repositories import Repository
from gatekeeper.schemas import UserCreate
from gatekeeper.services.bootstrap import ensure_admin_role
from gatekeeper.services.identity import IdentityService

from factories import cheap_hasher, make_session_factory, make_settings, make_tokens

API = "/api/v1"


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        self.hasher = cheap_hasher()
        self.tokens = make_tokens()

        def override_get_db():
            db = self.factory()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_password_hasher] = lambda: self.hasher
        app.dependency_overrides[get_token_service] = lambda: self.tokens
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

        session = self.factory()
        try:
            repo = Repository(session)
            service = IdentityService(repo, self.hasher, self.tokens, settings=make_settings())
            admin_role = ensure_admin_role(repo)
            self.admin_id = service.create_user(
                UserCreate(
                    username="admin",
                    email="admin@example.com",
                    password="admin-password",
                    role_ids=[admin_role.id],
                )
            ).id
            self.plain_id = service.create_user(
                UserCreate(username="plain", email="plain@example.com", password="plain-password")
            ).id
        finally:
            session.close()

    def login(self, username: str, password: str) -> dict:
        response = self.client.post(f"{API}/auth/login", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def auth(self, username: str = "admin", password: str = "admin-password") -> dict[str, str]:
        return {"Authorization": f"Bearer {self.login(username, password)['access_token']}"}


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        response = self.client.get(f"{API}/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "connected")
        self.assertEqual(response.json()["status"], "ok")


class TestAuthRoutes(ApiTestCase):
    def test_login_success(self) -> None:
        body = self.login("admin", "admin-password")
        self.assertEqual(body["token_type"], "bearer")
        self.assertEqual(body["user"]["username"], "admin")
        self.assertIn("refresh_token", body)
        self.assertNotIn("password_hash", body["user"])

    def test_login_wrong_password(self) -> None:
        response = self.client.post(
            f"{API}/auth/login", json={"username": "admin", "password": "wrongpass"}
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "invalid_credentials")
        self.assertEqual(response.headers.get("WWW-Authenticate"), "Bearer")

    def test_login_validation(self) -> None:
        response = self.client.post(f"{API}/auth/login", json={"username": "ab", "password": "x"})
        self.assertEqual(response.status_code, 422)

    def test_refresh(self) -> None:
        body = self.login("plain", "plain-password")
        response = self.client.post(f"{API}/auth/refresh", json={"refresh_token": body["refresh_token"]})
        self.assertEqual(response.status_code, 200, response.text)
        self.assertIsNone(response.json()["refresh_token"])

    def test_refresh_with_access_token(self) -> None:
        body = self.login("plain", "plain-password")
        response = self.client.post(f"{API}/auth/refresh", json={"refresh_token": body["access_token"]})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "invalid_token_type")

    def test_logout_revokes_refresh(self) -> None:
        body = self.login("plain", "plain-password")
        headers = {"Authorization": f"Bearer {body['access_token']}"}
        self.assertEqual(self.client.post(f"{API}/auth/logout", headers=headers).status_code, 200)
        response = self.client.post(f"{API}/auth/refresh", json={"refresh_token": body["refresh_token"]})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "token_invalid")

    def test_profile(self) -> None:
        response = self.client.get(f"{API}/auth/profile", headers=self.auth())
        self.assertEqual(response.status_code, 200)
        self.assertEqual([r["code"] for r in response.json()["roles"]], ["admin"])

    def test_profile_requires_token(self) -> None:
        anonymous = self.client.get(f"{API}/auth/profile")
        self.assertEqual(anonymous.status_code, 401)
        self.assertEqual(anonymous.json()["code"], "not_authenticated")
        self.assertEqual(anonymous.headers.get("WWW-Authenticate"), "Bearer")

        garbage = self.client.get(f"{API}/auth/profile", headers={"Authorization": "Bearer nope"})
        self.assertEqual(garbage.status_code, 401)
        self.assertEqual(garbage.json()["code"], "token_invalid")
        self.assertEqual(garbage.headers.get("WWW-Authenticate"), "Bearer")

    def test_token_of_deleted_user_rejected(self) -> None:
        headers = self.auth("plain", "plain-password")
        self.assertEqual(self.client.delete(f"{API}/users/{self.plain_id}", headers=self.auth()).status_code, 200)
        response = self.client.get(f"{API}/auth/profile", headers=headers)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "token_invalid")

    def test_refresh_token_not_accepted_as_bearer(self) -> None:
        body = self.login("plain", "plain-password")
        response = self.client.get(
            f"{API}/auth/profile", headers={"Authorization": f"Bearer {body['refresh_token']}"}
        )
        self.assertEqual(response.status_code, 401)

    def test_check_permission(self) -> None:
        admin = self.client.post(
            f"{API}/auth/check-permission", json={"permission": "user:list"}, headers=self.auth()
        )
        self.assertTrue(admin.json()["has_permission"])
        plain = self.client.post(
            f"{API}/auth/check-permission",
            json={"permission": "user:list"},
            headers=self.auth("plain", "plain-password"),
        )
        self.assertFalse(plain.json()["has_permission"])


class TestGuards(ApiTestCase):
    def test_missing_permission_is_forbidden(self) -> None:
        response = self.client.get(f"{API}/users", headers=self.auth("plain", "plain-password"))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()["code"], "permission_denied")

    def test_anonymous_is_unauthorized(self) -> None:
        self.assertEqual(self.client.get(f"{API}/roles").status_code, 401)


class TestAdministration(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.headers = self.auth()

    def test_user_crud(self) -> None:
        created = self.client.post(
            f"{API}/users",
            json={"username": "bob", "email": "bob@example.com", "password": "bob-password"},
            headers=self.headers,
        )
        self.assertEqual(created.status_code, 201, created.text)
        user_id = created.json()["id"]

        duplicate = self.client.post(
            f"{API}/users",
            json={"username": "bob", "email": "bob2@example.com", "password": "bob-password"},
            headers=self.headers,
        )
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.json()["code"], "username_exists")

        updated = self.client.put(
            f"{API}/users/{user_id}",
            json={"username": "bobby", "email": "bob@example.com"},
            headers=self.headers,
        )
        self.assertEqual(updated.json()["username"], "bobby")

        listing = self.client.get(f"{API}/users", params={"keyword": "bob"}, headers=self.headers)
        self.assertEqual(listing.json()["total"], 1)

        self.assertEqual(self.client.delete(f"{API}/users/{user_id}", headers=self.headers).status_code, 200)
        missing = self.client.get(f"{API}/users/{user_id}", headers=self.headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["code"], "user_not_found")

    def test_role_lifecycle_with_delete_safety(self) -> None:
        permission = self.client.post(
            f"{API}/permissions",
            json={"code": "report:read", "name": "Read reports"},
            headers=self.headers,
        ).json()
        role = self.client.post(
            f"{API}/roles",
            json={"code": "reporter", "name": "Reporter", "permission_ids": [permission["id"]]},
            headers=self.headers,
        ).json()
        self.assertEqual([p["code"] for p in role["permissions"]], ["report:read"])

        assigned = self.client.post(
            f"{API}/users/{self.plain_id}/roles", json={"role_ids": [role["id"]]}, headers=self.headers
        )
        self.assertEqual([r["code"] for r in assigned.json()], ["reporter"])

        in_use = self.client.delete(f"{API}/roles/{role['id']}", headers=self.headers)
        self.assertEqual(in_use.status_code, 409)
        self.assertEqual(in_use.json()["code"], "role_in_use")
        self.assertEqual(self.client.get(f"{API}/roles/{role['id']}", headers=self.headers).status_code, 200)

        permission_in_use = self.client.delete(f"{API}/permissions/{permission['id']}", headers=self.headers)
        self.assertEqual(permission_in_use.status_code, 409)

        removed = self.client.request(
            "DELETE", f"{API}/users/{self.plain_id}/roles", json={"role_ids": [role["id"]]}, headers=self.headers
        )
        self.assertEqual(removed.json(), [])
        self.assertEqual(self.client.delete(f"{API}/roles/{role['id']}", headers=self.headers).status_code, 200)
        self.assertEqual(
            self.client.delete(f"{API}/permissions/{permission['id']}", headers=self.headers).status_code, 200
        )

    def test_role_permission_subroutes(self) -> None:
        permission = self.client.post(
            f"{API}/permissions", json={"code": "report:read", "name": "Read reports"}, headers=self.headers
        ).json()
        role = self.client.post(f"{API}/roles", json={"code": "reporter", "name": "Reporter"}, headers=self.headers).json()
        granted = self.client.post(
            f"{API}/roles/{role['id']}/permissions",
            json={"permission_ids": [permission["id"]]},
            headers=self.headers,
        )
        self.assertEqual(granted.status_code, 200)
        listed = self.client.get(f"{API}/roles/{role['id']}/permissions", headers=self.headers)
        self.assertEqual([p["code"] for p in listed.json()], ["report:read"])
        unknown = self.client.post(
            f"{API}/roles/{role['id']}/permissions", json={"permission_ids": [9999]}, headers=self.headers
        )
        self.assertEqual(unknown.status_code, 404)
        self.assertEqual(unknown.json()["code"], "permission_not_found")

    def test_permission_listing_paged(self) -> None:
        response = self.client.get(
            f"{API}/permissions", params={"page": 2, "page_size": 5}, headers=self.headers
        )
        body = response.json()
        self.assertEqual(body["page"], 2)
        self.assertEqual(body["page_size"], 5)
        self.assertEqual(len(body["items"]), 5)
        self.assertEqual(body["total_pages"], (body["total"] + 4) // 5)


if __name__ == "__main__":
    unittest.main()
