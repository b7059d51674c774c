"""Tests for paging normalization, the admin bootstrap and the create_user script."""

import unittest
from unittest.mock import patch

from gatekeeper.repositories import Repository
from gatekeeper.scripts import create_user
from gatekeeper.services.authorization import AuthorizationResolver
from gatekeeper.services.bootstrap import ADMIN_ROLE_CODE, PERMISSION_CATALOGUE, ensure_admin_role
from gatekeeper.services.pagination import MAX_PAGE, normalize_page_params, total_pages

from factories import make_session_factory


class TestPagination(unittest.TestCase):
    def test_defaults(self) -> None:
        self.assertEqual(normalize_page_params(None, None), (1, 10))
        self.assertEqual(normalize_page_params(0, 0), (1, 10))
        self.assertEqual(normalize_page_params(-3, -1), (1, 10))

    def test_caps(self) -> None:
        self.assertEqual(normalize_page_params(MAX_PAGE + 1, 500), (MAX_PAGE, 100))
        self.assertEqual(normalize_page_params(4, 25), (4, 25))

    def test_total_pages(self) -> None:
        self.assertEqual(total_pages(0, 10), 0)
        self.assertEqual(total_pages(10, 10), 1)
        self.assertEqual(total_pages(11, 10), 2)


class TestEnsureAdminRole(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session_factory()()
        self.repo = Repository(self.session)

    def tearDown(self) -> None:
        self.session.close()

    def test_creates_catalogue_and_role(self) -> None:
        role = ensure_admin_role(self.repo)
        self.assertEqual(role.code, ADMIN_ROLE_CODE)
        resolver = AuthorizationResolver(self.repo)
        codes = {p.code for p in resolver.role_permissions(role.id)}
        self.assertEqual(codes, {code for code, _ in PERMISSION_CATALOGUE})

    def test_idempotent(self) -> None:
        first = ensure_admin_role(self.repo)
        second = ensure_admin_role(self.repo)
        self.assertEqual(first.id, second.id)
        _, total = self.repo.permissions.list_page(1, 100)
        self.assertEqual(total, len(PERMISSION_CATALOGUE))


class TestCreateUserScript(unittest.TestCase):
    def setUp(self) -> None:
        self.factory = make_session_factory()
        patcher = patch.object(create_user, "SessionLocal", self.factory)
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_script(self, *argv: str) -> int:
        with patch("builtins.print"):
            return create_user.main(list(argv))

    def test_creates_admin(self) -> None:
        self.assertEqual(self.run_script("root", "root@example.com", "bootstrap-pw", "--admin"), 0)
        session = self.factory()
        try:
            repo = Repository(session)
            user = repo.users.get_by_username("root")
            self.assertIsNotNone(user)
            resolver = AuthorizationResolver(repo)
            self.assertTrue(resolver.has_role(user.id, ADMIN_ROLE_CODE))
            self.assertTrue(resolver.check_permission(user.id, "role:delete"))
        finally:
            session.close()

    def test_plain_user_has_no_roles(self) -> None:
        self.assertEqual(self.run_script("plain", "plain@example.com", "secret-pw"), 0)
        session = self.factory()
        try:
            repo = Repository(session)
            user = repo.users.get_by_username("plain")
            self.assertEqual(AuthorizationResolver(repo).user_roles(user.id), [])
        finally:
            session.close()

    def test_duplicate_username_fails(self) -> None:
        self.assertEqual(self.run_script("dup", "dup@example.com", "secret-pw"), 0)
        self.assertEqual(self.run_script("dup", "dup2@example.com", "secret-pw"), 1)

    def test_invalid_input_fails(self) -> None:
        self.assertEqual(self.run_script("ab", "bad-email", "x"), 1)


if __name__ == "__main__":
    unittest.main()
