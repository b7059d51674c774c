"""Tests for the user -> role -> permission resolver."""

import unittest

from gatekeeper.core.errors import (
    PermissionInUseError,
    PermissionNotFoundError,
    RoleInUseError,
    RoleNotFoundError,
    UserNotFoundError,
)
from gatekeeper.models import RolePermission, UserRole
from gatekeeper.repositories import Repository
from gatekeeper.services.authorization import AuthorizationResolver

from factories import add_permission, add_role, add_user, make_session


class ResolverTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session()
        self.repo = Repository(self.session)
        self.resolver = AuthorizationResolver(self.repo)

    def tearDown(self) -> None:
        self.session.close()

    def user_role_rows(self, user_id: int, role_id: int) -> int:
        return (
            self.session.query(UserRole)
            .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
            .count()
        )


class TestRolePermissionGrants(ResolverTestCase):
    def test_viewer_role_has_user_list(self) -> None:
        permission = add_permission(self.repo, "user:list", name="List users")
        viewer = add_role(self.repo, "viewer")
        self.resolver.assign_permissions(viewer.id, [permission.id])
        self.assertTrue(self.resolver.has_permission(viewer.id, "user:list"))
        self.assertTrue(self.resolver.has_permission(viewer.id, "List users"))
        self.assertFalse(self.resolver.has_permission(viewer.id, "user:delete"))

    def test_assign_permissions_validates_ids(self) -> None:
        role = add_role(self.repo, "viewer")
        permission = add_permission(self.repo, "user:list")
        with self.assertRaises(RoleNotFoundError):
            self.resolver.assign_permissions(999, [permission.id])
        with self.assertRaises(PermissionNotFoundError) as ctx:
            self.resolver.assign_permissions(role.id, [permission.id, 404])
        self.assertIn("404", ctx.exception.message)
        # Nothing was granted by the failed call.
        self.assertEqual(self.resolver.role_permissions(role.id), [])

    def test_remove_permissions(self) -> None:
        role = add_role(self.repo, "viewer")
        first = add_permission(self.repo, "user:list")
        second = add_permission(self.repo, "user:view")
        self.resolver.assign_permissions(role.id, [first.id, second.id])
        self.assertEqual(self.resolver.remove_permissions(role.id, [first.id]), 1)
        self.assertEqual([p.code for p in self.resolver.role_permissions(role.id)], ["user:view"])

    def test_replace_permissions(self) -> None:
        role = add_role(self.repo, "viewer")
        first = add_permission(self.repo, "user:list")
        second = add_permission(self.repo, "user:view")
        self.resolver.assign_permissions(role.id, [first.id])
        self.resolver.replace_permissions(role.id, [second.id])
        self.assertEqual([p.code for p in self.resolver.role_permissions(role.id)], ["user:view"])
        self.resolver.replace_permissions(role.id, [])
        self.assertEqual(self.resolver.role_permissions(role.id), [])


class TestUserRoleGrants(ResolverTestCase):
    def test_assign_twice_leaves_one_row(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer")
        self.assertEqual(self.resolver.assign_roles(user.id, [role.id]), 1)
        self.assertEqual(self.resolver.assign_roles(user.id, [role.id]), 0)
        self.assertEqual(self.resolver.assign_roles(user.id, [role.id, role.id]), 0)
        self.assertEqual(self.user_role_rows(user.id, role.id), 1)

    def test_assign_validates_user_and_roles(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer")
        with self.assertRaises(UserNotFoundError):
            self.resolver.assign_roles(999, [role.id])
        with self.assertRaises(RoleNotFoundError):
            self.resolver.assign_roles(user.id, [role.id, 999])
        self.assertEqual(self.user_role_rows(user.id, role.id), 0)

    def test_deleted_role_cannot_be_assigned(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer")
        self.resolver.delete_role(role.id)
        with self.assertRaises(RoleNotFoundError):
            self.resolver.assign_roles(user.id, [role.id])

    def test_has_role_by_name_or_code(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer", name="Read only")
        self.assertFalse(self.resolver.has_role(user.id, "viewer"))
        self.resolver.assign_roles(user.id, [role.id])
        self.assertTrue(self.resolver.has_role(user.id, "viewer"))
        self.assertTrue(self.resolver.has_role(user.id, "Read only"))
        self.assertFalse(self.resolver.has_role(user.id, "admin"))

    def test_replace_roles(self) -> None:
        user = add_user(self.repo, "alice")
        viewer = add_role(self.repo, "viewer")
        editor = add_role(self.repo, "editor")
        self.resolver.assign_roles(user.id, [viewer.id])
        self.resolver.replace_roles(user.id, [editor.id])
        self.assertEqual([r.code for r in self.resolver.user_roles(user.id)], ["editor"])

    def test_user_roles_requires_user(self) -> None:
        with self.assertRaises(UserNotFoundError):
            self.resolver.user_roles(123)


class TestCheckPermission(ResolverTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = add_user(self.repo, "alice")
        self.role = add_role(self.repo, "viewer")
        self.permission = add_permission(self.repo, "user:list")
        self.resolver.assign_roles(self.user.id, [self.role.id])
        self.resolver.assign_permissions(self.role.id, [self.permission.id])

    def test_granted_through_role(self) -> None:
        self.assertTrue(self.resolver.check_permission(self.user.id, "user:list"))
        self.assertFalse(self.resolver.check_permission(self.user.id, "user:delete"))

    def test_revoked_when_removed_from_role(self) -> None:
        self.resolver.remove_permissions(self.role.id, [self.permission.id])
        self.assertFalse(self.resolver.check_permission(self.user.id, "user:list"))

    def test_revoked_when_role_removed_from_user(self) -> None:
        self.resolver.remove_roles(self.user.id, [self.role.id])
        self.assertFalse(self.resolver.check_permission(self.user.id, "user:list"))

    def test_any_role_grants(self) -> None:
        other_role = add_role(self.repo, "auditor")
        audit = add_permission(self.repo, "audit:read")
        self.resolver.assign_permissions(other_role.id, [audit.id])
        self.resolver.assign_roles(self.user.id, [other_role.id])
        self.assertTrue(self.resolver.check_permission(self.user.id, "user:list"))
        self.assertTrue(self.resolver.check_permission(self.user.id, "audit:read"))

    def test_unknown_user_has_nothing(self) -> None:
        self.assertFalse(self.resolver.check_permission(999, "user:list"))

    def test_deleted_role_grants_nothing(self) -> None:
        self.session.query(UserRole).delete()
        self.session.commit()
        self.resolver.delete_role(self.role.id)
        self.assertFalse(self.resolver.has_permission(self.role.id, "user:list"))


class TestDeleteSafety(ResolverTestCase):
    def test_held_role_cannot_be_deleted(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer")
        self.resolver.assign_roles(user.id, [role.id])

        with self.assertRaises(RoleInUseError):
            self.resolver.delete_role(role.id)
        self.assertIsNotNone(self.repo.roles.get(role.id))

        self.resolver.remove_roles(user.id, [role.id])
        self.resolver.delete_role(role.id)
        self.assertIsNone(self.repo.roles.get(role.id))

    def test_deleting_role_drops_its_grants(self) -> None:
        role = add_role(self.repo, "viewer")
        permission = add_permission(self.repo, "user:list")
        self.resolver.assign_permissions(role.id, [permission.id])
        self.resolver.delete_role(role.id)
        self.assertEqual(
            self.session.query(RolePermission).filter(RolePermission.role_id == role.id).count(), 0
        )
        # The permission is free again.
        self.resolver.delete_permission(permission.id)

    def test_role_held_only_by_deleted_user_can_be_deleted(self) -> None:
        user = add_user(self.repo, "alice")
        role = add_role(self.repo, "viewer")
        self.resolver.assign_roles(user.id, [role.id])
        with self.repo.unit_of_work():
            self.repo.users.soft_delete(user)
        self.resolver.delete_role(role.id)
        self.assertEqual(self.user_role_rows(user.id, role.id), 0)

    def test_granted_permission_cannot_be_deleted(self) -> None:
        role = add_role(self.repo, "viewer")
        permission = add_permission(self.repo, "user:list")
        self.resolver.assign_permissions(role.id, [permission.id])

        with self.assertRaises(PermissionInUseError):
            self.resolver.delete_permission(permission.id)
        self.assertIsNotNone(self.repo.permissions.get(permission.id))

        self.resolver.remove_permissions(role.id, [permission.id])
        self.resolver.delete_permission(permission.id)
        self.assertIsNone(self.repo.permissions.get(permission.id))

    def test_unknown_ids(self) -> None:
        with self.assertRaises(RoleNotFoundError):
            self.resolver.delete_role(404)
        with self.assertRaises(PermissionNotFoundError):
            self.resolver.delete_permission(404)


if __name__ == "__main__":
    unittest.main()
