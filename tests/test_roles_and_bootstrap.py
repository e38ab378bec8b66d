"""Unit tests for app.services.bootstrap (idempotent seeding) and app.services.roles."""

import unittest
from unittest.mock import MagicMock

from pydantic import SecretStr

from app.core.config import get_settings
from app.core.errors import Conflict, NotFound, ValidationFailed
from app.core.security import verify_password
from app.models import Permission, Role, User
from app.schemas.role import RoleCreateRequest, RoleUpdateRequest
from app.services import roles
from app.services.authorization import SUPER_ADMINISTRATOR
from app.services.bootstrap import bootstrap
from tests.support import add_user, make_session_factory


def _settings(seed_users: bool) -> MagicMock:
    settings = MagicMock()
    settings.DEFAULT_ROLE_NAME = "User"
    settings.SEED_DEFAULT_USERS = seed_users
    settings.SEED_DEFAULT_PASSWORD = SecretStr("seed-pw")
    return settings


class TestBootstrap(unittest.TestCase):
    """Seeding runs permissions -> roles -> users and is a no-op once tables are populated."""

    def setUp(self) -> None:
        self.session = make_session_factory()()

    def tearDown(self) -> None:
        self.session.close()

    def test_first_run_seeds_permissions_and_roles_only(self) -> None:
        created = bootstrap(self.session, _settings(seed_users=False))
        self.assertEqual(created, (8, 4, 0))
        names = {r.name for r in self.session.query(Role).all()}
        self.assertEqual(names, {SUPER_ADMINISTRATOR, "Administrator", "Moderator", "User"})

    def test_second_run_is_a_no_op(self) -> None:
        bootstrap(self.session, _settings(seed_users=True))
        self.assertEqual(bootstrap(self.session, _settings(seed_users=True)), (0, 0, 0))
        self.assertEqual(self.session.query(Permission).count(), 8)
        self.assertEqual(self.session.query(User).count(), 4)

    def test_seeded_users(self) -> None:
        bootstrap(self.session, _settings(seed_users=True))
        superadmin = self.session.query(User).filter(User.username == "superadmin").one()
        self.assertEqual(len(superadmin.roles), 4)
        self.assertTrue(verify_password("seed-pw", superadmin.password_hash))

    def test_role_permissions(self) -> None:
        bootstrap(self.session, _settings(seed_users=False))
        by_name = {r.name: {(p.resource, p.action) for p in r.permissions} for r in self.session.query(Role)}
        self.assertEqual(len(by_name[SUPER_ADMINISTRATOR]), 8)
        self.assertEqual(by_name["Administrator"], {("user", a) for a in ("create", "read", "update", "delete")})
        self.assertEqual(by_name["Moderator"], {("user", a) for a in ("create", "read", "update")})
        self.assertEqual(by_name["User"], set())


class TestRoles(unittest.TestCase):
    def setUp(self) -> None:
        self.session = make_session_factory()()
        self.settings = get_settings()
        bootstrap(self.session, self.settings)

    def tearDown(self) -> None:
        self.session.close()

    def _permission_id(self, resource: str, action: str) -> int:
        return (
            self.session.query(Permission)
            .filter(Permission.resource == resource, Permission.action == action)
            .one()
            .id
        )

    def test_create_and_update_role(self) -> None:
        role = roles.create_role(
            self.session,
            RoleCreateRequest(name="Auditor", permission_ids=[self._permission_id("user", "read")]),
        )
        self.assertEqual([(p.resource, p.action) for p in role.permissions], [("user", "read")])

        updated = roles.update_role(
            self.session,
            role.id,
            RoleUpdateRequest(name="Reviewer", permission_ids=[self._permission_id("role", "read")]),
            self.settings,
        )
        self.assertEqual(updated.name, "Reviewer")
        self.assertEqual([(p.resource, p.action) for p in updated.permissions], [("role", "read")])

    def test_duplicate_name(self) -> None:
        with self.assertRaises(Conflict):
            roles.create_role(self.session, RoleCreateRequest(name="Moderator"))

    def test_unknown_permission(self) -> None:
        with self.assertRaises(ValidationFailed):
            roles.create_role(self.session, RoleCreateRequest(name="Ghost", permission_ids=[999]))

    def test_rejected_update_is_not_saved_by_a_later_commit(self) -> None:
        moderator_id = self.session.query(Role).filter(Role.name == "Moderator").one().id
        with self.assertRaises(ValidationFailed):
            roles.update_role(
                self.session,
                moderator_id,
                RoleUpdateRequest(name="Helper", permission_ids=[999]),
                self.settings,
            )

        roles.create_role(self.session, RoleCreateRequest(name="Auditor"))

        self.session.expire_all()
        self.assertEqual(roles.get_role(self.session, moderator_id).name, "Moderator")

    def test_protected_roles_cannot_be_renamed_or_deleted(self) -> None:
        super_admin = roles.get_role(self.session, self.session.query(Role).filter(Role.name == SUPER_ADMINISTRATOR).one().id)
        with self.assertRaises(Conflict):
            roles.update_role(self.session, super_admin.id, RoleUpdateRequest(name="Root"), self.settings)
        with self.assertRaises(Conflict):
            roles.delete_role(self.session, super_admin.id, self.settings)

    def test_assigned_role_cannot_be_deleted(self) -> None:
        add_user(self.session, "mo", roles=("Moderator",))
        moderator = self.session.query(Role).filter(Role.name == "Moderator").one()
        with self.assertRaises(Conflict):
            roles.delete_role(self.session, moderator.id, self.settings)

    def test_delete_unassigned_role(self) -> None:
        moderator_id = self.session.query(Role).filter(Role.name == "Moderator").one().id
        roles.delete_role(self.session, moderator_id, self.settings)
        with self.assertRaises(NotFound):
            roles.get_role(self.session, moderator_id)


if __name__ == "__main__":
    unittest.main()
