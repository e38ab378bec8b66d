"""Unit tests for app.services.tokens against an in-memory credential store."""

import unittest
from datetime import timedelta

from app.core.config import get_settings
from app.core.errors import InvalidToken, TokenExpired, TokenRevoked
from app.core.security import create_access_token, hash_token
from app.models import RefreshToken, ResetPasswordToken, VerifyEmailToken
from app.services import tokens
from app.services.tokens import TokenPurpose
from tests.support import add_user, seeded_session


class TestAccessTokenVerification(unittest.TestCase):
    """verify_access_token returns the user id without touching the store."""

    def test_valid_token_returns_user_id(self) -> None:
        token, _ = create_access_token(7)
        self.assertEqual(tokens.verify_access_token(token), 7)

    def test_garbage_token_is_invalid(self) -> None:
        with self.assertRaises(InvalidToken):
            tokens.verify_access_token("not.a.jwt")

    def test_expired_token(self) -> None:
        token, _ = create_access_token(7, expires_delta=timedelta(minutes=-1))
        with self.assertRaises(TokenExpired):
            tokens.verify_access_token(token)

    def test_non_numeric_subject_is_invalid(self) -> None:
        token, _ = create_access_token("alice")
        with self.assertRaises(InvalidToken):
            tokens.verify_access_token(token)


class TestRefreshTokens(unittest.TestCase):
    """Refresh tokens are store-backed: revocable, expiring and consumable once."""

    def setUp(self) -> None:
        self.session = seeded_session()
        self.settings = get_settings()
        self.user = add_user(self.session, "carol")

    def tearDown(self) -> None:
        self.session.close()

    def _issue(self) -> str:
        issued = tokens.issue_refresh_token(self.session, self.user, self.settings)
        self.session.commit()
        return issued.token

    def test_only_digest_is_stored(self) -> None:
        token = self._issue()
        record = self.session.query(RefreshToken).one()
        self.assertEqual(record.token_hash, hash_token(token))
        self.assertNotEqual(record.token_hash, token)

    def test_verify_returns_record(self) -> None:
        token = self._issue()
        record = tokens.verify_refresh_token(self.session, token)
        self.assertEqual(record.user_id, self.user.id)

    def test_unknown_token(self) -> None:
        with self.assertRaises(InvalidToken):
            tokens.verify_refresh_token(self.session, "nope")

    def test_blacklisted_token_is_revoked(self) -> None:
        token = self._issue()
        self.assertEqual(tokens.revoke_refresh_tokens(self.session, self.user.id), 1)
        self.session.commit()
        with self.assertRaises(TokenRevoked):
            tokens.verify_refresh_token(self.session, token)

    def test_expired_token(self) -> None:
        token = self._issue()
        record = self.session.query(RefreshToken).one()
        record.expires_at = tokens.utcnow() - timedelta(seconds=1)
        self.session.commit()
        with self.assertRaises(TokenExpired):
            tokens.verify_refresh_token(self.session, token)

    def test_rotation_invalidates_old_token(self) -> None:
        old = self._issue()
        record = tokens.verify_refresh_token(self.session, old)
        pair = tokens.rotate_refresh_token(self.session, record, self.user, self.settings)
        self.session.commit()

        self.assertNotEqual(pair.refresh.token, old)
        with self.assertRaises(InvalidToken):
            tokens.verify_refresh_token(self.session, old)
        self.assertEqual(tokens.verify_refresh_token(self.session, pair.refresh.token).user_id, self.user.id)
        self.assertEqual(tokens.verify_access_token(pair.access.token), self.user.id)

    def test_second_consume_of_same_record_fails(self) -> None:
        token = self._issue()
        record = tokens.verify_refresh_token(self.session, token)
        stale_id = record.id
        tokens.consume_refresh_token(self.session, record)
        stale = RefreshToken(id=stale_id, blacklisted=False)
        with self.assertRaises(InvalidToken):
            tokens.consume_refresh_token(self.session, stale)


class TestSingleUseTokens(unittest.TestCase):
    """Verification and reset tokens are purpose-bound, time-bounded and single-use."""

    def setUp(self) -> None:
        self.session = seeded_session()
        self.settings = get_settings()
        self.user = add_user(self.session, "dave")

    def tearDown(self) -> None:
        self.session.close()

    def test_consume_returns_owner_and_deletes_record(self) -> None:
        token = tokens.issue_single_use_token(
            self.session, self.user, TokenPurpose.VERIFY_EMAIL, self.settings
        )
        self.session.commit()
        owner = tokens.consume_single_use_token(self.session, token, TokenPurpose.VERIFY_EMAIL)
        self.session.commit()
        self.assertEqual(owner.id, self.user.id)
        self.assertEqual(self.session.query(VerifyEmailToken).count(), 0)

    def test_cannot_consume_twice(self) -> None:
        token = tokens.issue_single_use_token(
            self.session, self.user, TokenPurpose.RESET_PASSWORD, self.settings
        )
        self.session.commit()
        tokens.consume_single_use_token(self.session, token, TokenPurpose.RESET_PASSWORD)
        self.session.commit()
        with self.assertRaises(InvalidToken):
            tokens.consume_single_use_token(self.session, token, TokenPurpose.RESET_PASSWORD)

    def test_purpose_is_enforced(self) -> None:
        token = tokens.issue_single_use_token(
            self.session, self.user, TokenPurpose.VERIFY_EMAIL, self.settings
        )
        self.session.commit()
        with self.assertRaises(InvalidToken):
            tokens.consume_single_use_token(self.session, token, TokenPurpose.RESET_PASSWORD)

    def test_expired_token(self) -> None:
        token = tokens.issue_single_use_token(
            self.session, self.user, TokenPurpose.RESET_PASSWORD, self.settings
        )
        record = self.session.query(ResetPasswordToken).one()
        record.expires_at = tokens.utcnow() - timedelta(minutes=1)
        self.session.commit()
        with self.assertRaises(TokenExpired):
            tokens.consume_single_use_token(self.session, token, TokenPurpose.RESET_PASSWORD)

    def test_delete_single_use_tokens_only_hits_that_user(self) -> None:
        other = add_user(self.session, "erin")
        for owner in (self.user, self.user, other):
            tokens.issue_single_use_token(self.session, owner, TokenPurpose.VERIFY_EMAIL, self.settings)
        self.session.commit()
        deleted = tokens.delete_single_use_tokens(self.session, self.user.id, TokenPurpose.VERIFY_EMAIL)
        self.session.commit()
        self.assertEqual(deleted, 2)
        self.assertEqual(self.session.query(VerifyEmailToken).count(), 1)


if __name__ == "__main__":
    unittest.main()
