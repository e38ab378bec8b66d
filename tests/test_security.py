"""Unit tests for app.core.security: bcrypt hashing, JWT access tokens, opaque token helpers."""

import unittest
from datetime import timedelta

import jwt

from app.core.security import (
    create_access_token,
    decode_access_token,
    generate_opaque_token,
    hash_password,
    hash_token,
    verify_password,
)


class TestPasswordHashing(unittest.TestCase):
    """hash_password salts every call; verify_password accepts only the original plaintext."""

    def test_hash_verifies_original_password(self) -> None:
        hashed = hash_password("correct horse")
        self.assertTrue(verify_password("correct horse", hashed))
        self.assertFalse(verify_password("wrong horse", hashed))

    def test_fresh_salt_per_call(self) -> None:
        self.assertNotEqual(hash_password("same"), hash_password("same"))

    def test_hash_is_not_plaintext(self) -> None:
        self.assertNotIn("plaintext-secret", hash_password("plaintext-secret"))

    def test_corrupt_stored_hash_is_a_mismatch_not_an_exception(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))

    def test_passwords_beyond_72_bytes_still_verify(self) -> None:
        long_password = "x" * 100
        self.assertTrue(verify_password(long_password, hash_password(long_password)))


class TestAccessTokens(unittest.TestCase):
    """create_access_token signs {sub, iat, exp}; decode_access_token validates signature and expiry."""

    def test_round_trip_subject(self) -> None:
        token, expires = create_access_token(42)
        payload = decode_access_token(token)
        self.assertEqual(payload["sub"], "42")
        self.assertIn("iat", payload)
        self.assertEqual(payload["exp"], int(expires.timestamp()))

    def test_expired_token_rejected(self) -> None:
        token, _ = create_access_token(1, expires_delta=timedelta(seconds=-5))
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_access_token(token)

    def test_tampered_token_rejected(self) -> None:
        token, _ = create_access_token(1)
        forged = jwt.encode({"sub": "1", "iat": 0, "exp": 9999999999}, "other-secret", algorithm="HS256")
        with self.assertRaises(jwt.InvalidSignatureError):
            decode_access_token(forged)
        self.assertNotEqual(token, forged)


class TestOpaqueTokens(unittest.TestCase):
    def test_tokens_are_unique(self) -> None:
        tokens = {generate_opaque_token() for _ in range(50)}
        self.assertEqual(len(tokens), 50)

    def test_hash_token_is_stable_sha256_hex(self) -> None:
        digest = hash_token("abc")
        self.assertEqual(digest, hash_token("abc"))
        self.assertEqual(len(digest), 64)
        self.assertNotEqual(digest, hash_token("abd"))


if __name__ == "__main__":
    unittest.main()
