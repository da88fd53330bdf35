import unittest
from datetime import datetime, timedelta, timezone

import jwt

from storefront.auth.security import (
    create_access_token,
    hash_password,
    verify_access_token,
    verify_password,
)
from storefront.models import Identity

SECRET = "unit-test-secret-for-hs256-0123456789ab"


class PasswordHashingTests(unittest.TestCase):
    def test_hash_is_salted_and_verifies(self):
        h1 = hash_password("hunter22")
        h2 = hash_password("hunter22")
        self.assertNotEqual(h1, h2)
        self.assertNotIn("hunter22", h1)
        self.assertTrue(verify_password("hunter22", h1))
        self.assertFalse(verify_password("hunter23", h1))

    def test_blank_password_rejected(self):
        with self.assertRaises(ValueError):
            hash_password("")

    def test_malformed_hash_does_not_raise(self):
        self.assertFalse(verify_password("hunter22", "not-a-hash"))
        self.assertFalse(verify_password("hunter22", ""))


class AccessTokenTests(unittest.TestCase):
    def setUp(self):
        self.identity = Identity(id="a1b2", email="owner@shopfront.io", role="admin")

    def test_token_carries_identity(self):
        token = create_access_token(secret=SECRET, identity=self.identity, expires_minutes=60)
        self.assertEqual(verify_access_token(token=token, secret=SECRET), self.identity)

        claims = jwt.decode(token, SECRET, algorithms=["HS256"])
        self.assertEqual(claims["sub"], "a1b2")
        self.assertEqual(claims["role"], "admin")
        self.assertAlmostEqual(claims["exp"] - claims["iat"], 3600, delta=2)

    def test_wrong_secret_is_invalid(self):
        token = create_access_token(secret=SECRET, identity=self.identity, expires_minutes=60)
        self.assertIsNone(verify_access_token(token=token, secret=SECRET + "x"))

    def test_expired_token_is_invalid(self):
        past = datetime.now(timezone.utc) - timedelta(days=8)
        token = jwt.encode(
            {
                "sub": "a1b2",
                "email": "owner@shopfront.io",
                "role": "admin",
                "iat": int(past.timestamp()),
                "exp": int((past + timedelta(days=7)).timestamp()),
            },
            SECRET,
            algorithm="HS256",
        )
        self.assertIsNone(verify_access_token(token=token, secret=SECRET))

    def test_garbage_and_blank_tokens_are_invalid(self):
        self.assertIsNone(verify_access_token(token="not.a.jwt", secret=SECRET))
        self.assertIsNone(verify_access_token(token="", secret=SECRET))

    def test_unknown_role_is_invalid(self):
        exp = datetime.now(timezone.utc) + timedelta(hours=1)
        token = jwt.encode(
            {"sub": "a1b2", "email": "x@shopfront.io", "role": "root", "exp": int(exp.timestamp())},
            SECRET,
            algorithm="HS256",
        )
        self.assertIsNone(verify_access_token(token=token, secret=SECRET))

    def test_blank_secret_refused_when_signing(self):
        with self.assertRaises(ValueError):
            create_access_token(secret="", identity=self.identity, expires_minutes=60)


if __name__ == "__main__":
    unittest.main()
