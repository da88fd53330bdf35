"""Shared fixtures for the API test suites.

Every test gets its own SQLite file and an in-memory mail transport, and
talks to the app through FastAPI's TestClient.
"""

import json
import os
import shutil
import tempfile
import unittest
from typing import Any, Dict, Optional, Tuple

from fastapi.testclient import TestClient

from storefront.api.server import create_app
from storefront.config import Config
from storefront.mail.transport import InMemoryMailer

# >= 32 bytes so PyJWT does not warn about short HMAC keys.
SECRET = "test-secret-for-hs256-signing-0123456789"
OPERATOR = "ops@shopfront.io"


def make_config(db_dir: str, **overrides: Any) -> Config:
    values: Dict[str, Any] = {
        "DB_DSN": os.path.join(db_dir, "storefront-test.sqlite"),
        "AUTH_JWT_SECRET": SECRET,
        "MAIL_BACKEND": "memory",
        "MAIL_TO": OPERATOR,
    }
    values.update(overrides)
    return Config(**values)


class RpcTestCase(unittest.TestCase):
    config_overrides: Dict[str, Any] = {}

    def setUp(self):
        tmp = tempfile.mkdtemp(prefix="storefront-test-")
        self.addCleanup(shutil.rmtree, tmp, True)
        self.cfg = make_config(tmp, **self.config_overrides)
        self.mailer = self.make_mailer()
        self.client = TestClient(create_app(self.cfg, mailer=self.mailer))
        # Entering the client runs startup (config check + schema creation).
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def make_mailer(self):
        return InMemoryMailer(sender="store@shopfront.io")

    # -----------------------------
    # Calling procedures
    # -----------------------------

    @staticmethod
    def _headers(token: Optional[str]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"} if token else {}

    def query(self, path: str, payload: Any = None, token: Optional[str] = None):
        params = {} if payload is None else {"input": json.dumps(payload)}
        return self.client.get(f"/api/trpc/{path}", params=params, headers=self._headers(token))

    def mutation(self, path: str, payload: Any = None, token: Optional[str] = None):
        return self.client.post(f"/api/trpc/{path}", json=payload, headers=self._headers(token))

    def data(self, response) -> Any:
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()["result"]["data"]["json"]

    def error(self, response, code: str) -> Dict[str, Any]:
        body = response.json()
        self.assertIn("error", body, response.text)
        self.assertEqual(body["error"]["code"], code, response.text)
        self.assertEqual(body["error"]["data"]["httpStatus"], response.status_code)
        return body["error"]

    # -----------------------------
    # Common setup steps
    # -----------------------------

    def register(self, kind: str, email: str, password: str = "secret123", name: Optional[str] = None) -> Tuple[str, str]:
        """Register an admin/user; returns (token, id)."""
        payload: Dict[str, Any] = {"email": email, "password": password}
        if name is not None:
            payload["name"] = name
        out = self.data(self.mutation(f"{kind}.register", payload))
        return out["token"], out[kind]["id"]

    def create_product(self, token: str, name: str, price: float = 10.0, **extra: Any) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": name, "price": price}
        payload.update(extra)
        return self.data(self.mutation("product.create", payload, token=token))
