"""Create an admin or user account.

Usage:
  python scripts/create_account.py --email alice@shop.io --password '...' --role admin

NOTE: This is intended for local/dev. Public sign-up goes through the
`admin.register` / `user.register` procedures.
"""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from storefront.auth.crud import create_account, public_account
from storefront.config import load_config
from storefront.db import connect, init_db


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--name", default=None)
    ap.add_argument("--role", choices=["user", "admin"], default="user")
    args = ap.parse_args()

    if len(args.password) < 6:
        ap.error("password must be at least 6 characters")

    cfg = load_config()
    init_db(cfg.DB_DSN)

    with connect(cfg.DB_DSN) as conn:
        try:
            row = create_account(conn, args.role, email=args.email, password=args.password, name=args.name)
        except ValueError as e:
            ap.error(str(e))
        account = public_account(row, "id", "email", "name")

    print(f"Created {args.role}:")
    print(account)


if __name__ == "__main__":
    main()
