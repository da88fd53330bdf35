"""Storefront backend.

Typed remote procedures for a small e-commerce admin/user platform:

- Admin and user accounts (register / login / profile), JWT bearer auth.
- Public product catalog, admin-owned product + image mutation.
- Contact-mail notifications to a fixed operator address.

Every call is a single request/response round trip over one HTTP endpoint
(`/api/trpc/<namespace>.<procedure>`). See SPEC_FULL.md for the procedure table.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
