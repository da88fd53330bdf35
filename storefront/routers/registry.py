from __future__ import annotations

from typing import Dict

from storefront.models import ROLE_ADMIN, ROLE_USER
from storefront.rpc.procedure import Procedure, merge_routers

from . import image, mail, product
from .accounts import build_account_router


def build_procedures() -> Dict[str, Procedure]:
    """Every procedure the API serves, keyed by "<namespace>.<name>"."""
    return merge_routers(
        admin=build_account_router(ROLE_ADMIN),
        user=build_account_router(ROLE_USER),
        product=product.router,
        image=image.router,
        mail=mail.router,
    )
