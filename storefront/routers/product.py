from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field

from storefront.auth.deps import Gate, current_user
from storefront.catalog import products as catalog
from storefront.rpc.context import Context
from storefront.rpc.errors import NotFound, ValidationFailed
from storefront.rpc.procedure import Router


router = Router()


class PageInput(BaseModel):
    limit: int = Field(default=catalog.DEFAULT_PAGE_SIZE, ge=1, le=catalog.MAX_PAGE_SIZE)
    cursor: Optional[str] = None


class ProductIdInput(BaseModel):
    id: str


class ImageInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: AnyUrl
    public_id: str = Field(alias="publicId")


class CreateProductInput(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0, allow_inf_nan=False)
    images: Optional[List[ImageInput]] = None


class UpdateProductInput(BaseModel):
    id: str
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False)


def _page(ctx: Context, payload: PageInput, *, admin_id: str | None, with_owner: bool) -> Dict[str, Any]:
    try:
        rows, next_cursor = catalog.list_page(
            ctx.conn,
            limit=payload.limit,
            cursor=payload.cursor,
            admin_id=admin_id,
        )
    except ValueError:
        raise ValidationFailed("Unknown cursor", field_errors={"cursor": ["Unknown cursor"]})
    out: Dict[str, Any] = {"products": catalog.hydrate(ctx.conn, rows, with_owner=with_owner)}
    if next_cursor is not None:
        out["nextCursor"] = next_cursor
    return out


def _one(ctx: Context, row: Any, *, with_owner: bool) -> Dict[str, Any]:
    return catalog.hydrate(ctx.conn, [row], with_owner=with_owner)[0]


@router.query("list", input=PageInput, input_optional=True)
def list_products(ctx: Context, payload: PageInput) -> Dict[str, Any]:
    """Public catalog, newest first."""
    return _page(ctx, payload, admin_id=None, with_owner=True)


@router.query("byId", input=ProductIdInput)
def product_by_id(ctx: Context, payload: ProductIdInput) -> Dict[str, Any]:
    row = catalog.get_product(ctx.conn, payload.id)
    if row is None:
        raise NotFound("Product not found")
    return _one(ctx, row, with_owner=True)


@router.query("myProducts", gate=Gate.ADMIN, input=PageInput, input_optional=True)
def my_products(ctx: Context, payload: PageInput) -> Dict[str, Any]:
    admin = current_user(ctx)
    return _page(ctx, payload, admin_id=admin.id, with_owner=False)


@router.mutation("create", gate=Gate.ADMIN, input=CreateProductInput)
def create_product(ctx: Context, payload: CreateProductInput) -> Dict[str, Any]:
    admin = current_user(ctx)
    row = catalog.create_product(
        ctx.conn,
        admin_id=admin.id,
        name=payload.name,
        description=payload.description,
        price=payload.price,
        images=[{"url": str(img.url), "public_id": img.public_id} for img in payload.images or []],
    )
    return _one(ctx, row, with_owner=False)


# Other admins' products read as missing.
@router.mutation("update", gate=Gate.ADMIN, input=UpdateProductInput)
def update_product(ctx: Context, payload: UpdateProductInput) -> Dict[str, Any]:
    admin = current_user(ctx)
    if catalog.get_owned_product(ctx.conn, payload.id, admin.id) is None:
        raise NotFound("Product not found or not editable")

    row = catalog.update_product(
        ctx.conn,
        payload.id,
        name=payload.name,
        description=payload.description,
        price=payload.price,
    )
    if row is None:
        raise NotFound("Product not found or not editable")
    return _one(ctx, row, with_owner=False)


@router.mutation("delete", gate=Gate.ADMIN, input=ProductIdInput)
def delete_product(ctx: Context, payload: ProductIdInput) -> Dict[str, Any]:
    admin = current_user(ctx)
    if catalog.get_owned_product(ctx.conn, payload.id, admin.id) is None:
        raise NotFound("Product not found or not deletable")
    catalog.delete_product(ctx.conn, payload.id)
    return {"success": True}
