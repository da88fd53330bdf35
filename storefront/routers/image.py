from __future__ import annotations

from typing import Any, Dict, List

from pydantic import AnyUrl, BaseModel, ConfigDict, Field

from storefront.auth.deps import Gate, current_user
from storefront.catalog import images as image_store
from storefront.catalog.products import get_owned_product
from storefront.rpc.context import Context
from storefront.rpc.errors import Forbidden, NotFound
from storefront.rpc.procedure import Router


router = Router()


class AddImageInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")
    url: AnyUrl
    public_id: str = Field(alias="publicId")


class ImageIdInput(BaseModel):
    id: str


class ProductImagesInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")


@router.mutation("add", gate=Gate.ADMIN, input=AddImageInput)
def add_image(ctx: Context, payload: AddImageInput) -> Dict[str, Any]:
    admin = current_user(ctx)
    if get_owned_product(ctx.conn, payload.product_id, admin.id) is None:
        raise NotFound("Product not found or not editable")
    return image_store.insert_image(
        ctx.conn,
        product_id=payload.product_id,
        url=str(payload.url),
        public_id=payload.public_id,
    )


@router.mutation("delete", gate=Gate.ADMIN, input=ImageIdInput)
def delete_image(ctx: Context, payload: ImageIdInput) -> Dict[str, Any]:
    """Delete one image and hand back its asset key for external cleanup."""
    admin = current_user(ctx)
    row = image_store.get_image_with_owner(ctx.conn, payload.id)
    if row is None:
        raise NotFound("Image not found")
    if row["admin_id"] != admin.id:
        raise Forbidden("Not allowed to delete this image")

    image_store.delete_image(ctx.conn, payload.id)
    return {"success": True, "publicId": row["public_id"]}


@router.query("byProductId", gate=Gate.ADMIN, input=ProductImagesInput)
def images_by_product_id(ctx: Context, payload: ProductImagesInput) -> List[Dict[str, Any]]:
    admin = current_user(ctx)
    if get_owned_product(ctx.conn, payload.product_id, admin.id) is None:
        raise NotFound("Product not found")
    return image_store.list_images(ctx.conn, payload.product_id)
