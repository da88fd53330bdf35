import unittest

from _support import RpcTestCase


class ImageTests(RpcTestCase):
    def setUp(self):
        super().setUp()
        self.owner, _ = self.register("admin", "owner@shopfront.io")
        self.rival, _ = self.register("admin", "rival@shopfront.io")
        self.product = self.create_product(self.owner, "Vase", price=15)

    def _add(self, token, public_id, product_id=None):
        return self.mutation(
            "image.add",
            {
                "productId": product_id or self.product["id"],
                "url": f"https://cdn.shopfront.io/{public_id}.jpg",
                "publicId": public_id,
            },
            token=token,
        )

    def test_add_and_list_in_creation_order(self):
        first = self.data(self._add(self.owner, "vase-front"))
        second = self.data(self._add(self.owner, "vase-back"))
        self.assertEqual(first["productId"], self.product["id"])
        self.assertEqual(first["url"], "https://cdn.shopfront.io/vase-front.jpg")

        listed = self.data(self.query("image.byProductId", {"productId": self.product["id"]}, token=self.owner))
        self.assertEqual([i["id"] for i in listed], [first["id"], second["id"]])

    def test_add_to_foreign_or_missing_product(self):
        self.error(self._add(self.rival, "intruder"), "NOT_FOUND")
        self.error(self._add(self.owner, "ghost", product_id="missing"), "NOT_FOUND")
        detail = self.data(self.query("product.byId", {"id": self.product["id"]}))
        self.assertEqual(detail["images"], [])

    def test_add_validates_url(self):
        resp = self.mutation(
            "image.add",
            {"productId": self.product["id"], "url": "nope", "publicId": "x"},
            token=self.owner,
        )
        err = self.error(resp, "BAD_REQUEST")
        self.assertIn("url", err["data"]["fieldErrors"])

    def test_delete_returns_asset_key_and_detaches(self):
        image = self.data(self._add(self.owner, "vase-side"))
        out = self.data(self.mutation("image.delete", {"id": image["id"]}, token=self.owner))
        self.assertEqual(out, {"success": True, "publicId": "vase-side"})

        detail = self.data(self.query("product.byId", {"id": self.product["id"]}))
        self.assertNotIn(image["id"], [i["id"] for i in detail["images"]])
        self.error(self.mutation("image.delete", {"id": image["id"]}, token=self.owner), "NOT_FOUND")

    def test_delete_foreign_image_is_forbidden(self):
        image = self.data(self._add(self.owner, "vase-top"))
        resp = self.mutation("image.delete", {"id": image["id"]}, token=self.rival)
        self.assertEqual(resp.status_code, 403)
        self.error(resp, "FORBIDDEN")
        detail = self.data(self.query("product.byId", {"id": self.product["id"]}))
        self.assertEqual([i["id"] for i in detail["images"]], [image["id"]])

    def test_listing_requires_ownership(self):
        self.data(self._add(self.owner, "vase-front"))
        self.error(
            self.query("image.byProductId", {"productId": self.product["id"]}, token=self.rival),
            "NOT_FOUND",
        )

    def test_image_procedures_require_admin(self):
        user_token, _ = self.register("user", "buyer@shopfront.io")
        self.error(self._add(user_token, "x"), "FORBIDDEN")
        self.error(self.query("image.byProductId", {"productId": self.product["id"]}), "UNAUTHORIZED")


if __name__ == "__main__":
    unittest.main()
