import unittest
from datetime import datetime, timezone

from storefront.rpc.errors import ValidationFailed
from storefront.rpc.transformer import deserialize, is_envelope, serialize


class TransformerTests(unittest.TestCase):
    def test_datetimes_are_annotated(self):
        created = datetime(2026, 3, 1, 12, 30, 5, 250000, tzinfo=timezone.utc)
        out = serialize({"products": [{"id": "p1", "createdAt": created}], "nextCursor": None})

        self.assertEqual(out["json"]["products"][0]["createdAt"], "2026-03-01T12:30:05.250Z")
        self.assertEqual(out["meta"], {"values": {"products.0.createdAt": ["Date"]}})

        revived = deserialize(out)
        self.assertEqual(revived["products"][0]["createdAt"], created)
        self.assertIsNone(revived["nextCursor"])

    def test_plain_values_have_no_meta(self):
        out = serialize({"success": True, "publicId": "shop/abc"})
        self.assertEqual(out, {"json": {"success": True, "publicId": "shop/abc"}})

    def test_keys_with_dots_are_escaped(self):
        when = datetime(2026, 1, 1, tzinfo=timezone.utc)
        out = serialize({"a.b": when})
        self.assertEqual(list(out["meta"]["values"]), ["a\\.b"])
        self.assertEqual(deserialize(out), {"a.b": when})

    def test_raw_input_passes_through(self):
        raw = {"email": "x@shopfront.io", "password": "secret123"}
        self.assertFalse(is_envelope(raw))
        self.assertIs(deserialize(raw), raw)
        self.assertIsNone(deserialize(None))

    def test_envelope_input_is_unwrapped(self):
        self.assertEqual(deserialize({"json": {"limit": 2}}), {"limit": 2})

    def test_mismatched_annotations_are_validation_errors(self):
        bad = [
            {"json": {"limit": 1}, "meta": {"values": {"nope.x": ["Date"]}}},
            {"json": {"cursor": "abc"}, "meta": {"values": {"cursor": ["Date"]}}},
            {"json": {"items": []}, "meta": {"values": {"items.3": ["Date"]}}},
            {"json": {"tags": [{"a": 1}]}, "meta": {"values": {"tags": ["set"]}}},
            {"json": {"limit": 1}, "meta": ["Date"]},
            {"json": {"limit": 1}, "meta": {"values": ["limit"]}},
        ]
        for payload in bad:
            with self.assertRaises(ValidationFailed, msg=repr(payload)):
                deserialize(payload)


if __name__ == "__main__":
    unittest.main()
