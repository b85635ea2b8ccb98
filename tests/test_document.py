import unittest
from collections import OrderedDict

from bsonwrite.document import (
    DocumentView,
    FlatPairDocument,
    MapDocument,
    OrderedDocument,
    as_document,
)
from bsonwrite.errors import UnsupportedValueType


class LocateIdentifierTests(unittest.TestCase):
    def test_map_presence_not_truthiness(self) -> None:
        self.assertEqual(MapDocument({"_id": None}).locate_identifier(), (True, None))
        self.assertEqual(MapDocument({"_id": 0}).locate_identifier(), (True, 0))
        self.assertEqual(MapDocument({"a": 1}).locate_identifier(), (False, None))

    def test_ordered_returns_first_match(self) -> None:
        doc = OrderedDocument([("a", 1), ("_id", "first"), ("_id", "second")])
        self.assertEqual(doc.locate_identifier(), (True, "first"))
        self.assertEqual(OrderedDocument([("a", 1)]).locate_identifier(), (False, None))

    def test_flat_scans_name_positions_only(self) -> None:
        doc = FlatPairDocument(["a", "_id", "_id", 5])
        self.assertEqual(doc.locate_identifier(), (True, 5))

    def test_flat_dangling_name_is_absent(self) -> None:
        doc = FlatPairDocument(["name", "x", "_id"])
        self.assertEqual(doc.locate_identifier(), (False, None))

    def test_custom_key(self) -> None:
        self.assertEqual(MapDocument({"pk": 3}).locate_identifier("pk"), (True, 3))


class ItemsTests(unittest.TestCase):
    def test_flat_items_drop_dangling_name(self) -> None:
        doc = FlatPairDocument(["a", 1, "b", 2, "c"])
        self.assertEqual(list(doc.items()), [("a", 1), ("b", 2)])

    def test_ordered_items_keep_order(self) -> None:
        pairs = [("z", 1), ("a", 2)]
        self.assertEqual(list(OrderedDocument(pairs).items()), pairs)

    def test_malformed_pair_raises(self) -> None:
        with self.assertRaises(UnsupportedValueType):
            list(OrderedDocument([("a", 1), ("b",)]).items())

    def test_views_do_not_copy(self) -> None:
        data = {"a": 1}
        view = MapDocument(data)
        data["b"] = 2
        self.assertEqual(dict(view.items()), {"a": 1, "b": 2})
        self.assertIs(view.raw, data)


class DocumentViewBaseTests(unittest.TestCase):
    def test_incomplete_variant_cannot_be_built(self) -> None:
        class ItemsOnly(DocumentView):
            def items(self):
                return iter(())

        with self.assertRaises(TypeError):
            DocumentView({})
        with self.assertRaises(TypeError):
            ItemsOnly({})


class AsDocumentTests(unittest.TestCase):
    def test_dispatch(self) -> None:
        self.assertIsInstance(as_document({"a": 1}), MapDocument)
        self.assertIsInstance(as_document(OrderedDict(a=1)), MapDocument)
        self.assertIsInstance(as_document([("a", 1)]), OrderedDocument)
        self.assertIsInstance(as_document([]), OrderedDocument)
        self.assertIsInstance(as_document(["a", 1]), FlatPairDocument)
        self.assertIsInstance(as_document(("a", 1)), FlatPairDocument)

    def test_view_passes_through(self) -> None:
        view = FlatPairDocument(["a", 1])
        self.assertIs(as_document(view), view)

    def test_rejects_other_types(self) -> None:
        for bad in ("abc", 42, None, b"raw"):
            with self.assertRaises(UnsupportedValueType):
                as_document(bad)


if __name__ == "__main__":
    unittest.main()
