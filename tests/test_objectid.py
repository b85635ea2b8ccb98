import datetime
import threading
import unittest

from bsonwrite.errors import InvalidId
from bsonwrite.objectid import IdentifierGenerator, ObjectId, default_generator


class IdentifierGeneratorTests(unittest.TestCase):
    def test_generates_twelve_bytes(self) -> None:
        oid = IdentifierGenerator().generate()
        self.assertIsInstance(oid, ObjectId)
        self.assertEqual(len(oid.binary), 12)

    def test_layout_shares_discriminator_and_counts_up(self) -> None:
        gen = IdentifierGenerator()
        first = gen.generate().binary
        second = gen.generate().binary

        self.assertEqual(first[4:9], second[4:9])
        counter1 = int.from_bytes(first[9:12], "big")
        counter2 = int.from_bytes(second[9:12], "big")
        self.assertEqual(counter2, (counter1 + 1) % (0xFFFFFF + 1))

    def test_counter_wraps(self) -> None:
        gen = IdentifierGenerator()
        gen._counter = 0xFFFFFF
        last = gen.generate().binary
        wrapped = gen.generate().binary
        self.assertEqual(last[9:12], b"\xff\xff\xff")
        self.assertEqual(wrapped[9:12], b"\x00\x00\x00")

    def test_timestamp_is_current(self) -> None:
        oid = IdentifierGenerator().generate()
        now = datetime.datetime.now(datetime.timezone.utc)
        self.assertLess(abs((now - oid.generation_time).total_seconds()), 5)

    def test_no_duplicates_across_threads(self) -> None:
        gen = IdentifierGenerator()
        per_thread = 25_000
        results: list[list[bytes]] = [[] for _ in range(4)]

        def worker(out: list[bytes]) -> None:
            for _ in range(per_thread):
                out.append(gen.generate().binary)

        threads = [threading.Thread(target=worker, args=(out,)) for out in results]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        all_ids = [oid for out in results for oid in out]
        self.assertEqual(len(all_ids), 100_000)
        self.assertEqual(len(set(all_ids)), len(all_ids))

    def test_default_generator_is_shared(self) -> None:
        self.assertIs(default_generator(), default_generator())


class ObjectIdTests(unittest.TestCase):
    def test_hex_roundtrip(self) -> None:
        oid = ObjectId("5f2b6c3e9d1a4b0012345678")
        self.assertEqual(str(oid), "5f2b6c3e9d1a4b0012345678")
        self.assertEqual(ObjectId(oid.binary), oid)
        self.assertEqual(ObjectId(oid), oid)

    def test_no_argument_generates(self) -> None:
        self.assertNotEqual(ObjectId(), ObjectId())

    def test_invalid_inputs_raise(self) -> None:
        for bad in (b"short", "zz" * 12, "abc", 12):
            with self.assertRaises(InvalidId):
                ObjectId(bad)

    def test_is_valid(self) -> None:
        self.assertTrue(ObjectId.is_valid(b"x" * 12))
        self.assertTrue(ObjectId.is_valid("00" * 12))
        self.assertFalse(ObjectId.is_valid(None))
        self.assertFalse(ObjectId.is_valid("nope"))

    def test_immutable_and_hashable(self) -> None:
        oid = ObjectId()
        with self.assertRaises(AttributeError):
            oid._id = b"y" * 12
        self.assertEqual(len({oid, ObjectId(oid.binary)}), 1)

    def test_ordering_follows_bytes(self) -> None:
        low = ObjectId(b"\x00" * 12)
        high = ObjectId(b"\x01" * 12)
        self.assertLess(low, high)
        self.assertLessEqual(low, high)
        self.assertLessEqual(low, ObjectId(low.binary))
        self.assertGreater(high, low)
        self.assertGreaterEqual(high, low)
        self.assertEqual(sorted([high, low]), [low, high])

    def test_hex_with_whitespace_rejected(self) -> None:
        padded = "00 00000000000000000000 "
        self.assertEqual(len(padded), 24)
        with self.assertRaises(InvalidId):
            ObjectId(padded)
        self.assertFalse(ObjectId.is_valid(padded))
        self.assertFalse(ObjectId.is_valid("0x" + "00" * 11))


if __name__ == "__main__":
    unittest.main()
