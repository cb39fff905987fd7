import random
import unittest

from coshash.core import MASK32, initial_mix
from coshash.digest import (
    DIGEST_SIZE,
    compress_state,
    cos_hash,
    cos_hash_hex,
    cos_hash_many,
    cos_hash_trace,
)
from coshash.verify import avalanche_stats, bit_diff, check_padding, check_trace, flip_bit


EMPTY_DIGEST = bytes.fromhex(
    "e45a4c8d41c6da497535c02b8dd82d26cc5aebfd343c0a7d3e27484f47063ccd"
    "d8021c932210ac5c8a13938ba8901e903cdc35822d76507f526ab3bbc5cbc834"
)


def _empty_digest_reference() -> bytes:
    # Integer-only reconstruction of the empty-input digest: seed is 0 and the
    # single padded block is 0x80 followed by zeros, so c == 0 and the sine
    # term contributes nothing.
    def fmix(v: int) -> int:
        v ^= v >> 16
        v = (v * 0x85EBCA6B) & MASK32
        v ^= v >> 13
        v = (v * 0xC2B2AE35) & MASK32
        v ^= v >> 16
        return v

    state = [fmix((i * 0x85EBCA6B) & MASK32) for i in range(16)]
    state[0] = (state[0] + 0x80000000) & MASK32

    perm = list(range(16))
    counter = 0x80000000
    for i in range(15, 0, -1):
        counter = (counter * 1664525 + 1013904223) & MASK32
        j = counter % (i + 1)
        perm[i], perm[j] = perm[j], perm[i]
    state = [state[p] for p in perm]

    out = []
    for i in range(16):
        n = state[(i + 1) % 16]
        r = state[i] & 31
        rot = ((n << r) | (n >> (32 - r))) & MASK32 if r else n
        out.append(state[i] ^ rot)
    return b"".join(w.to_bytes(4, "big") for w in out)


class TestDigest(unittest.TestCase):
    def test_output_size(self) -> None:
        for n in (0, 1, 3, 55, 63, 64, 65, 200):
            self.assertEqual(len(cos_hash(b"q" * n)), DIGEST_SIZE)
        self.assertEqual(DIGEST_SIZE, 64)

    def test_hex(self) -> None:
        h = cos_hash_hex(b"abc")
        self.assertEqual(len(h), 128)
        self.assertEqual(h, h.lower())
        self.assertEqual(bytes.fromhex(h), cos_hash(b"abc"))

    def test_deterministic(self) -> None:
        for m in (b"", b"abc", bytes(range(256))):
            self.assertEqual(cos_hash(m), cos_hash(m))

    def test_bytes_like_inputs(self) -> None:
        m = b"hello world"
        self.assertEqual(cos_hash(bytearray(m)), cos_hash(m))
        self.assertEqual(cos_hash(memoryview(m)), cos_hash(m))

    def test_empty_input_regression(self) -> None:
        self.assertEqual(initial_mix(0, 0), 0)
        self.assertEqual(cos_hash(b""), _empty_digest_reference())
        self.assertEqual(cos_hash(b""), EMPTY_DIGEST)

    def test_order_sensitivity(self) -> None:
        self.assertNotEqual(cos_hash(b"ab"), cos_hash(b"ba"))

    def test_sensitivity_abc_abd(self) -> None:
        self.assertGreater(bit_diff(cos_hash(b"abc"), cos_hash(b"abd")), 512 // 4)

    def test_single_bit_flips(self) -> None:
        stats = avalanche_stats(40, random.Random(1234), min_len=4, max_len=80)
        self.assertGreater(stats["rate"], 0.25)

    def test_flip_bit(self) -> None:
        self.assertEqual(flip_bit(b"\x00\x00", 9), b"\x00\x02")

    def test_trace_matches_digest(self) -> None:
        for n in (0, 10, 64, 130):
            m = bytes(range(n % 256)) * (n // 256 + 1)
            m = m[:n]
            digest, traces = cos_hash_trace(m)
            self.assertEqual(digest, cos_hash(m))
            self.assertEqual(len(traces), n // 64 + 1)
            self.assertEqual(compress_state(traces[-1]["state"]), digest)

    def test_blocks_chain(self) -> None:
        # changing only the last block changes the digest; first-block trace stays
        m1 = b"A" * 64 + b"tail-1"
        m2 = b"A" * 64 + b"tail-2"
        _, t1 = cos_hash_trace(m1)
        _, t2 = cos_hash_trace(m2)
        self.assertNotEqual(cos_hash(m1), cos_hash(m2))
        self.assertEqual(t1[0]["perm"], t2[0]["perm"])
        self.assertEqual(t1[0]["params"], t2[0]["params"])

    def test_property_checks(self) -> None:
        rng = random.Random(99)
        for _ in range(30):
            m = bytes(rng.getrandbits(8) for _ in range(rng.randint(0, 150)))
            ok, bad = check_padding(m)
            self.assertTrue(ok, bad)
            ok, bad = check_trace(m)
            self.assertTrue(ok, bad)

    def test_compress_state(self) -> None:
        state = [0x01020304] + [0] * 14 + [0xFFFFFFFF]
        out = compress_state(state)
        self.assertEqual(out[:4], b"\x01\x02\x03\x04")
        self.assertEqual(out[-4:], b"\xff\xff\xff\xff")
        with self.assertRaises(ValueError):
            compress_state([0] * 8)


class TestMany(unittest.TestCase):
    def test_python_engine(self) -> None:
        msgs = [b"", b"a", b"ab" * 50]
        self.assertEqual(cos_hash_many(msgs, engine="python"), [cos_hash(m) for m in msgs])

    def test_auto_engine(self) -> None:
        msgs = [b"x" * n for n in range(0, 140, 7)]
        self.assertEqual(cos_hash_many(msgs), [cos_hash(m) for m in msgs])

    def test_unknown_engine(self) -> None:
        with self.assertRaises(ValueError):
            cos_hash_many([b"a"], engine="gpu")


if __name__ == "__main__":
    unittest.main()
