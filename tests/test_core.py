import unittest

from coshash.core import (
    BLOCK_SIZE,
    MASK32,
    bytes_to_words_be,
    derive_seed,
    initial_mix,
    initial_state,
    iter_blocks,
    pad_input,
    rl,
    words_to_bytes_be,
)


class TestPadding(unittest.TestCase):
    def test_pad_lengths(self) -> None:
        cases = {0: 64, 1: 64, 55: 64, 56: 64, 63: 64, 64: 128, 65: 128, 127: 128, 128: 192}
        for n, expected in cases.items():
            padded = pad_input(b"\x11" * n)
            self.assertEqual(len(padded), expected, n)
            self.assertEqual(len(padded) % BLOCK_SIZE, 0)
            self.assertGreaterEqual(len(padded), n + 1)

    def test_pad_layout(self) -> None:
        data = b"abc"
        padded = pad_input(data)
        self.assertEqual(padded[:3], data)
        self.assertEqual(padded[3], 0x80)
        self.assertEqual(padded[4:], b"\x00" * 60)

    def test_empty_input_single_block(self) -> None:
        self.assertEqual(pad_input(b""), b"\x80" + b"\x00" * 63)

    def test_no_length_suffix(self) -> None:
        # "a" and "a\x80" pad differently only in the sentinel position
        self.assertEqual(pad_input(b"a")[:2], b"a\x80")
        self.assertEqual(pad_input(b"a\x80")[:3], b"a\x80\x80")

    def test_iter_blocks(self) -> None:
        blocks = list(iter_blocks(pad_input(b"z" * 100)))
        self.assertEqual(len(blocks), 2)
        self.assertTrue(all(len(b) == BLOCK_SIZE for b in blocks))
        self.assertEqual(blocks[1][100 - 64], 0x80)


class TestSeed(unittest.TestCase):
    def test_empty_seed_is_zero(self) -> None:
        self.assertEqual(derive_seed(b""), 0)

    def test_single_byte(self) -> None:
        # seed=1; 1 ^ (97 + 0x9e3779b9 + (1 << 6) + (1 >> 2))
        self.assertEqual(derive_seed(b"a"), 0x9E377A5B)

    def test_order_sensitive(self) -> None:
        self.assertNotEqual(derive_seed(b"ab"), derive_seed(b"ba"))

    def test_stays_32_bit(self) -> None:
        seed = derive_seed(bytes(range(256)) * 8)
        self.assertEqual(seed & MASK32, seed)


class TestInitialState(unittest.TestCase):
    def test_zero_seed_zero_index(self) -> None:
        self.assertEqual(initial_mix(0, 0), 0)

    def test_state_matches_per_index_mix(self) -> None:
        seed = 0xDEADBEEF
        state = initial_state(seed)
        self.assertEqual(len(state), 16)
        self.assertEqual(state, [initial_mix(seed, i) for i in range(16)])
        self.assertTrue(all(0 <= w <= MASK32 for w in state))

    def test_distinct_words(self) -> None:
        # the finalizer is a bijection, distinct inputs give distinct words
        self.assertEqual(len(set(initial_state(0x12345678))), 16)


class TestWordHelpers(unittest.TestCase):
    def test_rotate(self) -> None:
        self.assertEqual(rl(0x80000001, 1), 0x00000003)
        self.assertEqual(rl(0x12345678, 0), 0x12345678)
        self.assertEqual(rl(0x12345678, 32), 0x12345678)
        self.assertEqual(rl(0x12345678, 8), 0x34567812)

    def test_big_endian_words(self) -> None:
        block = bytes(range(8))
        self.assertEqual(bytes_to_words_be(block), [0x00010203, 0x04050607])
        self.assertEqual(words_to_bytes_be([0x00010203, 0x04050607]), block)

    def test_bad_block_length(self) -> None:
        with self.assertRaises(ValueError):
            bytes_to_words_be(b"\x00" * 5)


if __name__ == "__main__":
    unittest.main()
