from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from .core import STATE_SIZE, derive_seed, initial_state, iter_blocks, pad_input, words_to_bytes_be
from .mixer import mix_block

DIGEST_SIZE = STATE_SIZE * 4

ENGINES = ("auto", "python", "numba")


def compress_state(state: List[int]) -> bytes:
    if len(state) != STATE_SIZE:
        raise ValueError("state must have 16 words")
    return words_to_bytes_be(state)


def cos_hash_trace(data: bytes) -> Tuple[bytes, List[Dict[str, object]]]:
    data = bytes(data)
    state = initial_state(derive_seed(data))
    traces: List[Dict[str, object]] = []
    # block k starts from the state block k-1 left behind
    for block in iter_blocks(pad_input(data)):
        state, trace = mix_block(state, block)
        traces.append(trace)
    return compress_state(state), traces


def cos_hash(data: bytes) -> bytes:
    """CosHash digest of `data`: 64 bytes, 16 big-endian state words."""
    data = bytes(data)
    state = initial_state(derive_seed(data))
    for block in iter_blocks(pad_input(data)):
        state, _ = mix_block(state, block)
    return compress_state(state)


def cos_hash_hex(data: bytes) -> str:
    return cos_hash(data).hex()


def cos_hash_many(messages: Iterable[bytes], *, engine: str = "auto") -> List[bytes]:
    """
    Digest several independent messages.

    engine:
      - "python": reference pipeline, one message at a time
      - "numba": compiled batch kernel (RuntimeError if numba is unavailable)
      - "auto": numba when available, otherwise python
    """
    if engine not in ENGINES:
        raise ValueError(f"unknown engine {engine!r}, expected one of {', '.join(ENGINES)}")
    msgs = [bytes(m) for m in messages]

    if engine != "python":
        from .numba_coshash import cos_hash_batch, numba_available

        if engine == "numba" or numba_available():
            return cos_hash_batch(msgs)

    return [cos_hash(m) for m in msgs]
