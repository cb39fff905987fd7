from __future__ import annotations

import argparse
import random
import sys
import time
from typing import List

from .core import pad_input
from .digest import DIGEST_SIZE, ENGINES, cos_hash, cos_hash_hex, cos_hash_many, cos_hash_trace
from .verify import (
    avalanche_stats,
    bit_diff,
    check_block_permutations,
    check_determinism,
    check_padding,
    check_trace,
)

PROMPT = "[INPUT] Enter input string to CosHash\n> "
OUTPUT_LABEL = "[OUTPUT] Hashed: "

CORE_VECTORS = [
    b"",
    b"a",
    b"abc",
    b"ab",
    b"ba",
    b"message digest",
    b"x" * 63,
    b"x" * 64,
    b"x" * 65,
    b"1234567890" * 20,
]


def _strip_eol(line):
    if line[-1:] in ("\n", b"\n"):
        line = line[:-1]
    if line[-1:] in ("\r", b"\r"):
        line = line[:-1]
    return line


def _encode(text: str, encoding: str | None) -> bytes:
    # surrogateescape round-trips undecodable argv/stdin bytes
    return text.encode(encoding or "utf-8", errors="surrogateescape")


def _read_input_line(encoding: str | None) -> bytes:
    if encoding is None:
        # raw bytes of the line, whatever they decode to
        return _strip_eol(sys.stdin.buffer.readline())
    return _encode(_strip_eol(sys.stdin.readline()), encoding)


def cmd_hash(ns: argparse.Namespace) -> int:
    from pathlib import Path

    if ns.file is not None:
        path = Path(ns.file)
        if not path.exists():
            print(f"hash: file not found: {path}")
            return 1
        data = path.read_bytes()
    elif ns.text is not None:
        data = _encode(ns.text, ns.encoding)
    else:
        if not ns.quiet and not ns.raw:
            print(PROMPT, end="", flush=True)
        data = _read_input_line(ns.encoding)

    hex_digest = cos_hash_hex(data)
    if ns.raw:
        print(hex_digest)
    else:
        print(OUTPUT_LABEL + hex_digest)
    return 0


def cmd_verify_core(_: argparse.Namespace) -> int:
    ok_all = True
    for m in CORE_VECTORS:
        label = m[:20] + (b"..." if len(m) > 20 else b"")
        d = cos_hash(m)
        ok_pad, bad_pad = check_padding(m)
        ok_perm, bad_perm = check_block_permutations(m)
        ok_trace, bad_trace = check_trace(m)
        ok = len(d) == DIGEST_SIZE and check_determinism(m) and ok_pad and ok_perm and ok_trace
        print(f"CosHash({label!r}) len={len(m)} blocks={len(pad_input(m)) // 64} -> {'OK' if ok else 'FAIL'}")
        if not ok:
            print(f"  padding={bad_pad} perm={bad_perm} trace={bad_trace}")
            ok_all = False

    ordered = cos_hash(b"ab") != cos_hash(b"ba")
    print(f"order sensitivity ab/ba -> {'OK' if ordered else 'FAIL'}")
    flipped = bit_diff(cos_hash(b"abc"), cos_hash(b"abd"))
    sensitive = flipped > DIGEST_SIZE * 8 // 4
    print(f"sensitivity abc/abd: {flipped}/{DIGEST_SIZE * 8} bits -> {'OK' if sensitive else 'FAIL'}")
    ok_all = ok_all and ordered and sensitive

    print("verify-core:", "PASS" if ok_all else "FAIL")
    return 0 if ok_all else 1


def cmd_check_props(ns: argparse.Namespace) -> int:
    rng = random.Random(ns.seed)
    fails = 0
    for _ in range(ns.samples):
        n = rng.randint(0, ns.max_len)
        m = bytes(rng.getrandbits(8) for _ in range(n))
        ok_pad, _ = check_padding(m)
        ok_trace, bad = check_trace(m)
        if not (ok_pad and ok_trace and check_determinism(m)):
            fails += 1
            if not ns.quiet:
                print(f"check-props: len={n} bad={bad}")
    stats = avalanche_stats(ns.samples, rng, max_len=max(1, ns.max_len))
    print(f"check-props: samples={ns.samples}, fails={fails}")
    print(
        f"check-props: avalanche mean={stats['mean']:.1f} min={stats['min']:.0f} "
        f"max={stats['max']:.0f} of {DIGEST_SIZE * 8} bits (rate={stats['rate']:.3f})"
    )
    ok = fails == 0 and stats["rate"] > 0.25
    print("check-props:", "PASS" if ok else "FAIL")
    return 0 if ok else 1


def cmd_trace(ns: argparse.Namespace) -> int:
    data = _encode(ns.text, ns.encoding)
    digest, traces = cos_hash_trace(data)
    print(f"trace: len={len(data)} blocks={len(traces)}")
    for k, tr in enumerate(traces):
        a, b, c = tr["params"]  # type: ignore[misc]
        print(f"block {k}: a={a:08x} b={b:08x} c={c:08x}")
        print("  perm    :", " ".join(str(p) for p in tr["perm"]))  # type: ignore[union-attr]
        print("  rot     :", " ".join(str(r) for r in tr["rot"]))  # type: ignore[union-attr]
        for key in ("absorbed", "mixed", "permuted", "state"):
            print(f"  {key:<8}:", " ".join(f"{w:08x}" for w in tr[key]))  # type: ignore[union-attr]
    print(f"digest: {digest.hex()}")
    return 0


def cmd_bench(ns: argparse.Namespace) -> int:
    if ns.count < 1:
        print("bench: --count must be >= 1")
        return 1
    rng = random.Random(ns.seed)
    msgs = [bytes(rng.getrandbits(8) for _ in range(ns.length)) for _ in range(ns.count)]

    if ns.engine != "python":
        # first call compiles the kernel
        try:
            cos_hash_many(msgs[:1], engine=ns.engine)
        except RuntimeError as exc:
            print(f"bench: {exc}")
            return 1

    start = time.perf_counter()
    out = cos_hash_many(msgs, engine=ns.engine)
    elapsed = time.perf_counter() - start
    total = ns.count * ns.length
    rate = total / elapsed / 1e6 if elapsed else 0.0
    print(f"bench: engine={ns.engine} count={ns.count} length={ns.length} time={elapsed:.3f}s rate={rate:.3f} MB/s")

    if ns.check:
        ref = cos_hash_many(msgs, engine="python")
        mismatches = sum(1 for x, y in zip(out, ref) if x != y)
        print(f"bench: check against python -> {'PASS' if mismatches == 0 else 'FAIL'}; mismatches={mismatches}")
        return 0 if mismatches == 0 else 1
    return 0


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="coshash")
    sub = p.add_subparsers(dest="cmd", required=True)

    s1 = sub.add_parser("hash", help="hash one line from stdin (or --text / --file) and print the hex digest")
    s1.add_argument("--text", type=str, default=None)
    s1.add_argument("--file", type=str, default=None)
    s1.add_argument("--encoding", type=str, default=None, help="text encoding (default: raw stdin bytes, utf-8 for --text)")
    s1.add_argument("--raw", action="store_true", help="print only the hex digest")
    s1.add_argument("--quiet", "-q", action="store_true", help="no prompt")
    s1.set_defaults(func=cmd_hash)

    s2 = sub.add_parser("verify-core", help="check digest properties on fixed vectors")
    s2.set_defaults(func=cmd_verify_core)

    s3 = sub.add_parser("check-props", help="padding/permutation/rotation/avalanche checks on random inputs")
    s3.add_argument("--samples", type=int, default=50)
    s3.add_argument("--max-len", type=int, default=200)
    s3.add_argument("--seed", type=int, default=None)
    s3.add_argument("--quiet", "-q", action="store_true")
    s3.set_defaults(func=cmd_check_props)

    s4 = sub.add_parser("trace", help="print per-block mixer intermediates")
    s4.add_argument("--text", type=str, required=True)
    s4.add_argument("--encoding", type=str, default=None, help="text encoding (default: utf-8)")
    s4.set_defaults(func=cmd_trace)

    s5 = sub.add_parser("bench", help="throughput of batch hashing")
    s5.add_argument("--count", type=int, default=1000)
    s5.add_argument("--length", type=int, default=256)
    s5.add_argument("--engine", choices=list(ENGINES), default="auto")
    s5.add_argument("--seed", type=int, default=2024)
    s5.add_argument("--check", action="store_true", help="compare against the python engine")
    s5.set_defaults(func=cmd_bench)

    args = p.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
