"""
Post-quantum envelope benchmark CLI.

Usage:
    pq-envelope-benchmark [--recipients N] [--iterations N] [--size BYTES]

Or run directly:
    python -m pq_envelope.benchmark

Algorithms are selected through PQ_ENVELOPE_KEM / PQ_ENVELOPE_SIGNATURE in
the environment or a .env file.
"""

from __future__ import annotations

import argparse
import sys
import time
from typing import List, Optional, Sequence

from pq_envelope.config import configure_logging, load_settings
from pq_envelope.crypto import generate_random_bytes
from pq_envelope.errors import EnvelopeError
from pq_envelope.service import EnvelopeService


def _rate(count: int, seconds: float) -> str:
    return f"{count / seconds:.2f}" if seconds > 0 else "inf"


def _banner(title: str) -> None:
    print("+" + "-" * 68 + "+")
    print(f"|  {title}".ljust(69) + "|")
    print("+" + "-" * 68 + "+")


def run_benchmark(
    recipients: int = 3,
    iterations: int = 5,
    size: int = 1024,
    env_file: Optional[str] = None,
) -> int:
    """
    Run the seal/open benchmark.

    Returns:
        Process exit code (0 on success)
    """
    print("=== Post-Quantum Envelope Benchmark ===\n")

    try:
        settings = load_settings(env_file)
    except EnvelopeError as e:
        print(f"ERROR: {e}")
        return 1
    configure_logging(settings)

    service = EnvelopeService.new(settings)
    suite = service.suite
    print(f"Suite: {suite} | recipients={recipients} iterations={iterations} size={size}B\n")

    # ========================================================================
    # Phase 1: Key generation
    # ========================================================================
    _banner(f"Phase 1: Generate {recipients} recipient(s) + 1 sender")

    keygen_start = time.perf_counter()
    identities = [service.generate_recipient(f"recipient-{i}") for i in range(recipients)]
    sender = service.generate_sender("sender-0")
    keygen_duration = time.perf_counter() - keygen_start

    print(f"[OK] Generated {recipients + 1} keypairs")
    print(
        f"[PERF] Time: {keygen_duration * 1000:.3f}ms | "
        f"Rate: {_rate(recipients + 1, keygen_duration)} ops/sec\n"
    )

    # ========================================================================
    # Phase 2: Seal
    # ========================================================================
    _banner(f"Phase 2: Seal {size}-byte message x{iterations}")

    plaintext = generate_random_bytes(size)
    envelopes = []
    seal_start = time.perf_counter()
    for _ in range(iterations):
        envelopes.append(service.seal(plaintext, sender.id, identities))
    seal_duration = time.perf_counter() - seal_start

    wire_size = len(envelopes[0].to_bytes())
    print(f"[OK] Sealed {iterations} envelope(s), {wire_size} bytes on the wire each")
    print(
        f"[PERF] Average: {seal_duration * 1000 / iterations:.3f}ms per seal "
        f"({_rate(iterations, seal_duration)} ops/sec)\n"
    )

    # ========================================================================
    # Phase 3: Open as every recipient
    # ========================================================================
    _banner("Phase 3: Open as every recipient")

    opens = 0
    open_start = time.perf_counter()
    for envelope in envelopes:
        for identity in identities:
            recovered = service.open(envelope, identity.id, [sender])
            if recovered != plaintext:
                print(f"[ERROR] Plaintext mismatch for {identity.id}")
                return 1
            opens += 1
    open_duration = time.perf_counter() - open_start

    print(f"[OK] {opens} open(s) recovered the original plaintext")
    print(
        f"[PERF] Average: {open_duration * 1000 / opens:.3f}ms per open "
        f"({_rate(opens, open_duration)} ops/sec)\n"
    )

    # ========================================================================
    # Summary
    # ========================================================================
    print("=" * 70)
    print("                    BENCHMARK SUMMARY")
    print("=" * 70 + "\n")

    stats = service.registry.stats()
    print("Registry:")
    print(f"  - Recipients: {stats.recipients}")
    print(f"  - Senders: {stats.senders}")
    print(f"  - KEM: {stats.kem_algorithm}")
    print(f"  - Signature: {stats.signature_algorithm}")
    print("  - Payload: AES-256-GCM, content key wrapped via HKDF-SHA256 + AES-256-GCM")

    print("\n" + "=" * 70)
    print("                    BENCHMARK COMPLETE")
    print("=" * 70 + "\n")
    return 0


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pq-envelope-benchmark",
        description="Benchmark post-quantum multi-recipient envelopes.",
    )
    parser.add_argument("--recipients", type=int, default=3, help="recipients per envelope")
    parser.add_argument("--iterations", type=int, default=5, help="envelopes to seal")
    parser.add_argument("--size", type=int, default=1024, help="plaintext size in bytes")
    parser.add_argument("--env-file", default=None, help="path to a .env file")
    args = parser.parse_args(argv)
    for name in ("recipients", "iterations"):
        if getattr(args, name) < 1:
            parser.error(f"--{name} must be at least 1")
    if args.size < 0:
        parser.error("--size must not be negative")
    return args


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point for pq-envelope-benchmark command."""
    args = _parse_args(argv)
    sys.exit(
        run_benchmark(
            recipients=args.recipients,
            iterations=args.iterations,
            size=args.size,
            env_file=args.env_file,
        )
    )


if __name__ == "__main__":
    main()
