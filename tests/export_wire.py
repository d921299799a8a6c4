#!/usr/bin/env python3
"""Export Python-generated wire messages for cross-implementation testing."""

import json
from pathlib import Path
import sys

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from otpcrypto.config import OtpCryptoConfig, FixedTimeProvider
from otpcrypto.pipeline import ProtectionPipeline
from test_vectors import (
    MASTER_KEY_HEX,
    FIXED_EPOCH,
    FIXED_NONCE_HEX,
    WINDOW_SECONDS,
    TEST_PAYLOADS,
)


def main() -> None:
    """Export all test payloads as JSON wire files."""
    # Output directory
    output_dir = Path(__file__).parent.parent.parent / "test-otpcrypto" / "test-wire-python"
    output_dir.mkdir(parents=True, exist_ok=True)

    config = OtpCryptoConfig(
        master_key=bytes.fromhex(MASTER_KEY_HEX),
        window_seconds=WINDOW_SECONDS,
        time_provider=FixedTimeProvider(FIXED_EPOCH),
    )
    nonce = bytes.fromhex(FIXED_NONCE_HEX)

    print(f"Exporting {len(TEST_PAYLOADS)} test messages to {output_dir}")

    with ProtectionPipeline(config, nonce_source=lambda: nonce) as pipeline:
        for key, payload in TEST_PAYLOADS.items():
            message = pipeline.protect(payload)

            record = {
                "plaintext_hex": payload.hex(),
                "headers": message.to_wire_headers(),
                "body": message.to_wire_body(),
            }

            output_file = output_dir / f"{key}.json"
            output_file.write_text(json.dumps(record, indent=2, sort_keys=True))

            print(f"  {key}: {len(message.ciphertext)} ciphertext bytes")

    print(f"\nExported {len(TEST_PAYLOADS)} messages to {output_dir}")


if __name__ == "__main__":
    main()
