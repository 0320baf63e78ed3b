"""
Recipient public key hashing.

The SHA-256 digest of the encoded recipient key (``pkRHash``) is embedded in
every session transcript, binding the transcript to one recipient without
carrying the full key.
"""

import hashlib

from .curves import CurveParams, P256
from .keys import PublicKeyLike, encoded_public_key


def public_key_hash(public_key: PublicKeyLike, curve: CurveParams = P256) -> bytes:
    """
    Compute pkRHash for a recipient public key.

    Args:
        public_key: Recipient key in any supported representation
        curve: Curve parameters

    Returns:
        SHA-256 of the 65-byte uncompressed point (32 bytes)

    Raises:
        InvalidKeyError: If the key is malformed
    """
    return hashlib.sha256(encoded_public_key(public_key, curve)).digest()


def fingerprint(public_key: PublicKeyLike, curve: CurveParams = P256) -> str:
    """
    Generate a human-readable fingerprint for a recipient public key.

    The fingerprint is the truncated pkRHash formatted for easy comparison.

    Args:
        public_key: Recipient key in any supported representation
        curve: Curve parameters

    Returns:
        A fingerprint string like "A7B3 C9D1 E5F2 8A4B"
    """
    return format_fingerprint(public_key_hash(public_key, curve))


def format_fingerprint(hash_bytes: bytes) -> str:
    """Format an already computed pkRHash as a fingerprint."""
    # Take first 8 bytes and format as hex groups
    hex_bytes = [f"{b:02X}" for b in hash_bytes[:8]]

    # Group into pairs of bytes (4 chars each), space separated
    groups = [hex_bytes[i] + hex_bytes[i + 1] for i in range(0, 8, 2)]

    return " ".join(groups)
