"""Encrypted envelope and its optional single-buffer framing."""

from dataclasses import dataclass

from .types import ENCODED_PUBLIC_KEY_SIZE, TAG_SIZE, EncodingError


@dataclass(frozen=True)
class EncryptedEnvelope:
    """Output of one HPKE seal."""
    ciphertext: bytes  # variable (payload + 16-byte tag)
    encapsulated_key: bytes  # 65 bytes, ephemeral public key


def encode_envelope(envelope: EncryptedEnvelope) -> bytes:
    """
    Encode an envelope to a single buffer.

    Format (65-byte header + ciphertext):
        [0-64]   encapsulatedKey (uncompressed P-256 point)
        [65+]    ciphertext (payload + 16-byte tag)

    The core API never frames envelopes itself; this is for callers whose
    channel carries one opaque buffer.

    Args:
        envelope: EncryptedEnvelope to encode

    Returns:
        Encoded bytes
    """
    return envelope.encapsulated_key + envelope.ciphertext


def decode_envelope(data: bytes) -> EncryptedEnvelope:
    """
    Decode bytes into an envelope.

    Args:
        data: Encoded envelope bytes

    Returns:
        Decoded EncryptedEnvelope

    Raises:
        EncodingError: If data is too short to hold a key and a tag
    """
    minimum = ENCODED_PUBLIC_KEY_SIZE + TAG_SIZE
    if len(data) < minimum:
        raise EncodingError(f"Data too short: {len(data)} bytes (minimum {minimum})")

    return EncryptedEnvelope(
        ciphertext=bytes(data[ENCODED_PUBLIC_KEY_SIZE:]),
        encapsulated_key=bytes(data[:ENCODED_PUBLIC_KEY_SIZE]),
    )
