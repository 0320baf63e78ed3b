"""Key handles and key management for mdoc HPKE.

Two capability types:
    - RecipientPublicKey: can only be encrypted to
    - RecipientKeyPair: can also decrypt
"""

from dataclasses import dataclass, field
from typing import Union

from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .curves import CurveParams, ECPoint, P256, decode_point, encode_point
from .types import InvalidKeyError


@dataclass(frozen=True)
class RecipientPublicKey:
    """Public component of a recipient key (encryption-capable handle)."""
    point: ECPoint
    curve: CurveParams = P256

    def __post_init__(self) -> None:
        # encode_point validates curve membership
        encode_point(self.point, self.curve)

    @classmethod
    def from_bytes(cls, data: bytes, curve: CurveParams = P256) -> "RecipientPublicKey":
        """Create a handle from a 65-byte uncompressed point."""
        return cls(decode_point(data, curve), curve)

    @classmethod
    def from_cryptography(
        cls, public_key: ec.EllipticCurvePublicKey, curve: CurveParams = P256
    ) -> "RecipientPublicKey":
        """Create a handle from a ``cryptography`` public key."""
        if public_key.curve.name != curve.name:
            raise InvalidKeyError(
                f"Expected a {curve.name} key, got {public_key.curve.name}"
            )
        numbers = public_key.public_numbers()
        return cls(ECPoint(numbers.x, numbers.y), curve)

    def to_bytes(self) -> bytes:
        """Uncompressed point encoding (EncodedPublicKey)."""
        return encode_point(self.point, self.curve)

    def to_cryptography(self) -> ec.EllipticCurvePublicKey:
        return public_key_from_bytes(self.to_bytes(), self.curve)


@dataclass(frozen=True)
class RecipientKeyPair:
    """Private and public recipient key (decryption-capable handle)."""
    private_key: ec.EllipticCurvePrivateKey = field(repr=False)
    public_key: RecipientPublicKey

    def __post_init__(self) -> None:
        derived = RecipientPublicKey.from_cryptography(
            self.private_key.public_key(), self.public_key.curve
        )
        if derived != self.public_key:
            raise InvalidKeyError("Private key does not match public key")

    @classmethod
    def from_private_key(
        cls, private_key: ec.EllipticCurvePrivateKey, curve: CurveParams = P256
    ) -> "RecipientKeyPair":
        """Wrap an existing ``cryptography`` private key."""
        public_key = RecipientPublicKey.from_cryptography(private_key.public_key(), curve)
        return cls(private_key=private_key, public_key=public_key)

    @property
    def curve(self) -> CurveParams:
        return self.public_key.curve

    def private_bytes(self) -> bytes:
        """Private scalar as fixed-width big-endian bytes."""
        scalar = self.private_key.private_numbers().private_value
        return scalar.to_bytes(self.curve.coordinate_size, byteorder="big")


def generate_keypair(curve: CurveParams = P256) -> RecipientKeyPair:
    """
    Generate a random recipient key pair.

    Args:
        curve: Curve parameters

    Returns:
        A fresh RecipientKeyPair
    """
    private_key = ec.generate_private_key(curve.curve())
    return RecipientKeyPair.from_private_key(private_key, curve)


def keypair_from_private_bytes(data: bytes, curve: CurveParams = P256) -> RecipientKeyPair:
    """
    Create a key pair from a big-endian private scalar.

    Args:
        data: Private scalar (32 bytes for P-256)
        curve: Curve parameters

    Returns:
        RecipientKeyPair with the matching public key

    Raises:
        InvalidKeyError: If the length is wrong or the scalar is out of range
    """
    if len(data) != curve.coordinate_size:
        raise InvalidKeyError(
            f"Private key must be {curve.coordinate_size} bytes, got {len(data)}"
        )

    return keypair_from_scalar(int.from_bytes(data, byteorder="big"), curve)


def keypair_from_scalar(scalar: int, curve: CurveParams = P256) -> RecipientKeyPair:
    """Create a key pair from an integer private scalar in [1, n-1]."""
    if not 0 < scalar < curve.n:
        raise InvalidKeyError("Private scalar out of range")

    private_key = ec.derive_private_key(scalar, curve.curve())
    return RecipientKeyPair.from_private_key(private_key, curve)


def public_key_from_bytes(data: bytes, curve: CurveParams = P256) -> ec.EllipticCurvePublicKey:
    """Create a ``cryptography`` public key from an uncompressed point."""
    decode_point(data, curve)
    try:
        return ec.EllipticCurvePublicKey.from_encoded_point(curve.curve(), data)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid public key: {e}") from e


def public_key_to_bytes(public_key: ec.EllipticCurvePublicKey) -> bytes:
    """Convert a ``cryptography`` public key to an uncompressed point."""
    return public_key.public_bytes(Encoding.X962, PublicFormat.UncompressedPoint)


PublicKeyLike = Union[
    RecipientPublicKey, RecipientKeyPair, ECPoint, ec.EllipticCurvePublicKey, bytes
]


def encoded_public_key(public_key: PublicKeyLike, curve: CurveParams = P256) -> bytes:
    """
    Normalize any supported public key representation to EncodedPublicKey.

    Raw bytes are validated, never passed through unchecked.

    Raises:
        InvalidKeyError: If the key is malformed
        TypeError: If the representation is not supported
    """
    if isinstance(public_key, RecipientKeyPair):
        return public_key.public_key.to_bytes()
    if isinstance(public_key, RecipientPublicKey):
        return public_key.to_bytes()
    if isinstance(public_key, ECPoint):
        return encode_point(public_key, curve)
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        return RecipientPublicKey.from_cryptography(public_key, curve).to_bytes()
    if isinstance(public_key, (bytes, bytearray)):
        data = bytes(public_key)
        decode_point(data, curve)
        return data
    raise TypeError(f"Unsupported public key type: {type(public_key).__name__}")
