"""
Elliptic-curve point encoding.

Points travel as fixed-width uncompressed SEC1 buffers:

    [0]      0x04 (uncompressed-point tag)
    [1..n]   X, big-endian, left-padded to the coordinate size
    [n+1..]  Y, big-endian, left-padded to the coordinate size

The curve is a parameter so callers never hard-code P-256; ``P256`` is the
only parameter set shipped.
"""

from dataclasses import dataclass
from typing import Optional, Type

from cryptography.hazmat.primitives.asymmetric import ec

from .types import InvalidKeyError, UNCOMPRESSED_POINT_TAG


@dataclass(frozen=True)
class CurveParams:
    """Short Weierstrass curve y^2 = x^3 + ax + b over GF(p)."""
    name: str
    p: int
    a: int
    b: int
    n: int  # group order
    gx: int
    gy: int
    coordinate_size: int
    curve_class: Type[ec.EllipticCurve]

    @property
    def encoded_size(self) -> int:
        """Length of an uncompressed point encoding."""
        return 1 + 2 * self.coordinate_size

    @property
    def generator(self) -> "ECPoint":
        return ECPoint(self.gx, self.gy)

    def curve(self) -> ec.EllipticCurve:
        """Returns the matching ``cryptography`` curve instance."""
        return self.curve_class()


P256 = CurveParams(
    name="secp256r1",
    p=0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFF,
    a=0xFFFFFFFF00000001000000000000000000000000FFFFFFFFFFFFFFFFFFFFFFFC,
    b=0x5AC635D8AA3A93E7B3EBBD55769886BC651D06B0CC53B0F63BCE3C3E27D2604B,
    n=0xFFFFFFFF00000000FFFFFFFFFFFFFFFFBCE6FAADA7179E84F3B9CAC2FC632551,
    gx=0x6B17D1F2E12C4247F8BCE6E563A440F277037D812DEB33A0F4A13945D898C296,
    gy=0x4FE342E2FE1A7F9B8EE7EB4A7C0F9E162BCE33576B315ECECBB6406837BF51F5,
    coordinate_size=32,
    curve_class=ec.SECP256R1,
)


@dataclass(frozen=True)
class ECPoint:
    """Affine curve point. The identity element is represented by ``None``."""
    x: int
    y: int


def is_on_curve(point: Optional[ECPoint], curve: CurveParams = P256) -> bool:
    """Check that an affine point satisfies the curve equation."""
    if point is None:
        return False

    x, y = point.x, point.y
    if not (0 <= x < curve.p and 0 <= y < curve.p):
        return False

    return (y * y - (x * x * x + curve.a * x + curve.b)) % curve.p == 0


def encode_point(point: Optional[ECPoint], curve: CurveParams = P256) -> bytes:
    """
    Encode a curve point as an uncompressed SEC1 buffer.

    Args:
        point: Affine point, or None for the identity
        curve: Curve parameters

    Returns:
        ``curve.encoded_size`` bytes (65 for P-256)

    Raises:
        InvalidKeyError: If the point is the identity or not on the curve
    """
    if point is None:
        raise InvalidKeyError("Cannot encode the identity element")

    if not is_on_curve(point, curve):
        raise InvalidKeyError(f"Point is not on {curve.name}")

    size = curve.coordinate_size
    return (
        bytes([UNCOMPRESSED_POINT_TAG])
        + point.x.to_bytes(size, byteorder="big")
        + point.y.to_bytes(size, byteorder="big")
    )


def decode_point(data: bytes, curve: CurveParams = P256) -> ECPoint:
    """
    Decode an uncompressed SEC1 buffer into a curve point.

    Args:
        data: Encoded point
        curve: Curve parameters

    Returns:
        The decoded ECPoint

    Raises:
        InvalidKeyError: On wrong length, wrong tag, or an off-curve point
    """
    if len(data) != curve.encoded_size:
        raise InvalidKeyError(
            f"Encoded point must be {curve.encoded_size} bytes, got {len(data)}"
        )

    if data[0] != UNCOMPRESSED_POINT_TAG:
        raise InvalidKeyError(f"Unsupported point format tag: 0x{data[0]:02x}")

    size = curve.coordinate_size
    point = ECPoint(
        x=int.from_bytes(data[1 : 1 + size], byteorder="big"),
        y=int.from_bytes(data[1 + size :], byteorder="big"),
    )

    if not is_on_curve(point, curve):
        raise InvalidKeyError(f"Point is not on {curve.name}")

    return point
