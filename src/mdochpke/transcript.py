"""
Session transcript construction.

    SessionTranscript = [
        null,      ; DeviceEngagementBytes, unused for these handovers
        null,      ; EReaderKeyBytes, unused for these handovers
        Handover
    ]

    AndroidHandover = [
        "AndroidHandoverv1",
        nonce,          ; bstr
        packageName,    ; bstr, UTF-8
        pkRHash         ; bstr, SHA-256 of the recipient public key
    ]

    BrowserHandover = [
        "BrowserHandoverv1",
        nonce,          ; bstr
        origin,         ; bstr, UTF-8
        OriginInfo,     ; {"cat": 1, "type": 1, "details": {"baseUrl": tstr}}
        pkRHash         ; bstr
    ]

Both peers build these independently and feed them to the cipher, so every
byte matters: a mismatch only shows up as an authentication failure.
"""

import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from . import cbor
from .cbor import NULL, Array, Bytes, Int, Map, Null, Text, array, text_map
from .curves import CurveParams, P256
from .hashing import format_fingerprint, public_key_hash
from .keys import PublicKeyLike
from .types import (
    ANDROID_HANDOVER_V1,
    BROWSER_HANDOVER_V1,
    HANDOVER_TAGS,
    ORIGIN_INFO_CAT,
    ORIGIN_INFO_TYPE,
    PUBLIC_KEY_HASH_SIZE,
    EncodingError,
    HandoverType,
    UnsupportedHandoverError,
)

logger = logging.getLogger(__name__)


def origin_info(origin: str) -> Map:
    """OriginInfo map for a browser origin, keys in wire order."""
    return text_map(
        ("cat", Int(ORIGIN_INFO_CAT)),
        ("type", Int(ORIGIN_INFO_TYPE)),
        ("details", text_map(("baseUrl", Text(origin)))),
    )


def android_handover(nonce: bytes, package_name: str, pk_r_hash: bytes) -> Array:
    return array(
        Text(ANDROID_HANDOVER_V1),
        Bytes(nonce),
        Bytes(package_name.encode("utf-8")),
        Bytes(pk_r_hash),
    )


def browser_handover(nonce: bytes, origin: str, pk_r_hash: bytes) -> Array:
    return array(
        Text(BROWSER_HANDOVER_V1),
        Bytes(nonce),
        Bytes(origin.encode("utf-8")),
        origin_info(origin),
        Bytes(pk_r_hash),
    )


def session_transcript(handover: Array) -> Array:
    """Wrap a handover in the SessionTranscript array."""
    return array(NULL, NULL, handover)


def build_android_transcript(
    nonce: bytes,
    recipient_public_key: PublicKeyLike,
    package_name: str,
    curve: CurveParams = P256,
) -> bytes:
    """
    Build the encoded SessionTranscript for an in-app (Android) request.

    Args:
        nonce: Nonce from the request
        recipient_public_key: Recipient (reader) public key
        package_name: Package name of the requesting app
        curve: Curve parameters

    Returns:
        Encoded transcript bytes

    Raises:
        InvalidKeyError: If the recipient key is malformed
    """
    pk_r_hash = public_key_hash(recipient_public_key, curve)
    logger.debug(
        "Building Android transcript for recipient %s",
        format_fingerprint(pk_r_hash),
    )
    return cbor.encode(
        session_transcript(android_handover(bytes(nonce), package_name, pk_r_hash))
    )


def build_browser_transcript(
    nonce: bytes,
    recipient_public_key: PublicKeyLike,
    origin: str,
    curve: CurveParams = P256,
) -> bytes:
    """
    Build the encoded SessionTranscript for a browser-mediated request.

    Args:
        nonce: Nonce from the request
        recipient_public_key: Recipient (reader) public key
        origin: Web origin of the requesting page
        curve: Curve parameters

    Returns:
        Encoded transcript bytes

    Raises:
        InvalidKeyError: If the recipient key is malformed
    """
    pk_r_hash = public_key_hash(recipient_public_key, curve)
    logger.debug(
        "Building Browser transcript for recipient %s",
        format_fingerprint(pk_r_hash),
    )
    return cbor.encode(
        session_transcript(browser_handover(bytes(nonce), origin, pk_r_hash))
    )


def build_session_transcript(
    handover: HandoverType,
    nonce: bytes,
    recipient_public_key: PublicKeyLike,
    caller: str,
    curve: CurveParams = P256,
) -> bytes:
    """Build the transcript for a handover type; caller is package name or origin."""
    if handover == HandoverType.BROWSER:
        return build_browser_transcript(nonce, recipient_public_key, caller, curve)
    return build_android_transcript(nonce, recipient_public_key, caller, curve)


def handover_type_from_name(name: str, strict: bool = False) -> HandoverType:
    """
    Resolve a handover name ("ANDROID", "BROWSER") from external input.

    Unknown names fall back to ANDROID unless strict.

    Raises:
        UnsupportedHandoverError: If strict and the name is unknown
    """
    try:
        return HandoverType(name)
    except ValueError:
        if strict:
            raise UnsupportedHandoverError(name) from None
        logger.warning("Unknown handover %r, treating as %s", name, HandoverType.ANDROID.value)
        return HandoverType.ANDROID


def handover_type_from_tag(tag: str, strict: bool = False) -> HandoverType:
    """Resolve a transcript handover tag, with the same fallback rules."""
    for handover, known in HANDOVER_TAGS.items():
        if tag == known:
            return handover
    if strict:
        raise UnsupportedHandoverError(tag)
    logger.warning("Unknown handover tag %r, treating as %s", tag, HandoverType.ANDROID.value)
    return HandoverType.ANDROID


@dataclass(frozen=True)
class ParsedTranscript:
    """Fields recovered from an encoded SessionTranscript."""
    handover: HandoverType
    tag: str
    nonce: bytes
    caller: str
    pk_r_hash: bytes
    origin: Optional[str] = None

    def matches_recipient(self, public_key: PublicKeyLike, curve: CurveParams = P256) -> bool:
        """Whether pkRHash was computed over the given recipient key."""
        return hmac.compare_digest(self.pk_r_hash, public_key_hash(public_key, curve))


def _expect(item: cbor.CborItem, kind: type, what: str):
    if not isinstance(item, kind):
        raise EncodingError(f"{what}: expected {kind.__name__}, got {type(item).__name__}")
    return item


def _parse_origin_info(item: cbor.CborItem) -> str:
    info = _expect(item, Map, "OriginInfo")
    details = _expect(info.get("details"), Map, "OriginInfo details")
    base_url = _expect(details.get("baseUrl"), Text, "OriginInfo baseUrl")
    return base_url.value


def parse_session_transcript(data: bytes, strict: bool = False) -> ParsedTranscript:
    """
    Decode a SessionTranscript received from a peer.

    Args:
        data: Encoded transcript
        strict: Reject unknown handover tags instead of treating them as Android

    Returns:
        ParsedTranscript

    Raises:
        EncodingError: If the bytes are not a well-formed transcript
        UnsupportedHandoverError: If strict and the handover tag is unknown
    """
    root = _expect(cbor.decode(data), Array, "SessionTranscript")
    if len(root) != 3:
        raise EncodingError(f"SessionTranscript must have 3 elements, got {len(root)}")
    if not (isinstance(root[0], Null) and isinstance(root[1], Null)):
        raise EncodingError("DeviceEngagement and EReaderKey must be null")

    handover = _expect(root[2], Array, "Handover")
    if len(handover) < 4:
        raise EncodingError(f"Handover too short: {len(handover)} elements")

    tag = _expect(handover[0], Text, "Handover tag").value
    handover_type = handover_type_from_tag(tag, strict)

    nonce = _expect(handover[1], Bytes, "Handover nonce").value
    raw_caller = _expect(handover[2], Bytes, "Handover caller").value
    try:
        caller = raw_caller.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Handover caller is not UTF-8: {e}") from e

    origin = None
    if tag == BROWSER_HANDOVER_V1:
        if len(handover) != 5:
            raise EncodingError(f"BrowserHandover must have 5 elements, got {len(handover)}")
        origin = _parse_origin_info(handover[3])
        if origin != caller:
            raise EncodingError("OriginInfo baseUrl does not match the handover origin")
    elif tag == ANDROID_HANDOVER_V1 and len(handover) != 4:
        raise EncodingError(f"AndroidHandover must have 4 elements, got {len(handover)}")

    pk_r_hash = _expect(handover[-1], Bytes, "Handover pkRHash").value
    if len(pk_r_hash) != PUBLIC_KEY_HASH_SIZE:
        raise EncodingError(f"pkRHash must be {PUBLIC_KEY_HASH_SIZE} bytes, got {len(pk_r_hash)}")

    return ParsedTranscript(
        handover=handover_type,
        tag=tag,
        nonce=nonce,
        caller=caller,
        pk_r_hash=pk_r_hash,
        origin=origin,
    )
