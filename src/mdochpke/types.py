"""Type definitions for mdoc HPKE session binding."""

from enum import Enum


class HandoverType(Enum):
    """Channel over which the credential request reached the holder."""
    ANDROID = "ANDROID"
    BROWSER = "BROWSER"


# Handover tags (first element of the handover array)
ANDROID_HANDOVER_V1 = "AndroidHandoverv1"
BROWSER_HANDOVER_V1 = "BrowserHandoverv1"

HANDOVER_TAGS = {
    HandoverType.ANDROID: ANDROID_HANDOVER_V1,
    HandoverType.BROWSER: BROWSER_HANDOVER_V1,
}

# Browser OriginInfo constants
ORIGIN_INFO_CAT = 1
ORIGIN_INFO_TYPE = 1

# Key sizes
COORDINATE_SIZE = 32
ENCODED_PUBLIC_KEY_SIZE = 65  # 0x04 || X || Y
UNCOMPRESSED_POINT_TAG = 0x04
PRIVATE_KEY_SIZE = 32
PUBLIC_KEY_HASH_SIZE = 32

# AEAD sizes (AES-128-GCM)
AEAD_KEY_SIZE = 16
AEAD_NONCE_SIZE = 12
TAG_SIZE = 16

# Document types
DOCUMENT_TYPE_MDL = "org.iso.18013.5.1.mDL"


# Exception types
class MdocHpkeError(Exception):
    """Base exception for mdoc HPKE errors."""
    pass


class InvalidKeyError(MdocHpkeError):
    """Malformed, off-curve or otherwise unusable key material."""
    pass


class AuthenticationError(MdocHpkeError):
    """AEAD open failed (tampered ciphertext or mismatched context)."""

    def __init__(self) -> None:
        super().__init__("Authentication failed")


class UnsupportedHandoverError(MdocHpkeError):
    """Unrecognized handover tag in external input."""

    def __init__(self, tag: object) -> None:
        self.tag = tag
        super().__init__(f"Unsupported handover: {tag!r}")


class EncodingError(MdocHpkeError):
    """Malformed CBOR or a value the encoder cannot represent."""
    pass


class UnsupportedSuiteError(MdocHpkeError):
    """KEM, KDF or AEAD identifier this library does not implement."""
    pass
