"""
mdoc-hpke - Session-bound HPKE for mdoc credential presentation

Python implementation of the mdoc Android/Browser handover using
DHKEM(P-256, HKDF-SHA256) + HKDF-SHA256 + AES-128-GCM, with the CBOR
session transcript bound into every seal.
"""

from .curves import CurveParams, ECPoint, P256, encode_point, decode_point, is_on_curve
from .keys import (
    RecipientPublicKey,
    RecipientKeyPair,
    generate_keypair,
    keypair_from_private_bytes,
    keypair_from_scalar,
)
from .hashing import public_key_hash, fingerprint
from .transcript import (
    build_android_transcript,
    build_browser_transcript,
    build_session_transcript,
    parse_session_transcript,
    ParsedTranscript,
)
from .envelope import EncryptedEnvelope, encode_envelope, decode_envelope
from .hpke import (
    CipherSuite,
    HybridCipher,
    MDOC_SUITE,
    derive_keypair,
    fixed_ephemeral_key,
)
from .session import (
    CredentialRequest,
    SessionConfig,
    SessionOrchestrator,
    TranscriptBinding,
)
from .types import (
    HandoverType,
    ANDROID_HANDOVER_V1,
    BROWSER_HANDOVER_V1,
    DOCUMENT_TYPE_MDL,
    MdocHpkeError,
    InvalidKeyError,
    AuthenticationError,
    UnsupportedHandoverError,
    EncodingError,
    UnsupportedSuiteError,
)

__version__ = "0.1.0"

__all__ = [
    # Curves
    "CurveParams",
    "ECPoint",
    "P256",
    "encode_point",
    "decode_point",
    "is_on_curve",
    # Keys
    "RecipientPublicKey",
    "RecipientKeyPair",
    "generate_keypair",
    "keypair_from_private_bytes",
    "keypair_from_scalar",
    # Hashing
    "public_key_hash",
    "fingerprint",
    # Transcript
    "build_android_transcript",
    "build_browser_transcript",
    "build_session_transcript",
    "parse_session_transcript",
    "ParsedTranscript",
    # Envelope
    "EncryptedEnvelope",
    "encode_envelope",
    "decode_envelope",
    # HPKE
    "CipherSuite",
    "HybridCipher",
    "MDOC_SUITE",
    "derive_keypair",
    "fixed_ephemeral_key",
    # Session
    "CredentialRequest",
    "SessionConfig",
    "SessionOrchestrator",
    "TranscriptBinding",
    # Types
    "HandoverType",
    "ANDROID_HANDOVER_V1",
    "BROWSER_HANDOVER_V1",
    "DOCUMENT_TYPE_MDL",
    # Errors
    "MdocHpkeError",
    "InvalidKeyError",
    "AuthenticationError",
    "UnsupportedHandoverError",
    "EncodingError",
    "UnsupportedSuiteError",
]
