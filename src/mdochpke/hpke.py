"""
Hybrid public-key encryption (RFC 9180), single-shot Base mode.

Supported suite:
    KEM   DHKEM(P-256, HKDF-SHA256)  0x0010
    KDF   HKDF-SHA256                0x0001
    AEAD  AES-128-GCM                0x0001

Each seal or open uses a fresh context at sequence number 0; contexts are
never reused for a second message.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.hmac import HMAC
from cryptography.hazmat.primitives.kdf.hkdf import HKDFExpand

from .curves import CurveParams, P256
from .envelope import EncryptedEnvelope
from .hashing import fingerprint
from .keys import (
    PublicKeyLike,
    RecipientKeyPair,
    RecipientPublicKey,
    encoded_public_key,
    keypair_from_scalar,
    public_key_from_bytes,
    public_key_to_bytes,
)
from .types import (
    AEAD_KEY_SIZE,
    AEAD_NONCE_SIZE,
    TAG_SIZE,
    AuthenticationError,
    InvalidKeyError,
    UnsupportedSuiteError,
)

logger = logging.getLogger(__name__)

# Algorithm identifiers
KEM_DHKEM_P256_HKDF_SHA256 = 0x0010
KDF_HKDF_SHA256 = 0x0001
AEAD_AES_128_GCM = 0x0001

MODE_BASE = 0x00
VERSION_LABEL = b"HPKE-v1"

# DHKEM(P-256) sizes
N_SECRET = 32
N_SK = 32
N_H = 32

_KEM_CURVES = {KEM_DHKEM_P256_HKDF_SHA256: P256}


def _i2osp(value: int, length: int) -> bytes:
    return value.to_bytes(length, byteorder="big")


@dataclass(frozen=True)
class CipherSuite:
    """HPKE algorithm identifiers, validated on construction."""
    kem_id: int
    kdf_id: int
    aead_id: int

    def __post_init__(self) -> None:
        if self.kem_id not in _KEM_CURVES:
            raise UnsupportedSuiteError(f"Unsupported KEM: 0x{self.kem_id:04x}")
        if self.kdf_id != KDF_HKDF_SHA256:
            raise UnsupportedSuiteError(f"Unsupported KDF: 0x{self.kdf_id:04x}")
        if self.aead_id != AEAD_AES_128_GCM:
            raise UnsupportedSuiteError(f"Unsupported AEAD: 0x{self.aead_id:04x}")

    @property
    def curve(self) -> CurveParams:
        return _KEM_CURVES[self.kem_id]

    @property
    def kem_suite_id(self) -> bytes:
        return b"KEM" + _i2osp(self.kem_id, 2)

    @property
    def hpke_suite_id(self) -> bytes:
        return (
            b"HPKE"
            + _i2osp(self.kem_id, 2)
            + _i2osp(self.kdf_id, 2)
            + _i2osp(self.aead_id, 2)
        )


MDOC_SUITE = CipherSuite(
    kem_id=KEM_DHKEM_P256_HKDF_SHA256,
    kdf_id=KDF_HKDF_SHA256,
    aead_id=AEAD_AES_128_GCM,
)


# MARK: - Labeled KDF


def _extract(salt: bytes, ikm: bytes) -> bytes:
    """HKDF-Extract; an empty salt is the all-zero key per RFC 5869."""
    mac = HMAC(salt or bytes(N_H), SHA256())
    mac.update(ikm)
    return mac.finalize()


def labeled_extract(suite_id: bytes, salt: bytes, label: bytes, ikm: bytes) -> bytes:
    return _extract(salt, VERSION_LABEL + suite_id + label + ikm)


def labeled_expand(suite_id: bytes, prk: bytes, label: bytes, info: bytes, length: int) -> bytes:
    labeled_info = _i2osp(length, 2) + VERSION_LABEL + suite_id + label + info
    return HKDFExpand(algorithm=SHA256(), length=length, info=labeled_info).derive(prk)


# MARK: - KEM


def _extract_and_expand(suite: CipherSuite, dh: bytes, kem_context: bytes) -> bytes:
    eae_prk = labeled_extract(suite.kem_suite_id, b"", b"eae_prk", dh)
    return labeled_expand(suite.kem_suite_id, eae_prk, b"shared_secret", kem_context, N_SECRET)


def _encap(
    suite: CipherSuite,
    recipient: RecipientPublicKey,
    ephemeral_private: ec.EllipticCurvePrivateKey,
) -> Tuple[bytes, bytes]:
    """Returns (shared_secret, enc)."""
    dh = ephemeral_private.exchange(ec.ECDH(), recipient.to_cryptography())
    enc = public_key_to_bytes(ephemeral_private.public_key())
    kem_context = enc + recipient.to_bytes()
    return _extract_and_expand(suite, dh, kem_context), enc


def _decap(suite: CipherSuite, enc: bytes, recipient: RecipientKeyPair) -> bytes:
    """Returns shared_secret. Raises InvalidKeyError for a malformed enc."""
    ephemeral_public = public_key_from_bytes(enc, suite.curve)
    dh = recipient.private_key.exchange(ec.ECDH(), ephemeral_public)
    kem_context = enc + recipient.public_key.to_bytes()
    return _extract_and_expand(suite, dh, kem_context)


def derive_keypair(ikm: bytes, suite: CipherSuite = MDOC_SUITE) -> RecipientKeyPair:
    """
    Deterministically derive a key pair from input keying material.

    RFC 9180 DeriveKeyPair for the suite's NIST curve: candidates are drawn
    from a labeled expansion until one is a valid scalar.

    Args:
        ikm: Input keying material (at least 32 bytes)
        suite: Cipher suite

    Returns:
        RecipientKeyPair

    Raises:
        InvalidKeyError: If ikm is too short or no candidate is valid
    """
    if len(ikm) < N_SK:
        raise InvalidKeyError(f"ikm must be at least {N_SK} bytes, got {len(ikm)}")

    curve = suite.curve
    dkp_prk = labeled_extract(suite.kem_suite_id, b"", b"dkp_prk", ikm)

    # bitmask is 0xff for P-256, so candidates are used unmasked
    for counter in range(256):
        candidate = labeled_expand(
            suite.kem_suite_id, dkp_prk, b"candidate", _i2osp(counter, 1), N_SK
        )
        scalar = int.from_bytes(candidate, byteorder="big")
        if 0 < scalar < curve.n:
            return keypair_from_scalar(scalar, curve)

    raise InvalidKeyError("DeriveKeyPair found no valid scalar")


# MARK: - Key schedule


def _key_schedule(suite: CipherSuite, shared_secret: bytes, info: bytes) -> Tuple[bytes, bytes]:
    """Base-mode key schedule. Returns (key, base_nonce)."""
    suite_id = suite.hpke_suite_id

    psk_id_hash = labeled_extract(suite_id, b"", b"psk_id_hash", b"")
    info_hash = labeled_extract(suite_id, b"", b"info_hash", info)
    context = bytes([MODE_BASE]) + psk_id_hash + info_hash

    secret = labeled_extract(suite_id, shared_secret, b"secret", b"")
    key = labeled_expand(suite_id, secret, b"key", context, AEAD_KEY_SIZE)
    base_nonce = labeled_expand(suite_id, secret, b"base_nonce", context, AEAD_NONCE_SIZE)
    return key, base_nonce


def _compute_nonce(base_nonce: bytes, seq: int) -> bytes:
    seq_bytes = _i2osp(seq, AEAD_NONCE_SIZE)
    return bytes(a ^ b for a, b in zip(base_nonce, seq_bytes))


# MARK: - Cipher


EphemeralKeySource = Callable[[], ec.EllipticCurvePrivateKey]


def fixed_ephemeral_key(ikm: bytes, suite: CipherSuite = MDOC_SUITE) -> EphemeralKeySource:
    """
    Ephemeral key source that always returns the key derived from ikm.

    Only for reproducible fixtures; reusing an ephemeral key in production
    breaks the suite's security.
    """
    private_key = derive_keypair(ikm, suite).private_key
    return lambda: private_key


class HybridCipher:
    """
    Single-shot HPKE seal/open for a fixed cipher suite.

    Holds no per-call state, so one instance can serve any number of
    concurrent encrypt/decrypt calls.

    Example usage:
        ```python
        cipher = HybridCipher()
        keypair = generate_keypair()

        envelope = cipher.encrypt(b"payload", transcript, keypair.public_key)
        plaintext = cipher.decrypt(
            envelope.ciphertext, envelope.encapsulated_key, transcript, keypair
        )
        ```
    """

    def __init__(
        self,
        suite: CipherSuite = MDOC_SUITE,
        ephemeral_key_source: Optional[EphemeralKeySource] = None,
    ) -> None:
        """
        Initialize the cipher.

        Args:
            suite: HPKE cipher suite.
            ephemeral_key_source: Optional callable returning the ephemeral
                private key for each encrypt (default: a fresh random key).
        """
        self._suite = suite
        self._ephemeral_key_source = ephemeral_key_source or self._generate_ephemeral

    @property
    def suite(self) -> CipherSuite:
        return self._suite

    def _generate_ephemeral(self) -> ec.EllipticCurvePrivateKey:
        return ec.generate_private_key(self._suite.curve.curve())

    def encrypt(
        self,
        plaintext: bytes,
        aad: bytes,
        recipient_public_key: PublicKeyLike,
        info: bytes = b"",
    ) -> EncryptedEnvelope:
        """
        Seal a payload to a recipient.

        Args:
            plaintext: Payload to encrypt
            aad: Associated data (the session transcript)
            recipient_public_key: Recipient key in any supported representation
            info: HPKE application info (default empty)

        Returns:
            EncryptedEnvelope with the ciphertext and encapsulated key

        Raises:
            InvalidKeyError: If the recipient or ephemeral key is unusable
        """
        curve = self._suite.curve
        recipient = RecipientPublicKey.from_bytes(
            encoded_public_key(recipient_public_key, curve), curve
        )

        ephemeral_private = self._ephemeral_key_source()
        if ephemeral_private.curve.name != curve.name:
            raise InvalidKeyError(f"Ephemeral key must be on {curve.name}")

        shared_secret, enc = _encap(self._suite, recipient, ephemeral_private)
        key, base_nonce = _key_schedule(self._suite, shared_secret, bytes(info))

        ciphertext = AESGCM(key).encrypt(
            _compute_nonce(base_nonce, 0), bytes(plaintext), bytes(aad)
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Sealed %d-byte payload for recipient %s", len(plaintext), fingerprint(recipient)
            )
        return EncryptedEnvelope(ciphertext=ciphertext, encapsulated_key=enc)

    def decrypt(
        self,
        ciphertext: bytes,
        encapsulated_key: bytes,
        aad: bytes,
        recipient_keypair: RecipientKeyPair,
        info: bytes = b"",
    ) -> bytes:
        """
        Open a sealed payload.

        Args:
            ciphertext: Ciphertext including the 16-byte tag
            encapsulated_key: Sender's ephemeral public key (65 bytes)
            aad: Associated data; must equal the sender's byte for byte
            recipient_keypair: Decryption-capable recipient key
            info: HPKE application info (default empty)

        Returns:
            The plaintext

        Raises:
            AuthenticationError: If the ciphertext, encapsulated key, AAD or
                info do not match what was sealed
            TypeError: If given a key handle without a private key
        """
        if not isinstance(recipient_keypair, RecipientKeyPair):
            raise TypeError(
                f"Decryption requires a RecipientKeyPair, got {type(recipient_keypair).__name__}"
            )

        if len(ciphertext) < TAG_SIZE:
            raise AuthenticationError()

        try:
            shared_secret = _decap(self._suite, bytes(encapsulated_key), recipient_keypair)
        except InvalidKeyError:
            raise AuthenticationError() from None

        key, base_nonce = _key_schedule(self._suite, shared_secret, bytes(info))

        try:
            return AESGCM(key).decrypt(
                _compute_nonce(base_nonce, 0), bytes(ciphertext), bytes(aad)
            )
        except InvalidTag:
            raise AuthenticationError() from None

    def decrypt_envelope(
        self,
        envelope: EncryptedEnvelope,
        aad: bytes,
        recipient_keypair: RecipientKeyPair,
        info: bytes = b"",
    ) -> bytes:
        """Open an EncryptedEnvelope; see decrypt."""
        return self.decrypt(
            envelope.ciphertext, envelope.encapsulated_key, aad, recipient_keypair, info
        )
