"""
Session orchestration for mdoc credential responses.

The SessionOrchestrator builds the session transcript for a request and
uses it to bind the HPKE seal/open of the credential payload.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .envelope import EncryptedEnvelope
from .hashing import fingerprint
from .hpke import MDOC_SUITE, CipherSuite, HybridCipher
from .keys import RecipientKeyPair, RecipientPublicKey, encoded_public_key
from .transcript import build_session_transcript, handover_type_from_name
from .types import DOCUMENT_TYPE_MDL, HandoverType, InvalidKeyError

logger = logging.getLogger(__name__)


class TranscriptBinding(Enum):
    """Where the session transcript enters the HPKE computation."""
    AAD = "aad"
    INFO = "info"  # HPKE info parameter, as platform HybridEncrypt does


@dataclass(frozen=True)
class SessionConfig:
    """Configuration for the session orchestrator."""

    binding: TranscriptBinding = TranscriptBinding.AAD
    """How the transcript is bound into the cipher."""

    strict_handover: bool = False
    """Reject unknown handover names instead of treating them as Android."""

    suite: CipherSuite = MDOC_SUITE
    """HPKE cipher suite."""


@dataclass(frozen=True)
class CredentialRequest:
    """Session context delivered with a credential request."""
    nonce: bytes
    recipient_public_key: RecipientPublicKey
    caller: str  # package name (Android) or origin (Browser)
    handover: HandoverType = HandoverType.ANDROID
    document_type: str = DOCUMENT_TYPE_MDL

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], strict: bool = False) -> "CredentialRequest":
        """
        Create a request from loosely typed channel data.

        Expected keys: nonce, public_key, document_type, handover, caller.
        The handover may be a HandoverType or its name; unknown names fall
        back to Android unless strict.

        Raises:
            ValueError: If a required key is missing
            TypeError: If the nonce is not a byte string
            InvalidKeyError: If the public key is malformed
            UnsupportedHandoverError: If strict and the handover is unknown
        """
        for key in ("nonce", "public_key", "document_type", "handover", "caller"):
            if data.get(key) is None:
                raise ValueError(f"Missing {key}")

        nonce = data["nonce"]
        if not isinstance(nonce, (bytes, bytearray)):
            raise TypeError(f"nonce must be bytes, got {type(nonce).__name__}")

        handover: Union[HandoverType, str] = data["handover"]
        if not isinstance(handover, HandoverType):
            handover = handover_type_from_name(str(handover), strict)

        return cls(
            nonce=bytes(nonce),
            recipient_public_key=RecipientPublicKey.from_bytes(
                encoded_public_key(data["public_key"])
            ),
            caller=str(data["caller"]),
            handover=handover,
            document_type=str(data["document_type"]),
        )


class SessionOrchestrator:
    """
    Binds credential payloads to their request context.

    Example usage:
        ```python
        # Holder side
        orchestrator = SessionOrchestrator()
        envelope = orchestrator.encrypt_response(device_response, request)

        # Reader side, with the same request context
        payload = orchestrator.decrypt_response(envelope, request, reader_keypair)
        ```
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        cipher: Optional[HybridCipher] = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Session configuration (default: SessionConfig()).
            cipher: Optional cipher, e.g. one with an injected ephemeral key
                source (default: HybridCipher for config.suite).
        """
        self._config = config or SessionConfig()
        self._cipher = cipher or HybridCipher(self._config.suite)

    @property
    def config(self) -> SessionConfig:
        """Returns the session configuration."""
        return self._config

    @property
    def cipher(self) -> HybridCipher:
        return self._cipher

    def parse_request(self, data: Mapping[str, Any]) -> CredentialRequest:
        """Parse channel data using the configured handover strictness."""
        return CredentialRequest.from_dict(data, strict=self._config.strict_handover)

    def session_transcript(self, request: CredentialRequest) -> bytes:
        """Build the encoded transcript for a request."""
        return build_session_transcript(
            request.handover,
            request.nonce,
            request.recipient_public_key,
            request.caller,
            self._config.suite.curve,
        )

    def _bind(self, transcript: bytes) -> dict:
        if self._config.binding == TranscriptBinding.INFO:
            return {"aad": b"", "info": transcript}
        return {"aad": transcript, "info": b""}

    def encrypt_response(self, plaintext: bytes, request: CredentialRequest) -> EncryptedEnvelope:
        """
        Encrypt a credential payload for the request's recipient.

        Args:
            plaintext: Credential payload (e.g. an encoded DeviceResponse)
            request: Session context

        Returns:
            EncryptedEnvelope for the response channel
        """
        transcript = self.session_transcript(request)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Encrypting %s response for %s (%s handover)",
                request.document_type,
                fingerprint(request.recipient_public_key),
                request.handover.value,
            )
        return self._cipher.encrypt(
            plaintext, recipient_public_key=request.recipient_public_key, **self._bind(transcript)
        )

    def decrypt_response(
        self,
        envelope: EncryptedEnvelope,
        request: CredentialRequest,
        recipient_keypair: RecipientKeyPair,
    ) -> bytes:
        """
        Decrypt a credential payload received for a request.

        Args:
            envelope: Envelope from the response channel
            request: The session context the request was sent with
            recipient_keypair: The reader's key pair for this session

        Returns:
            The credential payload

        Raises:
            InvalidKeyError: If the key pair is not the request's recipient key
            AuthenticationError: If the envelope does not open under this context
        """
        if recipient_keypair.public_key != request.recipient_public_key:
            raise InvalidKeyError("Key pair does not match the request's recipient key")

        transcript = self.session_transcript(request)
        return self._cipher.decrypt(
            envelope.ciphertext,
            envelope.encapsulated_key,
            recipient_keypair=recipient_keypair,
            **self._bind(transcript),
        )
