"""Tests for the session orchestrator."""

import pytest
from mdochpke.hpke import HybridCipher, fixed_ephemeral_key
from mdochpke.keys import generate_keypair, keypair_from_private_bytes
from mdochpke.session import (
    CredentialRequest,
    SessionConfig,
    SessionOrchestrator,
    TranscriptBinding,
)
from mdochpke.transcript import build_android_transcript, build_browser_transcript
from mdochpke.types import (
    DOCUMENT_TYPE_MDL,
    AuthenticationError,
    HandoverType,
    InvalidKeyError,
    UnsupportedHandoverError,
)
from .test_vectors import (
    EPHEMERAL_IKM,
    ORIGIN,
    PACKAGE_NAME,
    TEST_PRIVATE_KEY_HEX,
    ZERO_NONCE,
)

DEVICE_RESPONSE = bytes.fromhex(
    "a3" "6776657273696f6e" "63312e30" "69646f63756d656e7473" "80" "66737461747573" "00"
)


@pytest.fixture
def reader_keypair():
    """The reader's per-session key pair."""
    return generate_keypair()


@pytest.fixture
def android_request(reader_keypair):
    return CredentialRequest(
        nonce=bytes(range(16)),
        recipient_public_key=reader_keypair.public_key,
        caller=PACKAGE_NAME,
        handover=HandoverType.ANDROID,
    )


@pytest.fixture
def browser_request(reader_keypair):
    return CredentialRequest(
        nonce=bytes(range(16)),
        recipient_public_key=reader_keypair.public_key,
        caller=ORIGIN,
        handover=HandoverType.BROWSER,
    )


def _replace(request: CredentialRequest, **changes) -> CredentialRequest:
    fields = {
        "nonce": request.nonce,
        "recipient_public_key": request.recipient_public_key,
        "caller": request.caller,
        "handover": request.handover,
        "document_type": request.document_type,
    }
    fields.update(changes)
    return CredentialRequest(**fields)


class TestSessionTranscript:
    """The orchestrator builds the same transcript as the builders."""

    def test_android(self, android_request, reader_keypair) -> None:
        orchestrator = SessionOrchestrator()
        expected = build_android_transcript(android_request.nonce, reader_keypair, PACKAGE_NAME)

        assert orchestrator.session_transcript(android_request) == expected

    def test_browser(self, browser_request, reader_keypair) -> None:
        orchestrator = SessionOrchestrator()
        expected = build_browser_transcript(browser_request.nonce, reader_keypair, ORIGIN)

        assert orchestrator.session_transcript(browser_request) == expected


class TestRoundTrip:
    """Holder encrypts, reader decrypts."""

    @pytest.mark.parametrize("binding", list(TranscriptBinding))
    def test_android_round_trip(self, android_request, reader_keypair, binding) -> None:
        """Android handover round trip under each binding."""
        orchestrator = SessionOrchestrator(SessionConfig(binding=binding))

        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)
        result = orchestrator.decrypt_response(envelope, android_request, reader_keypair)

        assert result == DEVICE_RESPONSE

    @pytest.mark.parametrize("binding", list(TranscriptBinding))
    def test_browser_round_trip(self, browser_request, reader_keypair, binding) -> None:
        """Browser handover round trip under each binding."""
        orchestrator = SessionOrchestrator(SessionConfig(binding=binding))

        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, browser_request)
        result = orchestrator.decrypt_response(envelope, browser_request, reader_keypair)

        assert result == DEVICE_RESPONSE

    def test_aad_binding_uses_transcript_as_aad(self, android_request, reader_keypair) -> None:
        """With AAD binding the envelope opens with the transcript as AAD."""
        orchestrator = SessionOrchestrator()
        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)
        transcript = orchestrator.session_transcript(android_request)

        assert HybridCipher().decrypt_envelope(envelope, transcript, reader_keypair) == DEVICE_RESPONSE

    def test_info_binding_uses_transcript_as_info(self, android_request, reader_keypair) -> None:
        """With INFO binding the transcript is the HPKE info and AAD is empty."""
        orchestrator = SessionOrchestrator(SessionConfig(binding=TranscriptBinding.INFO))
        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)
        transcript = orchestrator.session_transcript(android_request)

        assert (
            HybridCipher().decrypt_envelope(envelope, b"", reader_keypair, info=transcript)
            == DEVICE_RESPONSE
        )

    def test_bindings_do_not_mix(self, android_request, reader_keypair) -> None:
        """An AAD-bound envelope does not open under INFO binding."""
        sealed = SessionOrchestrator().encrypt_response(DEVICE_RESPONSE, android_request)
        reader = SessionOrchestrator(SessionConfig(binding=TranscriptBinding.INFO))

        with pytest.raises(AuthenticationError):
            reader.decrypt_response(sealed, android_request, reader_keypair)

    def test_injected_cipher(self, reader_keypair) -> None:
        """A cipher with a fixed ephemeral key gives reproducible envelopes."""
        cipher = HybridCipher(ephemeral_key_source=fixed_ephemeral_key(EPHEMERAL_IKM))
        orchestrator = SessionOrchestrator(cipher=cipher)
        request = CredentialRequest(
            nonce=ZERO_NONCE,
            recipient_public_key=keypair_from_private_bytes(
                bytes.fromhex(TEST_PRIVATE_KEY_HEX)
            ).public_key,
            caller=PACKAGE_NAME,
        )

        assert orchestrator.cipher is cipher
        assert orchestrator.encrypt_response(b"x", request) == orchestrator.encrypt_response(
            b"x", request
        )


class TestReplayProtection:
    """An envelope only opens under the context it was sealed for."""

    @pytest.mark.parametrize(
        "changes",
        [
            {"nonce": bytes(16)},
            {"caller": "com.attacker.app"},
            {"handover": HandoverType.BROWSER},
        ],
    )
    def test_changed_context_fails(self, android_request, reader_keypair, changes) -> None:
        """A different nonce, caller or transport fails authentication."""
        orchestrator = SessionOrchestrator()
        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)

        with pytest.raises(AuthenticationError):
            orchestrator.decrypt_response(envelope, _replace(android_request, **changes), reader_keypair)

    def test_document_type_not_bound(self, android_request, reader_keypair) -> None:
        """The document type is not part of the transcript."""
        orchestrator = SessionOrchestrator()
        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)
        other = _replace(android_request, document_type="org.iso.23220.photoid.1")

        assert orchestrator.decrypt_response(envelope, other, reader_keypair) == DEVICE_RESPONSE

    def test_wrong_keypair(self, android_request) -> None:
        """The reader key pair must be the request's recipient key."""
        orchestrator = SessionOrchestrator()
        envelope = orchestrator.encrypt_response(DEVICE_RESPONSE, android_request)

        with pytest.raises(InvalidKeyError, match="does not match"):
            orchestrator.decrypt_response(envelope, android_request, generate_keypair())


class TestCredentialRequest:
    """Test parsing request context from the channel."""

    @pytest.fixture
    def request_data(self, reader_keypair):
        return {
            "nonce": ZERO_NONCE,
            "public_key": reader_keypair.public_key.to_bytes(),
            "document_type": DOCUMENT_TYPE_MDL,
            "handover": "BROWSER",
            "caller": ORIGIN,
        }

    def test_from_dict(self, request_data, reader_keypair) -> None:
        request = CredentialRequest.from_dict(request_data)

        assert request.nonce == ZERO_NONCE
        assert request.recipient_public_key == reader_keypair.public_key
        assert request.document_type == DOCUMENT_TYPE_MDL
        assert request.handover == HandoverType.BROWSER
        assert request.caller == ORIGIN

    def test_accepts_cryptography_key_and_enum(self, request_data, reader_keypair) -> None:
        """Public keys and handovers may arrive as library objects."""
        request_data["public_key"] = reader_keypair.private_key.public_key()
        request_data["handover"] = HandoverType.ANDROID

        request = CredentialRequest.from_dict(request_data)

        assert request.recipient_public_key == reader_keypair.public_key
        assert request.handover == HandoverType.ANDROID

    @pytest.mark.parametrize("key", ["nonce", "public_key", "document_type", "handover", "caller"])
    def test_missing_key(self, request_data, key: str) -> None:
        """Every field is required."""
        del request_data[key]

        with pytest.raises(ValueError, match=key):
            CredentialRequest.from_dict(request_data)

    @pytest.mark.parametrize("nonce", [12, "000000000000", [0] * 12])
    def test_nonce_must_be_bytes(self, request_data, nonce) -> None:
        """A nonce that is not a byte string is rejected, not coerced."""
        request_data["nonce"] = nonce

        with pytest.raises(TypeError, match="nonce must be bytes"):
            CredentialRequest.from_dict(request_data)

    def test_nonce_accepts_bytearray(self, request_data) -> None:
        request_data["nonce"] = bytearray(ZERO_NONCE)

        assert CredentialRequest.from_dict(request_data).nonce == ZERO_NONCE

    def test_invalid_public_key(self, request_data) -> None:
        request_data["public_key"] = b"\x04" + bytes(64)

        with pytest.raises(InvalidKeyError):
            CredentialRequest.from_dict(request_data)

    def test_unknown_handover_defaults_to_android(self, request_data) -> None:
        """Unknown handover names degrade to Android."""
        request_data["handover"] = "NFC"

        request = SessionOrchestrator().parse_request(request_data)

        assert request.handover == HandoverType.ANDROID

    def test_unknown_handover_strict(self, request_data) -> None:
        """Strict configuration rejects unknown handover names."""
        request_data["handover"] = "NFC"
        orchestrator = SessionOrchestrator(SessionConfig(strict_handover=True))

        with pytest.raises(UnsupportedHandoverError):
            orchestrator.parse_request(request_data)

    def test_default_document_type(self, reader_keypair) -> None:
        request = CredentialRequest(
            nonce=ZERO_NONCE, recipient_public_key=reader_keypair.public_key, caller=PACKAGE_NAME
        )

        assert request.document_type == "org.iso.18013.5.1.mDL"
        assert request.handover == HandoverType.ANDROID
