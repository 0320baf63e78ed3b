"""Test vectors for mdoc HPKE session binding."""

# Fixed test key: private scalar 1, so the public key is the P-256 generator
TEST_PRIVATE_KEY_HEX = "0000000000000000000000000000000000000000000000000000000000000001"
TEST_PUBLIC_KEY_HEX = (
    "04"
    "6b17d1f2e12c4247f8bce6e563a440f277037d812deb33a0f4a13945d898c296"
    "4fe342e2fe1a7f9b8ee7eb4a7c0f9e162bce33576b315ececbb6406837bf51f5"
)

# SHA-256 of TEST_PUBLIC_KEY_HEX (pkRHash)
TEST_PUBLIC_KEY_HASH_HEX = "698bea63dc44a344663ff1429aea10842df27b6b991ef25866b2c6c02cdcc5be"

ZERO_NONCE = bytes(12)
PACKAGE_NAME = "com.example.app"
ORIGIN = "https://rp.example"

# [null, null, ["AndroidHandoverv1", h'00 * 12', h'"com.example.app"', pkRHash]]
# for ZERO_NONCE, PACKAGE_NAME and the fixed test key (85 bytes)
ANDROID_TRANSCRIPT_HEX = (
    "83f6f684"
    "71" "416e64726f696448616e646f7665727631"
    "4c" "000000000000000000000000"
    "4f" "636f6d2e6578616d706c652e617070"
    "5820" "698bea63dc44a344663ff1429aea10842df27b6b991ef25866b2c6c02cdcc5be"
)

# Fixed ikm for deterministic ephemeral keys
EPHEMERAL_IKM = bytes(range(32))

TEST_PAYLOADS = {
    "empty": b"",
    "single_byte": b"\x00",
    "text": "Hello, reader!".encode("utf-8"),
    "unicode": "Führerschein ✓ 運転免許証".encode("utf-8"),
    "cbor_like": bytes.fromhex("a16776657273696f6e63312e30"),
    "binary": bytes(range(256)),
    "large": b"A" * 65536,
}

# RFC 9180 Appendix A.3.1: DHKEM(P-256, HKDF-SHA256), HKDF-SHA256, AES-128-GCM, Base mode
RFC9180_P256_BASE = {
    "info": "4f6465206f6e2061204772656369616e2055726e",
    "ikmE": "4270e54ffd08d79d5928020af4686d8f6b7d35dbe470265f1f5aa22816ce860e",
    "pkEm": (
        "04a92719c6195d5085104f469a8b9814d5838ff72b60501e2c4466e5e67b325ac9"
        "8536d7b61a1af4b78e5b7f951c0900be863c403ce65c9bfcb9382657222d18c4"
    ),
    "skEm": "4995788ef4b9d6132b249ce59a77281493eb39af373d236a1fe415cb0c2d7beb",
    "ikmR": "668b37171f1072f3cf12ea8a236a45df23fc13b82af3609ad1e354f6ef817550",
    "pkRm": (
        "04fe8c19ce0905191ebc298a9245792531f26f0cece2460639e8bc39cb7f706a82"
        "6a779b4cf969b8a0e539c7f62fb3d30ad6aa8f80e30f1d128aafd68a2ce72ea0"
    ),
    "skRm": "f3ce7fdae57e1a310d87f1ebbde6f328be0a99cdbcadf4d6589cf29de4b8ffd2",
    "shared_secret": "c0d26aeab536609a572b07695d933b589dcf363ff9d93c93adea537aeabb8cb8",
    "key": "868c066ef58aae6dc589b6cfdd18f97e",
    "base_nonce": "4e0bc5018beba4bf004cca59",
    # sequence number 0
    "aad": "436f756e742d30",
    "pt": "4265617574792069732074727574682c20747275746820626561757479",
    "ct": (
        "5ad590bb8baa577f8619db35a36311226a896e7342a6d836d8b7bcd2f20b6c7f"
        "9076ac232e3ab2523f39513434"
    ),
}
