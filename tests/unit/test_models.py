import pytest

from key_guardian.exceptions import InvalidEnvelope, InvalidKeyRecord, UnsupportedKeyType
from key_guardian.models import (
    EcKeyRecord,
    KeyRecord,
    OkpKeyRecord,
    RsaKeyRecord,
    SignatureEnvelope,
    thumbprint,
)

# RFC 7638 section 3.1 example key.
RFC7638_JWK = {
    "kty": "RSA",
    "n": (
        "0vx7agoebGcQSuuPiLJXZptN9nndrQmbXEps2aiAFbWhM78LhWx4cbbfAAtVT86zwu1RK7aPFFxuhDR1L6tSoc_BJECP"
        "ebWKRXjBZCiFV4n3oknjhMstn64tZ_2W-5JsGY4Hc5n9yBXArwl93lqt7_RN5w6Cf0h4QyQ5v-65YGjQR0_FDW2QvzqY"
        "368QQMicAtaSqzs8KJZgnYb9c7d0zgdAZHzu6qMQvRL5hajrn1n91CbOpbISD08qNLyrdkt-bFTWhAI4vMQFh6WeZu0f"
        "M4lFd2NcRwr3XPksINHaQ-G_xBniIqbw0Ls1jF44-csFCur-kEgU8awapJzKnqDKgw"
    ),
    "e": "AQAB",
    "alg": "RS256",
    "kid": "2011-04-29",
}


def test_from_jwk_dispatches_on_kty() -> None:
    ec_key = KeyRecord.from_jwk({"kty": "EC", "crv": "secp256k1", "x": "eA", "y": "eQ", "d": "ZA"})
    okp_key = KeyRecord.from_jwk({"kty": "OKP", "crv": "Ed25519", "x": "eA"})
    rsa_key = KeyRecord.from_jwk(RFC7638_JWK)

    assert isinstance(ec_key, EcKeyRecord) and ec_key.is_private
    assert isinstance(okp_key, OkpKeyRecord) and not okp_key.is_private
    assert isinstance(rsa_key, RsaKeyRecord)
    assert rsa_key.kid == "2011-04-29"
    assert ec_key.curve == "secp256k1"
    assert rsa_key.curve is None


def test_from_jwk_rejects_unknown_kty() -> None:
    with pytest.raises(UnsupportedKeyType):
        KeyRecord.from_jwk({"kty": "oct", "k": "c2VjcmV0"})


@pytest.mark.parametrize(
    "jwk",
    [
        {"kty": "EC", "crv": "P-256", "x": "eA"},
        {"kty": "OKP", "crv": "Ed25519"},
        {"kty": "RSA", "n": "AQAB"},
        {"kty": "EC", "crv": "P-256", "x": "eA", "y": 5},
    ],
)
def test_from_jwk_rejects_malformed_members(jwk: dict) -> None:
    with pytest.raises(InvalidKeyRecord):
        KeyRecord.from_jwk(jwk)


def test_from_jwk_drops_unknown_members() -> None:
    record = KeyRecord.from_jwk({"kty": "OKP", "crv": "Ed25519", "x": "eA", "key_ops": ["sign"]})
    assert record.to_jwk() == {"kty": "OKP", "crv": "Ed25519", "x": "eA"}


def test_public_strips_private_members() -> None:
    record = RsaKeyRecord(kid="r1", n="bg", e="AQAB", d="ZA", p="cA", q="cQ", dp="ZHA", dq="ZHE", qi="cWk")
    public = record.public()
    assert not public.is_private
    assert public.to_jwk() == {"kty": "RSA", "kid": "r1", "n": "bg", "e": "AQAB"}
    assert record.is_private


def test_thumbprint_matches_rfc7638_example() -> None:
    record = KeyRecord.from_jwk(RFC7638_JWK)
    assert thumbprint(record) == "NzbLsXh8uDCcd-6MNwXF4W_7noWXFZAfHkxZsRGC9Xs"


def test_thumbprint_ignores_private_and_metadata_members() -> None:
    private = EcKeyRecord(kid="a", alg="ES256K", use="sig", crv="secp256k1", x="eA", y="eQ", d="ZA")
    public = EcKeyRecord(crv="secp256k1", x="eA", y="eQ")
    assert thumbprint(private) == thumbprint(public)


def test_envelope_compact_parse_preserves_parts() -> None:
    envelope = SignatureEnvelope(header={"alg": "ES256K", "kid": "k1"}, payload=b"hello", signature=b"\x01\x02")
    parsed = SignatureEnvelope.parse(envelope.compact())

    assert parsed.header == {"alg": "ES256K", "kid": "k1"}
    assert parsed.payload == b"hello"
    assert parsed.signature == b"\x01\x02"
    assert parsed.signing_input == envelope.signing_input
    assert parsed.algorithm == "ES256K"
    assert parsed.kid == "k1"


def test_envelope_keeps_foreign_header_encoding() -> None:
    # Same JSON, different whitespace: the signing input must use the bytes as received.
    header_b64 = "eyJhbGciOiAiRVMyNTYiLCAia2lkIjogImsxIn0"
    parsed = SignatureEnvelope.parse(f"{header_b64}.aGk.AQ")
    assert parsed.encoded_header == header_b64
    assert parsed.signing_input == f"{header_b64}.aGk".encode("ascii")


@pytest.mark.parametrize(
    "token",
    [
        "only.two",
        "a.b.c.d",
        ".aGk.AQ",
        "eyJhbGciOiJFUzI1NksifQ.aGk.",
        "bm90LWpzb24.aGk.AQ",
        "WzFd.aGk.AQ",
        "eyJhbGciOiJFUzI1NksifQ.aGk.@@@",
        "eyJhbGciOiJFUzI1NksifQ.a+k.AQ",
    ],
)
def test_envelope_parse_rejects_malformed_tokens(token: str) -> None:
    with pytest.raises(InvalidEnvelope):
        SignatureEnvelope.parse(token)


def test_envelope_is_hashable() -> None:
    envelope = SignatureEnvelope(header={"alg": "EdDSA", "kid": "k1"}, payload=b"x", signature=b"y")
    parsed = SignatureEnvelope.parse(envelope.compact())

    assert parsed == envelope
    assert hash(parsed) == hash(envelope)
    assert len({envelope, parsed}) == 1
