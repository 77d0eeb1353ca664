from dataclasses import replace

from hypothesis import given, settings, strategies as st

from key_guardian.crypto.engine import JoseCryptoEngine
from key_guardian.services.key_manager import InMemoryKeyManager
from key_guardian.services.signer_service import verify_envelope

_engine = JoseCryptoEngine()
_pool = [_engine.generate("EdDSA", "Ed25519") for _ in range(3)] + [
    _engine.generate("ES256K", "secp256k1") for _ in range(3)
]

_km = InMemoryKeyManager(_engine)
_signing_kids = [_km.generate_private_key("EdDSA"), _km.generate_private_key("ES256K", "secp256k1")]


@settings(max_examples=50, deadline=None)
@given(st.sampled_from(_signing_kids), st.binary(max_size=256))
def test_signatures_verify_for_exact_payload(kid: str, payload: bytes) -> None:
    envelope = _km.sign(kid, payload)
    public = _km.get_public_key(kid)

    assert envelope.payload == payload
    assert verify_envelope(envelope.compact(), public)


@settings(max_examples=50, deadline=None)
@given(st.sampled_from(_signing_kids), st.binary(max_size=64), st.binary(min_size=1, max_size=64))
def test_signatures_reject_other_payloads(kid: str, payload: bytes, suffix: bytes) -> None:
    envelope = _km.sign(kid, payload)
    tampered = replace(envelope, payload=payload + suffix)
    assert not verify_envelope(tampered, _km.get_public_key(kid))


@settings(max_examples=50, deadline=None)
@given(
    st.text(min_size=1, max_size=32),
    st.sampled_from(_pool),
    st.lists(st.sampled_from(_pool), min_size=1, max_size=4),
)
def test_import_keeps_first_material_for_a_kid(kid: str, first, later) -> None:
    km = InMemoryKeyManager(_engine)
    assert km.import_key(first.with_kid(kid)) == kid
    snapshot = km.get_public_key(kid).to_jwk()

    for record in later:
        assert km.import_key(record.with_kid(kid)) == kid
    assert km.get_public_key(kid).to_jwk() == snapshot
    assert len(km) == 1


@settings(max_examples=25, deadline=None)
@given(st.lists(st.sampled_from(_pool), min_size=2, max_size=8))
def test_anonymous_imports_never_collide(records) -> None:
    km = InMemoryKeyManager(_engine)
    kids = [km.import_key(record) for record in records]
    assert len(set(kids)) == len(records)
    assert len(km) == len(records)
