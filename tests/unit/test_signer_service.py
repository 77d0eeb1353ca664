import pytest

from key_guardian.exceptions import InvalidEnvelope, KeyNotFound
from key_guardian.models import EcKeyRecord, SignatureEnvelope
from key_guardian.services.key_manager import InMemoryKeyManager
from key_guardian.services.signer_service import SignerService, verify_envelope


@pytest.fixture()
def service() -> SignerService:
    return SignerService(InMemoryKeyManager())


def test_sign_returns_compact_envelope(service: SignerService) -> None:
    kid = service.km.generate_private_key("EdDSA", "Ed25519")
    token = service.sign(kid, b"document")

    assert token.count(".") == 2
    assert service.verify(token)
    assert SignatureEnvelope.parse(token).payload == b"document"


def test_verify_with_explicit_public_key(service: SignerService) -> None:
    kid = service.km.generate_private_key("ES256", "P-256")
    other = service.km.generate_private_key("ES256", "P-256")
    token = service.sign(kid, b"document")

    assert service.verify(token, service.km.get_public_key(kid))
    assert not service.verify(token, service.km.get_public_key(other))


def test_verify_rejects_header_algorithm_swap(service: SignerService) -> None:
    kid = service.km.generate_private_key("RS256")
    envelope = service.km.sign(kid, b"document")
    swapped = SignatureEnvelope(
        header={"alg": "PS256", "kid": kid}, payload=envelope.payload, signature=envelope.signature
    )
    assert not verify_envelope(swapped, service.km.get_public_key(kid))


def test_verify_returns_false_for_unusable_public_key(service: SignerService) -> None:
    kid = service.km.generate_private_key("ES256K", "secp256k1")
    envelope = service.km.sign(kid, b"document")
    off_curve = EcKeyRecord(crv="secp256k1", x="eA", y="eQ")

    assert not verify_envelope(envelope, off_curve)
    assert not service.verify(envelope.compact(), off_curve)


def test_verify_requires_kid_or_public_key(service: SignerService) -> None:
    envelope = SignatureEnvelope(header={"alg": "EdDSA"}, payload=b"x", signature=b"y")
    with pytest.raises(InvalidEnvelope):
        service.verify(envelope)


def test_verify_unknown_kid(service: SignerService) -> None:
    envelope = SignatureEnvelope(header={"alg": "EdDSA", "kid": "ghost"}, payload=b"x", signature=b"y")
    with pytest.raises(KeyNotFound):
        service.verify(envelope)


def test_verify_rejects_garbage_tokens(service: SignerService) -> None:
    with pytest.raises(InvalidEnvelope):
        service.verify("not-a-token")
