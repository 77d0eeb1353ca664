# Sign payloads through a key manager and verify envelopes against public keys.
from __future__ import annotations

from typing import Optional

import structlog

from ..core.exceptions import InvalidEnvelope, InvalidKeyRecord, SigningFailure
from ..crypto.algorithms import algorithm_for
from ..crypto.engine import CryptoEngine, JoseCryptoEngine
from ..models import KeyRecord, SignatureEnvelope
from .key_manager import InMemoryKeyManager, KeyManager

logger = structlog.get_logger(__name__)


def verify_envelope(
    envelope: SignatureEnvelope | str,
    public_key: KeyRecord,
    engine: CryptoEngine | None = None,
) -> bool:
    """Check ``envelope`` against ``public_key``.

    Returns False when the signature is invalid, when ``public_key`` carries
    unusable material, or when the header's ``alg`` is not the algorithm that
    ``public_key`` signs with.
    """
    env = SignatureEnvelope.parse(envelope) if isinstance(envelope, str) else envelope
    try:
        expected = algorithm_for(public_key)
    except SigningFailure:
        return False
    if env.algorithm != expected:
        logger.warning("envelope.alg_mismatch", kid=env.kid, header_alg=env.algorithm, key_alg=expected)
        return False
    try:
        return (engine or JoseCryptoEngine()).verify(public_key, env.signing_input, env.signature)
    except InvalidKeyRecord:
        logger.warning("envelope.bad_public_key", kid=env.kid, kty=public_key.kty, crv=public_key.curve)
        return False


class SignerService:
    def __init__(self, km: KeyManager | None = None, engine: CryptoEngine | None = None) -> None:
        self.km = km or InMemoryKeyManager()
        self.engine = engine or getattr(self.km, "engine", None) or JoseCryptoEngine()

    def sign(self, kid: str, payload: bytes | str) -> str:
        """Sign ``payload`` and return the compact envelope."""
        return self.km.sign(kid, payload).compact()

    def verify(self, envelope: SignatureEnvelope | str, public_key: Optional[KeyRecord] = None) -> bool:
        env = SignatureEnvelope.parse(envelope) if isinstance(envelope, str) else envelope
        if public_key is None:
            if not env.kid:
                raise InvalidEnvelope("Envelope header carries no kid and no public key was given")
            public_key = self.km.get_public_key(env.kid)
        return verify_envelope(env, public_key, self.engine)


__all__ = ["SignerService", "verify_envelope"]
