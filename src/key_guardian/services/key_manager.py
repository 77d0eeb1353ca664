# Manage the lifecycle of signing keys (generate, import, derive public, sign).
from __future__ import annotations

import uuid
from dataclasses import replace
from typing import Any, Callable, Mapping, Optional

import structlog

from ..config import AppConfig, load_config
from ..core.exceptions import InvalidKeyRecord, KeyNotFound, SigningFailure, UnsupportedKeyType
from ..crypto.algorithms import algorithm_for
from ..crypto.engine import CryptoEngine, JoseCryptoEngine
from ..models import KeyGenOptions, KeyRecord, SignatureEnvelope, thumbprint
from ..storage.keystore import InMemoryKeyStore
from ..utils.encoding import to_bytes

logger = structlog.get_logger(__name__)


def _as_record(record: KeyRecord | Mapping[str, Any]) -> KeyRecord:
    if isinstance(record, KeyRecord):
        return record
    if isinstance(record, Mapping):
        return KeyRecord.from_jwk(record)
    raise InvalidKeyRecord(f"Expected a KeyRecord or JWK mapping, got {type(record).__name__}")


class KeyManager:
    """Capability contract for key managers.

    Keys are addressed by an opaque key id; private material never leaves the
    manager except as signatures. Implementations may keep keys in memory, an
    HSM or a remote vault.
    """

    def generate_private_key(
        self, algorithm: str, curve: Optional[str] = None, options: Optional[KeyGenOptions] = None
    ) -> str:  # pragma: no cover - protocol
        raise NotImplementedError

    def get_public_key(self, kid: str) -> KeyRecord:  # pragma: no cover - protocol
        raise NotImplementedError

    def sign(self, kid: str, payload: bytes | str) -> SignatureEnvelope:  # pragma: no cover - protocol
        raise NotImplementedError

    def import_key(self, record: KeyRecord | Mapping[str, Any]) -> str:  # pragma: no cover - protocol
        raise NotImplementedError

    def get_deterministic_alias(self, public_key: KeyRecord | Mapping[str, Any]) -> str:
        """Key id derived from the public key alone (RFC 7638 thumbprint)."""
        return thumbprint(_as_record(public_key).public())


class InMemoryKeyManager(KeyManager):
    """Key manager over an :class:`InMemoryKeyStore` owned by this instance.

    Keys vanish when the manager is closed or garbage collected. Instances are
    safe to share between threads unless built with ``thread_safe=False``, in
    which case the caller guarantees a single owner.

    Example::

        with InMemoryKeyManager() as km:
            kid = km.generate_private_key("ES256K", "secp256k1")
            envelope = km.sign(kid, b"hello")
    """

    def __init__(
        self,
        engine: CryptoEngine | None = None,
        *,
        thread_safe: bool = True,
        default_use: Optional[str] = "sig",
        kid_factory: Callable[[], str] | None = None,
    ) -> None:
        self.engine = engine or JoseCryptoEngine()
        self.store = InMemoryKeyStore(thread_safe=thread_safe)
        self._default_use = default_use
        self._kid_factory = kid_factory or (lambda: str(uuid.uuid4()))

    @classmethod
    def from_config(
        cls, config: AppConfig | None = None, engine: CryptoEngine | None = None
    ) -> "InMemoryKeyManager":
        cfg = (config or load_config()).key_manager
        engine = engine or JoseCryptoEngine(
            rsa_key_size=cfg.rsa_key_size,
            rsa_public_exponent=cfg.rsa_public_exponent,
        )
        return cls(engine, thread_safe=cfg.thread_safe, default_use=cfg.default_use)

    def generate_private_key(
        self, algorithm: str, curve: Optional[str] = None, options: Optional[KeyGenOptions] = None
    ) -> str:
        record = self.engine.generate(algorithm, curve, options)
        kid = record.kid or thumbprint(record)
        record = replace(record, kid=kid, use=record.use or self._default_use)
        while not self.store.put_if_absent(kid, record):
            kid = self._kid_factory()
            record = record.with_kid(kid)
        logger.info("keys.generated", kid=kid, alg=record.alg, kty=record.kty, crv=record.curve)
        return kid

    def get_public_key(self, kid: str) -> KeyRecord:
        return self.engine.derive_public_key(self._lookup(kid))

    def sign(self, kid: str, payload: bytes | str) -> SignatureEnvelope:
        private = self._lookup(kid)
        try:
            alg = algorithm_for(private)
            unsigned = SignatureEnvelope(header={"alg": alg, "kid": kid}, payload=to_bytes(payload), signature=b"")
            signature = self.engine.sign_payload(private, unsigned.signing_input)
        except SigningFailure:
            logger.warning("keys.sign.failed", kid=kid, kty=private.kty, crv=private.curve)
            raise
        except UnsupportedKeyType as exc:
            logger.warning("keys.sign.failed", kid=kid, kty=private.kty, crv=private.curve)
            raise SigningFailure(f"Cannot sign with key {kid!r}: {exc}") from exc
        logger.debug("keys.signed", kid=kid, alg=alg, payload_bytes=len(unsigned.payload))
        return replace(unsigned, signature=signature)

    def import_key(self, record: KeyRecord | Mapping[str, Any]) -> str:
        key = _as_record(record)
        # An existing kid is a no-op whatever form the incoming record has.
        if key.kid and key.kid in self.store:
            logger.info("keys.import.duplicate", kid=key.kid)
            return key.kid
        if not key.is_private:
            raise InvalidKeyRecord("Only private keys can be imported")

        if key.kid:
            kid = key.kid
            inserted = self.store.put_if_absent(kid, key)
        else:
            kid = self._kid_factory()
            while not self.store.put_if_absent(kid, key.with_kid(kid)):
                kid = self._kid_factory()
            inserted = True

        if inserted:
            logger.info("keys.imported", kid=kid, kty=key.kty, crv=key.curve)
        else:
            logger.info("keys.import.duplicate", kid=kid)
        return kid

    #* Lifecycle
    def close(self) -> None:
        self.store.close()

    def __enter__(self) -> "InMemoryKeyManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __contains__(self, kid: object) -> bool:
        return kid in self.store

    def __len__(self) -> int:
        return len(self.store)

    def _lookup(self, kid: str) -> KeyRecord:
        try:
            return self.store.get(kid)
        except KeyNotFound:
            logger.warning("keys.lookup.missing", kid=kid)
            raise


__all__ = ["InMemoryKeyManager", "KeyManager"]
