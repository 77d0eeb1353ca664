"""Key generation, public-key derivation and raw signing.

The key manager only talks to a :class:`CryptoEngine`. :class:`JoseCryptoEngine`
is the default: key objects come from ``cryptography`` and the JWA signature
primitives (ECDSA raw ``r||s`` encoding, EdDSA, RSASSA-PKCS1/PSS) from PyJWT's
algorithm table, so envelopes are interoperable JWS.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional, Type

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from jwt.algorithms import get_default_algorithms
from jwt.exceptions import InvalidKeyError

from ..core.exceptions import InvalidKeyRecord, SigningFailure, UnsupportedKeyType
from ..models import EcKeyRecord, KeyGenOptions, KeyRecord, OkpKeyRecord, RsaKeyRecord
from ..utils.encoding import b64d, b64e
from .algorithms import ED25519, P256, P384, P521, SECP256K1, algorithm_for, resolve_algorithm

_CURVES: Dict[str, Type[ec.EllipticCurve]] = {
    P256: ec.SECP256R1,
    P384: ec.SECP384R1,
    P521: ec.SECP521R1,
    SECP256K1: ec.SECP256K1,
}
_CURVE_NAMES: Dict[str, str] = {cls.name: crv for crv, cls in _CURVES.items()}


class CryptoEngine:
    """Protocol-like base class for crypto engines."""

    def generate(
        self, algorithm: str, curve: Optional[str] = None, options: Optional[KeyGenOptions] = None
    ) -> KeyRecord:  # pragma: no cover - protocol
        raise NotImplementedError

    def derive_public_key(self, private_key: KeyRecord) -> KeyRecord:  # pragma: no cover - protocol
        raise NotImplementedError

    def sign_payload(self, private_key: KeyRecord, payload: bytes) -> bytes:  # pragma: no cover - protocol
        raise NotImplementedError

    def verify(self, public_key: KeyRecord, payload: bytes, signature: bytes) -> bool:  # pragma: no cover - protocol
        raise NotImplementedError


def _uint_b64(value: int, length: int | None = None) -> str:
    size = length or max(1, (value.bit_length() + 7) // 8)
    return b64e(value.to_bytes(size, "big"))


def _b64_uint(value: str) -> int:
    return int.from_bytes(b64d(value), "big")


class JoseCryptoEngine(CryptoEngine):
    """Engine over ``cryptography`` key objects and PyJWT signature algorithms."""

    def __init__(self, *, rsa_key_size: int = 2048, rsa_public_exponent: int = 65537) -> None:
        self._rsa_key_size = rsa_key_size
        self._rsa_public_exponent = rsa_public_exponent
        self._algorithms = get_default_algorithms()

    # ----- Capability surface -----
    def generate(
        self, algorithm: str, curve: Optional[str] = None, options: Optional[KeyGenOptions] = None
    ) -> KeyRecord:
        spec = resolve_algorithm(algorithm, curve)
        if spec.kty == "EC":
            key = ec.generate_private_key(_CURVES[spec.curve]())
        elif spec.kty == "OKP":
            key = ed25519.Ed25519PrivateKey.generate()
        else:
            opts = options or KeyGenOptions()
            try:
                key = rsa.generate_private_key(
                    public_exponent=opts.public_exponent or self._rsa_public_exponent,
                    key_size=opts.key_size or self._rsa_key_size,
                )
            except ValueError as exc:
                raise UnsupportedKeyType(f"Cannot generate {algorithm} key: {exc}") from exc
        return replace(self._to_record(key), alg=spec.name)

    def derive_public_key(self, private_key: KeyRecord) -> KeyRecord:
        key = self._load_private(private_key)
        derived = self._to_record(key.public_key())
        return replace(derived, kid=private_key.kid, alg=private_key.alg, use=private_key.use)

    def sign_payload(self, private_key: KeyRecord, payload: bytes) -> bytes:
        alg = algorithm_for(private_key)
        try:
            key = self._load_private(private_key)
            return self._algorithms[alg].sign(payload, key)
        except (InvalidKeyRecord, InvalidKeyError, TypeError, ValueError) as exc:
            raise SigningFailure(f"Cannot sign with key {private_key.kid!r} using {alg}") from exc

    def verify(self, public_key: KeyRecord, payload: bytes, signature: bytes) -> bool:
        alg = algorithm_for(public_key)
        key = self._load_public(public_key)
        return self._algorithms[alg].verify(payload, key, signature)

    # ----- JWK <-> key objects -----
    def _to_record(self, key) -> KeyRecord:
        if isinstance(key, ec.EllipticCurvePrivateKey):
            numbers = key.private_numbers()
            size = (key.curve.key_size + 7) // 8
            return replace(self._to_record(key.public_key()), d=_uint_b64(numbers.private_value, size))
        if isinstance(key, ec.EllipticCurvePublicKey):
            crv = _CURVE_NAMES.get(key.curve.name)
            if crv is None:
                raise UnsupportedKeyType(f"Unsupported curve: {key.curve.name}")
            numbers = key.public_numbers()
            size = (key.curve.key_size + 7) // 8
            return EcKeyRecord(crv=crv, x=_uint_b64(numbers.x, size), y=_uint_b64(numbers.y, size))
        if isinstance(key, ed25519.Ed25519PrivateKey):
            d = key.private_bytes(
                serialization.Encoding.Raw,
                serialization.PrivateFormat.Raw,
                serialization.NoEncryption(),
            )
            return replace(self._to_record(key.public_key()), d=b64e(d))
        if isinstance(key, ed25519.Ed25519PublicKey):
            x = key.public_bytes(serialization.Encoding.Raw, serialization.PublicFormat.Raw)
            return OkpKeyRecord(crv=ED25519, x=b64e(x))
        if isinstance(key, rsa.RSAPrivateKey):
            numbers = key.private_numbers()
            return replace(
                self._to_record(key.public_key()),
                d=_uint_b64(numbers.d),
                p=_uint_b64(numbers.p),
                q=_uint_b64(numbers.q),
                dp=_uint_b64(numbers.dmp1),
                dq=_uint_b64(numbers.dmq1),
                qi=_uint_b64(numbers.iqmp),
            )
        if isinstance(key, rsa.RSAPublicKey):
            numbers = key.public_numbers()
            return RsaKeyRecord(n=_uint_b64(numbers.n), e=_uint_b64(numbers.e))
        raise UnsupportedKeyType(f"Unsupported key object: {type(key).__name__}")

    def _load_private(self, record: KeyRecord):
        if not record.is_private:
            raise InvalidKeyRecord(f"Key {record.kid!r} carries no private material")
        try:
            if isinstance(record, EcKeyRecord):
                public_numbers = self._ec_public_numbers(record)
                return ec.EllipticCurvePrivateNumbers(_b64_uint(record.d), public_numbers).private_key()
            if isinstance(record, OkpKeyRecord):
                self._require_ed25519(record)
                return ed25519.Ed25519PrivateKey.from_private_bytes(b64d(record.d))
            if isinstance(record, RsaKeyRecord):
                return self._rsa_private_numbers(record).private_key()
        except ValueError as exc:
            raise InvalidKeyRecord(f"Malformed private key material for {record.kid!r}") from exc
        raise UnsupportedKeyType(f"Unsupported key type: {record.kty}")

    def _load_public(self, record: KeyRecord):
        try:
            if isinstance(record, EcKeyRecord):
                return self._ec_public_numbers(record).public_key()
            if isinstance(record, OkpKeyRecord):
                self._require_ed25519(record)
                return ed25519.Ed25519PublicKey.from_public_bytes(b64d(record.x))
            if isinstance(record, RsaKeyRecord):
                return rsa.RSAPublicNumbers(_b64_uint(record.e), _b64_uint(record.n)).public_key()
        except ValueError as exc:
            raise InvalidKeyRecord(f"Malformed public key material for {record.kid!r}") from exc
        raise UnsupportedKeyType(f"Unsupported key type: {record.kty}")

    @staticmethod
    def _ec_public_numbers(record: EcKeyRecord) -> ec.EllipticCurvePublicNumbers:
        curve_cls = _CURVES.get(record.crv)
        if curve_cls is None:
            raise UnsupportedKeyType(f"Unsupported curve: {record.crv!r}")
        return ec.EllipticCurvePublicNumbers(_b64_uint(record.x), _b64_uint(record.y), curve_cls())

    @staticmethod
    def _require_ed25519(record: OkpKeyRecord) -> None:
        if record.crv != ED25519:
            raise UnsupportedKeyType(f"Unsupported OKP curve: {record.crv!r}")

    @staticmethod
    def _rsa_private_numbers(record: RsaKeyRecord) -> rsa.RSAPrivateNumbers:
        n, e, d = _b64_uint(record.n), _b64_uint(record.e), _b64_uint(record.d)
        if record.p and record.q:
            p, q = _b64_uint(record.p), _b64_uint(record.q)
        else:
            p, q = rsa.rsa_recover_prime_factors(n, e, d)
        return rsa.RSAPrivateNumbers(
            p=p,
            q=q,
            d=d,
            dmp1=_b64_uint(record.dp) if record.dp else rsa.rsa_crt_dmp1(d, p),
            dmq1=_b64_uint(record.dq) if record.dq else rsa.rsa_crt_dmq1(d, q),
            iqmp=_b64_uint(record.qi) if record.qi else rsa.rsa_crt_iqmp(p, q),
            public_numbers=rsa.RSAPublicNumbers(e, n),
        )


__all__ = ["CryptoEngine", "JoseCryptoEngine"]
