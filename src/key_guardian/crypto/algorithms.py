"""Supported JWS algorithms and the key type/curve each one signs with."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final, Literal, Optional, Tuple

from ..core.exceptions import SigningFailure, UnsupportedKeyType
from ..models import KeyRecord

KeyType = Literal["EC", "OKP", "RSA"]

P256: Final = "P-256"
P384: Final = "P-384"
P521: Final = "P-521"
SECP256K1: Final = "secp256k1"
ED25519: Final = "Ed25519"


@dataclass(frozen=True, slots=True)
class AlgorithmSpec:
    name: str
    kty: KeyType
    curve: Optional[str] = None


ALGORITHMS: Dict[str, AlgorithmSpec] = {
    spec.name: spec
    for spec in (
        AlgorithmSpec("ES256", "EC", P256),
        AlgorithmSpec("ES256K", "EC", SECP256K1),
        AlgorithmSpec("ES384", "EC", P384),
        AlgorithmSpec("ES512", "EC", P521),
        AlgorithmSpec("EdDSA", "OKP", ED25519),
        AlgorithmSpec("RS256", "RSA"),
        AlgorithmSpec("RS384", "RSA"),
        AlgorithmSpec("RS512", "RSA"),
        AlgorithmSpec("PS256", "RSA"),
        AlgorithmSpec("PS384", "RSA"),
        AlgorithmSpec("PS512", "RSA"),
    )
}

# Signing algorithm picked for a key that carries no usable `alg` member.
_DEFAULT_BY_CURVE: Dict[Tuple[str, Optional[str]], str] = {
    ("EC", P256): "ES256",
    ("EC", SECP256K1): "ES256K",
    ("EC", P384): "ES384",
    ("EC", P521): "ES512",
    ("OKP", ED25519): "EdDSA",
    ("RSA", None): "RS256",
}


def resolve_algorithm(algorithm: str, curve: Optional[str] = None) -> AlgorithmSpec:
    """Validate a generation request and return the matching spec.

    ``curve`` may be omitted for curve-based algorithms (each supports exactly one
    curve) and is ignored for RSA.
    """
    spec = ALGORITHMS.get(algorithm)
    if spec is None:
        raise UnsupportedKeyType(f"Unsupported signing algorithm: {algorithm!r}")
    if spec.curve is not None and curve is not None and curve != spec.curve:
        raise UnsupportedKeyType(f"Algorithm {algorithm} cannot be used with curve {curve!r}")
    return spec


def algorithm_for(record: KeyRecord) -> str:
    """Derive the signing algorithm from a key's type and curve.

    A record whose own ``alg`` member names an algorithm that cannot sign with
    its key type/curve raises :class:`SigningFailure` rather than producing a
    header that lies about the signature.
    """
    curve = record.curve if record.kty != "RSA" else None
    default = _DEFAULT_BY_CURVE.get((record.kty, curve))
    if default is None:
        raise SigningFailure(f"No signing algorithm for {record.kty} key on curve {curve!r}")

    if record.alg is None:
        return default

    spec = ALGORITHMS.get(record.alg)
    if spec is None or spec.kty != record.kty or spec.curve != curve:
        raise SigningFailure(
            f"Key {record.kid!r} declares alg {record.alg!r} which does not match "
            f"its {record.kty} key on curve {curve!r}"
        )
    return spec.name


__all__ = [
    "ALGORITHMS",
    "AlgorithmSpec",
    "ED25519",
    "KeyType",
    "P256",
    "P384",
    "P521",
    "SECP256K1",
    "algorithm_for",
    "resolve_algorithm",
]
