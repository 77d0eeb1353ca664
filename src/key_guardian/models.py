"""Key records, generation options and signature envelopes."""
from __future__ import annotations

import binascii
import hashlib
import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type

from .core.exceptions import InvalidEnvelope, InvalidKeyRecord, UnsupportedKeyType
from .utils.encoding import b64d, b64e, canonical_json

ENVELOPE_SEPARATOR = "."

_METADATA_MEMBERS: Tuple[str, ...] = ("kid", "alg", "use")


@dataclass(frozen=True, slots=True, kw_only=True)
class KeyRecord:
    """A private or public key in JWK shape.

    Concrete variants are :class:`EcKeyRecord`, :class:`OkpKeyRecord` and
    :class:`RsaKeyRecord`; the set is closed and keyed by ``kty``. Private and
    public forms of the same key differ only in which material members are set.
    """

    kty: ClassVar[str] = ""
    public_members: ClassVar[Tuple[str, ...]] = ()
    private_members: ClassVar[Tuple[str, ...]] = ()
    thumbprint_members: ClassVar[Tuple[str, ...]] = ()

    kid: Optional[str] = None
    alg: Optional[str] = None
    use: Optional[str] = None

    @property
    def is_private(self) -> bool:
        return getattr(self, "d", None) is not None

    @property
    def curve(self) -> Optional[str]:
        return getattr(self, "crv", None)

    def public(self) -> "KeyRecord":
        """Return this record with every private member stripped."""
        return replace(self, **{name: None for name in self.private_members})

    def with_kid(self, kid: str) -> "KeyRecord":
        return replace(self, kid=kid)

    def to_jwk(self) -> Dict[str, str]:
        jwk: Dict[str, str] = {"kty": self.kty}
        for name in _METADATA_MEMBERS + self.public_members + self.private_members:
            value = getattr(self, name)
            if value is not None:
                jwk[name] = value
        return jwk

    @staticmethod
    def from_jwk(data: Mapping[str, Any]) -> "KeyRecord":
        """Build the variant matching ``data["kty"]``.

        Members that are not part of the variant (``key_ops``, ``x5c``...) are
        dropped. Raises :class:`UnsupportedKeyType` for an unknown ``kty`` and
        :class:`InvalidKeyRecord` for missing or non-string members.
        """
        if not isinstance(data, Mapping):
            raise InvalidKeyRecord("JWK must be a JSON object")
        kty = data.get("kty")
        variant = _VARIANTS.get(kty) if isinstance(kty, str) else None
        if variant is None:
            raise UnsupportedKeyType(f"Unsupported key type: {kty!r}")

        missing = [name for name in variant.public_members if not data.get(name)]
        if missing:
            raise InvalidKeyRecord(f"{kty} key is missing required members: {', '.join(missing)}")

        values: Dict[str, str] = {}
        for member in fields(variant):
            value = data.get(member.name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise InvalidKeyRecord(f"JWK member {member.name!r} must be a string")
            values[member.name] = value
        return variant(**values)


@dataclass(frozen=True, slots=True, kw_only=True)
class EcKeyRecord(KeyRecord):
    kty: ClassVar[str] = "EC"
    public_members: ClassVar[Tuple[str, ...]] = ("crv", "x", "y")
    private_members: ClassVar[Tuple[str, ...]] = ("d",)
    thumbprint_members: ClassVar[Tuple[str, ...]] = ("crv", "kty", "x", "y")

    crv: str
    x: str
    y: str
    d: Optional[str] = None


@dataclass(frozen=True, slots=True, kw_only=True)
class OkpKeyRecord(KeyRecord):
    kty: ClassVar[str] = "OKP"
    public_members: ClassVar[Tuple[str, ...]] = ("crv", "x")
    private_members: ClassVar[Tuple[str, ...]] = ("d",)
    thumbprint_members: ClassVar[Tuple[str, ...]] = ("crv", "kty", "x")

    crv: str
    x: str
    d: Optional[str] = None


@dataclass(frozen=True, slots=True, kw_only=True)
class RsaKeyRecord(KeyRecord):
    kty: ClassVar[str] = "RSA"
    public_members: ClassVar[Tuple[str, ...]] = ("n", "e")
    private_members: ClassVar[Tuple[str, ...]] = ("d", "p", "q", "dp", "dq", "qi")
    thumbprint_members: ClassVar[Tuple[str, ...]] = ("e", "kty", "n")

    n: str
    e: str
    d: Optional[str] = None
    p: Optional[str] = None
    q: Optional[str] = None
    dp: Optional[str] = None
    dq: Optional[str] = None
    qi: Optional[str] = None


_VARIANTS: Dict[str, Type[KeyRecord]] = {
    EcKeyRecord.kty: EcKeyRecord,
    OkpKeyRecord.kty: OkpKeyRecord,
    RsaKeyRecord.kty: RsaKeyRecord,
}


def thumbprint(record: KeyRecord) -> str:
    """RFC 7638 SHA-256 JWK thumbprint, base64url encoded."""
    jwk = record.to_jwk()
    required = {name: jwk[name] for name in record.thumbprint_members}
    return b64e(hashlib.sha256(canonical_json(required)).digest())


@dataclass(frozen=True, slots=True)
class KeyGenOptions:
    """Algorithm-specific generation parameters. Only RSA consults them."""

    key_size: Optional[int] = None
    public_exponent: Optional[int] = None


@dataclass(frozen=True, slots=True)
class SignatureEnvelope:
    """Header, payload and signature of one signing operation.

    ``compact()`` renders the JWS compact serialization; ``parse()`` reverses it
    and keeps the header exactly as encoded so the signing input is reproducible.
    """

    header: Dict[str, Any] = field(hash=False)
    payload: bytes
    signature: bytes
    encoded_header: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.encoded_header:
            object.__setattr__(self, "encoded_header", b64e(canonical_json(self.header)))

    @property
    def algorithm(self) -> str:
        return self.header["alg"]

    @property
    def kid(self) -> Optional[str]:
        return self.header.get("kid")

    @property
    def signing_input(self) -> bytes:
        return f"{self.encoded_header}{ENVELOPE_SEPARATOR}{b64e(self.payload)}".encode("ascii")

    def compact(self) -> str:
        return ENVELOPE_SEPARATOR.join((self.encoded_header, b64e(self.payload), b64e(self.signature)))

    @classmethod
    def parse(cls, token: str) -> "SignatureEnvelope":
        parts = token.strip().split(ENVELOPE_SEPARATOR)
        if len(parts) != 3:
            raise InvalidEnvelope("Envelope must have exactly three '.'-separated parts")
        header_b64, payload_b64, sig_b64 = parts
        if not header_b64 or not sig_b64:
            raise InvalidEnvelope("Envelope missing header or signature")

        try:
            header = json.loads(b64d(header_b64).decode("utf-8"))
            payload = b64d(payload_b64)
            signature = b64d(sig_b64)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise InvalidEnvelope("Envelope decode failed") from exc

        if not isinstance(header, dict) or not isinstance(header.get("alg"), str):
            raise InvalidEnvelope("Envelope header must be an object carrying 'alg'")
        return cls(header=header, payload=payload, signature=signature, encoded_header=header_b64)


__all__ = [
    "ENVELOPE_SEPARATOR",
    "EcKeyRecord",
    "KeyGenOptions",
    "KeyRecord",
    "OkpKeyRecord",
    "RsaKeyRecord",
    "SignatureEnvelope",
    "thumbprint",
]
