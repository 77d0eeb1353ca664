
from .core.exceptions import (
  InvalidEnvelope,
  InvalidKeyRecord,
  KeyGuardianError,
  KeyManagerClosed,
  KeyNotFound,
  SigningFailure,
  UnsupportedKeyType,
)


__all__ = [
  "InvalidEnvelope",
  "InvalidKeyRecord",
  "KeyGuardianError",
  "KeyManagerClosed",
  "KeyNotFound",
  "SigningFailure",
  "UnsupportedKeyType",
]
