
from __future__ import annotations

"""Central exception hierarchy"""
class KeyGuardianError(Exception):
    """Base exception for all failures"""


class KeyNotFound(KeyGuardianError, KeyError):
    """Raised when a key identifier cannot be resolved"""

    def __init__(self, kid: str) -> None:
        super().__init__(kid)
        self.kid = kid

    def __str__(self) -> str:
        return f"key with id {self.kid!r} not found"


class UnsupportedKeyType(KeyGuardianError, ValueError):
    """Raised when an algorithm/curve combination cannot be generated or used"""


class SigningFailure(KeyGuardianError):
    """Raised when a signature cannot be produced for a stored key"""


class InvalidKeyRecord(KeyGuardianError, ValueError):
    """Raised when a key record is missing members or carries malformed material"""


class InvalidEnvelope(KeyGuardianError, ValueError):
    """Raised when a compact signature envelope cannot be parsed"""


class KeyManagerClosed(KeyGuardianError):
    """Raised when a key manager is used after its store was torn down"""
