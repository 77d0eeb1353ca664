from .config import AppConfig, KeyManagerConfig, LoggingConfig, load_config
from .crypto.algorithms import ALGORITHMS, algorithm_for
from .crypto.engine import CryptoEngine, JoseCryptoEngine
from .exceptions import (
    InvalidEnvelope,
    InvalidKeyRecord,
    KeyGuardianError,
    KeyManagerClosed,
    KeyNotFound,
    SigningFailure,
    UnsupportedKeyType,
)
from .logging import configure_logging
from .models import (
    EcKeyRecord,
    KeyGenOptions,
    KeyRecord,
    OkpKeyRecord,
    RsaKeyRecord,
    SignatureEnvelope,
    thumbprint,
)
from .services.key_manager import InMemoryKeyManager, KeyManager
from .services.signer_service import SignerService, verify_envelope
from .storage.keystore import InMemoryKeyStore

__version__ = "0.1.0"

__all__ = [
    "ALGORITHMS",
    "AppConfig",
    "CryptoEngine",
    "EcKeyRecord",
    "InMemoryKeyManager",
    "InMemoryKeyStore",
    "InvalidEnvelope",
    "InvalidKeyRecord",
    "JoseCryptoEngine",
    "KeyGenOptions",
    "KeyGuardianError",
    "KeyManager",
    "KeyManagerClosed",
    "KeyManagerConfig",
    "KeyNotFound",
    "KeyRecord",
    "LoggingConfig",
    "OkpKeyRecord",
    "RsaKeyRecord",
    "SignatureEnvelope",
    "SignerService",
    "SigningFailure",
    "UnsupportedKeyType",
    "algorithm_for",
    "configure_logging",
    "load_config",
    "thumbprint",
    "verify_envelope",
]
