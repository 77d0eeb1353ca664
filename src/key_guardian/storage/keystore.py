from __future__ import annotations

import contextlib
import threading
from typing import ContextManager, Dict, Iterator, List, Optional

from ..core.exceptions import KeyManagerClosed, KeyNotFound
from ..models import KeyRecord


class InMemoryKeyStore:
    """Process-local keystore: kid -> private :class:`KeyRecord`.

    Records are immutable and never replaced; ``put_if_absent`` is the only
    write. With ``thread_safe=True`` every read and write runs under one
    re-entrant lock; with ``thread_safe=False`` the store is a plain dict meant
    for a single owner. ``close()`` drops all material and rejects further use.
    """

    def __init__(self, *, thread_safe: bool = True) -> None:
        self._keys: Dict[str, KeyRecord] = {}
        self._lock: Optional[threading.RLock] = threading.RLock() if thread_safe else None
        self._closed = False

    @property
    def thread_safe(self) -> bool:
        return self._lock is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def _guard(self) -> ContextManager[object]:
        return self._lock if self._lock is not None else contextlib.nullcontext()

    def _check_open(self) -> None:
        if self._closed:
            raise KeyManagerClosed("Key store has been closed")

    # ----- Public API used by KeyManager -----
    def get(self, kid: str) -> KeyRecord:
        with self._guard():
            self._check_open()
            try:
                return self._keys[kid]
            except KeyError:
                raise KeyNotFound(kid) from None

    def put_if_absent(self, kid: str, record: KeyRecord) -> bool:
        """Insert ``record`` under ``kid`` unless the kid is taken. Returns True on insert."""
        with self._guard():
            self._check_open()
            if kid in self._keys:
                return False
            self._keys[kid] = record
            return True

    def kids(self) -> List[str]:
        with self._guard():
            self._check_open()
            return list(self._keys)

    def close(self) -> None:
        with self._guard():
            self._keys.clear()
            self._closed = True

    def __contains__(self, kid: object) -> bool:
        with self._guard():
            return not self._closed and kid in self._keys

    def __len__(self) -> int:
        with self._guard():
            return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(self.kids())
