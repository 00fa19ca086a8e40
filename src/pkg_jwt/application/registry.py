from __future__ import annotations

import threading
from typing import Dict, List, Optional

from ..domain.ports import SigningMethod, SigningMethodFactory


class SigningMethodRegistry:
    """
    Lookup from algorithm identifier (`alg` header) to signing method.

    Register once at startup, resolve many times afterwards. Re-registering
    an identifier replaces the previous factory without complaint.

    `resolve` takes no lock and is safe to call from many threads. The lock
    in `register` only keeps the mapping consistent; callers that register
    while other threads resolve must coordinate that themselves.
    """

    def __init__(self) -> None:
        self._factories: Dict[str, SigningMethodFactory] = {}
        self._lock = threading.Lock()

    def register(self, alg: str, factory: SigningMethodFactory) -> None:
        with self._lock:
            factories = dict(self._factories)
            factories[alg] = factory
            self._factories = factories

    def resolve(self, alg: str) -> Optional[SigningMethod]:
        """Return the method for `alg`, or None if nothing is registered."""
        factory = self._factories.get(alg)
        if factory is None:
            return None
        return factory()

    def algorithms(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, alg: object) -> bool:
        return alg in self._factories

    def __len__(self) -> int:
        return len(self._factories)


default_registry = SigningMethodRegistry()


def register_signing_method(alg: str, factory: SigningMethodFactory) -> None:
    """Register `factory` under `alg` in the process-wide registry."""
    default_registry.register(alg, factory)


def get_signing_method(alg: str) -> Optional[SigningMethod]:
    return default_registry.resolve(alg)
