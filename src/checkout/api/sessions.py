"""In-process registry of live checkout sessions.

Holds one ``CheckoutOrchestrator`` per checkout id plus the collaborators the
sessions share (identity provider, blob storage). Buyer identity is never
shared: each orchestrator carries the session it was started or signed in with.

A checkout leaves the registry when it completes with nothing left to hand to
the buyer, or when it has not been touched for ``ttl`` seconds.
"""

import time

from checkout.config import get_settings
from checkout.flow.orchestrator import CheckoutOrchestrator
from checkout.flow.state import CheckoutStage
from checkout.identity.memory import InMemoryIdentityProvider
from checkout.identity.port import IdentityProvider
from checkout.invoicing.storage import BlobStorage, InMemoryBlobStorage
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutNotFound(LookupError):
    pass


class CheckoutRegistry:
    def __init__(
        self,
        identity: IdentityProvider | None = None,
        storage: BlobStorage | None = None,
        ttl: float | None = None,
        clock=time.monotonic,
    ) -> None:
        settings = get_settings()
        self.identity = identity or InMemoryIdentityProvider()
        self.storage = storage or InMemoryBlobStorage(settings.storage_public_base_url)
        self.ttl = settings.session_ttl_seconds if ttl is None else ttl
        self.clock = clock
        self._sessions: dict[str, CheckoutOrchestrator] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, checkout_id: str) -> bool:
        return checkout_id in self._sessions

    def open(self) -> CheckoutOrchestrator:
        self.evict_expired()
        orchestrator = CheckoutOrchestrator(identity=self.identity, storage=self.storage)
        self._sessions[orchestrator.checkout_id] = orchestrator
        self._last_seen[orchestrator.checkout_id] = self.clock()
        return orchestrator

    def get(self, checkout_id: str) -> CheckoutOrchestrator:
        self.evict_expired()
        try:
            orchestrator = self._sessions[checkout_id]
        except KeyError:
            raise CheckoutNotFound(checkout_id) from None
        self._last_seen[checkout_id] = self.clock()
        return orchestrator

    def discard(self, checkout_id: str) -> None:
        self._sessions.pop(checkout_id, None)
        self._last_seen.pop(checkout_id, None)

    def release(self, orchestrator: CheckoutOrchestrator) -> bool:
        """Drop a completed checkout unless generated credentials are still waiting on "log in now"."""
        state = orchestrator.state
        if state.stage != CheckoutStage.COMPLETE or state.credentials is not None:
            return False
        self.discard(orchestrator.checkout_id)
        return True

    def evict_expired(self) -> int:
        cutoff = self.clock() - self.ttl
        expired = [checkout_id for checkout_id, seen in self._last_seen.items() if seen < cutoff]
        for checkout_id in expired:
            self.discard(checkout_id)
        if expired:
            logger.info("Expired checkout sessions evicted", count=len(expired))
        return len(expired)


_registry: CheckoutRegistry | None = None


def get_registry() -> CheckoutRegistry:
    global _registry
    if _registry is None:
        _registry = CheckoutRegistry()
    return _registry


def reset_registry() -> None:
    global _registry
    _registry = None
