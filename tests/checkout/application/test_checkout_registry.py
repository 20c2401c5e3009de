"""Tests for the live checkout session registry."""

import pytest
from checkout.api.sessions import CheckoutNotFound, CheckoutRegistry
from checkout.flow.state import CheckoutStage, CheckoutState
from checkout.identity.provisioning import GuestCredentials


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(clock):
    return CheckoutRegistry(ttl=60, clock=clock)


def _completed(credentials=None):
    return CheckoutState(
        stage=CheckoutStage.COMPLETE,
        order_id="ord-1",
        order_number="ORD-1",
        credentials=credentials,
    )


class TestLookup:
    def test_open_then_get(self, registry):
        orchestrator = registry.open()
        assert registry.get(orchestrator.checkout_id) is orchestrator

    def test_unknown_checkout(self, registry):
        with pytest.raises(CheckoutNotFound):
            registry.get("missing")


class TestExpiry:
    def test_idle_checkout_is_evicted(self, registry, clock):
        orchestrator = registry.open()
        clock.now += 61

        with pytest.raises(CheckoutNotFound):
            registry.get(orchestrator.checkout_id)
        assert len(registry) == 0

    def test_activity_keeps_checkout_alive(self, registry, clock):
        orchestrator = registry.open()
        clock.now += 45
        registry.get(orchestrator.checkout_id)
        clock.now += 45

        assert registry.get(orchestrator.checkout_id) is orchestrator

    def test_opening_a_checkout_sweeps_idle_ones(self, registry, clock):
        registry.open()
        registry.open()
        clock.now += 120

        registry.open()
        assert len(registry) == 1


class TestRelease:
    def test_completed_checkout_without_credentials_is_released(self, registry):
        orchestrator = registry.open()
        orchestrator.state = _completed()

        assert registry.release(orchestrator) is True
        assert orchestrator.checkout_id not in registry

    def test_pending_credentials_keep_checkout(self, registry):
        orchestrator = registry.open()
        orchestrator.state = _completed(GuestCredentials(email="a@b.com", password="Xy3!abcdefgh", user_id="u-1"))

        assert registry.release(orchestrator) is False
        assert orchestrator.checkout_id in registry

    def test_unfinished_checkout_is_kept(self, registry):
        orchestrator = registry.open()

        assert registry.release(orchestrator) is False
        assert orchestrator.checkout_id in registry
