"""
Unit tests for LocalSSOCoordinator.
"""

import asyncio
import uuid

import pytest

from service_sso.app.handoff import (
    Account,
    CHAIN_CONTINUE,
    FailureKind,
    HandOffOutcome,
    LocalSSOCoordinator,
)
from service_sso.app.handoff.models import EXTERNAL_LOGIN_KEY_ATTR, USER_LOGIN_ATTR
from service_sso.app.registry import TokenRegistry
from shared.metrics import MetricsCollector

from .conftest import FakeAuthenticator, FakeRequest, FakeSession


class TestLoginKeyIssuance:
    """Test cases for issuing and rotating external login keys."""

    @pytest.fixture
    def registry(self):
        return TokenRegistry()

    @pytest.fixture
    def coordinator(self, registry, authenticator):
        return LocalSSOCoordinator(registry, authenticator)

    @pytest.mark.asyncio
    async def test_issue_binds_key_everywhere(self, coordinator, registry, alice):
        request = FakeRequest(account=alice)

        key = await coordinator.issue_or_retrieve(request)

        assert key.startswith("EL")
        uuid.UUID(key[2:])
        assert request.get_attribute(EXTERNAL_LOGIN_KEY_ATTR) == key
        assert request.session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR) == key
        assert registry.get(key) is alice

    @pytest.mark.asyncio
    async def test_same_request_returns_same_key(self, coordinator, registry, alice):
        request = FakeRequest(account=alice)

        first = await coordinator.issue_or_retrieve(request)
        second = await coordinator.issue_or_retrieve(request)

        assert first == second
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_navigation_rotates_key(self, coordinator, registry, alice):
        session = FakeSession()

        first = await coordinator.issue_or_retrieve(FakeRequest(session=session, account=alice))
        second = await coordinator.issue_or_retrieve(FakeRequest(session=session, account=alice))

        assert first != second
        assert registry.get(first) is None
        assert registry.get(second) is alice
        assert session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR) == second

    @pytest.mark.asyncio
    async def test_async_request_reuses_key(self, coordinator, registry, alice):
        session = FakeSession()
        first = await coordinator.issue_or_retrieve(FakeRequest(session=session, account=alice))

        ajax = FakeRequest(session=session, account=alice,
                           headers={"X-Requested-With": "XMLHttpRequest"})
        second = await coordinator.issue_or_retrieve(ajax)

        assert second == first
        assert registry.get(first) is alice
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_anonymous_request_clears_previous_key(self, coordinator, registry, alice):
        session = FakeSession()
        first = await coordinator.issue_or_retrieve(FakeRequest(session=session, account=alice))

        key = await coordinator.issue_or_retrieve(FakeRequest(session=session))

        assert key == ""
        assert registry.get(first) is None
        assert session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR) is None

    @pytest.mark.asyncio
    async def test_anonymous_request_without_previous_key(self, coordinator, registry):
        assert await coordinator.issue_or_retrieve(FakeRequest()) == ""
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_concurrent_requests_leave_one_key_per_session(self, coordinator, registry, alice, bob):
        alice_session = FakeSession("session-a")
        bob_session = FakeSession("session-b")
        requests = (
            [FakeRequest(session=alice_session, account=alice) for _ in range(10)]
            + [FakeRequest(session=bob_session, account=bob) for _ in range(10)]
        )

        await asyncio.gather(*(coordinator.issue_or_retrieve(r) for r in requests))

        assert len(registry) == 2
        assert registry.get(alice_session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR)) is alice
        assert registry.get(bob_session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR)) is bob

    @pytest.mark.asyncio
    async def test_colliding_keys_are_skipped(self, registry, authenticator, alice, bob):
        taken = [uuid.UUID(int=n) for n in range(1, 51)]
        for value in taken:
            registry.put(f"EL{value}", bob)
        fresh = uuid.UUID(int=999)
        candidates = iter(taken + [fresh])
        coordinator = LocalSSOCoordinator(registry, authenticator, key_factory=lambda: next(candidates))

        key = await coordinator.issue_or_retrieve(FakeRequest(account=alice))

        assert key == f"EL{fresh}"
        assert registry.get(key) is alice
        assert all(registry.get(f"EL{value}") is bob for value in taken)

    def test_generation_never_reuses_registered_key(self, registry, authenticator, alice, bob):
        """10,000 generations against a registry full of 'EL' entries stay unique."""
        for n in range(1000):
            registry.put(f"EL{uuid.uuid4()}", bob)
        coordinator = LocalSSOCoordinator(registry, authenticator)

        issued = set()
        for _ in range(10_000):
            before = len(registry)
            key = coordinator._claim_unique_key(alice)
            assert key not in issued
            assert len(registry) == before + 1
            issued.add(key)

    @pytest.mark.asyncio
    async def test_issue_records_metrics(self, registry, authenticator, alice):
        metrics = MetricsCollector("sso")
        coordinator = LocalSSOCoordinator(registry, authenticator, metrics=metrics)

        await coordinator.issue_or_retrieve(FakeRequest(account=alice))

        assert metrics.registry.get_sample_value("sso_login_keys_issued_total") == 1
        assert metrics.registry.get_sample_value("sso_active_login_keys") == 1

    def test_cleanup_removes_session_key(self, coordinator, registry, alice):
        session = FakeSession()
        registry.put("EL-1", alice)
        session.set_attribute(EXTERNAL_LOGIN_KEY_ATTR, "EL-1")

        coordinator.cleanup(session)
        coordinator.cleanup(session)

        assert registry.get("EL-1") is None
        assert session.get_attribute(EXTERNAL_LOGIN_KEY_ATTR) is None

    def test_consume_does_not_mutate_registry(self, coordinator, registry, alice):
        registry.put("EL-1", alice)

        assert coordinator.consume("EL-1") is alice
        assert coordinator.consume("EL-1") is alice
        assert coordinator.consume("EL-2") is None
        assert len(registry) == 1


class TestLocalHandOff:
    """Test cases for same-server hand-off."""

    @pytest.fixture
    def registry(self, alice):
        registry = TokenRegistry()
        registry.put("EL-alice", alice)
        return registry

    @pytest.fixture
    def coordinator(self, registry, authenticator):
        return LocalSSOCoordinator(registry, authenticator)

    @pytest.mark.asyncio
    async def test_no_parameter_is_a_no_op(self, coordinator, registry, authenticator, bob):
        request = FakeRequest()
        request.session.set_attribute(USER_LOGIN_ATTR, bob)

        result = await coordinator.hand_off(request)
        answer = await coordinator.check(request)

        assert result.outcome is HandOffOutcome.NO_ACTION
        assert result.succeeded
        assert answer == CHAIN_CONTINUE
        assert authenticator.events == []
        assert request.session.get_attribute(USER_LOGIN_ATTR) is bob
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_logs_in_when_nobody_is_active(self, coordinator, authenticator, alice):
        request = FakeRequest(params={"externalLoginKey": "EL-alice"})

        result = await coordinator.hand_off(request)

        assert result.outcome is HandOffOutcome.LOGGED_IN
        assert result.account_id == "alice"
        assert authenticator.events == [("login", "alice")]
        assert request.session.get_attribute(USER_LOGIN_ATTR) is alice

    @pytest.mark.asyncio
    async def test_same_account_already_active(self, coordinator, authenticator, alice):
        request = FakeRequest(params={"externalLoginKey": "EL-alice"})
        request.session.set_attribute(USER_LOGIN_ATTR, Account(account_id="alice", tenant_id="default"))

        result = await coordinator.hand_off(request)

        assert result.outcome is HandOffOutcome.ALREADY_ACTIVE
        assert authenticator.events == []

    @pytest.mark.asyncio
    async def test_switches_from_other_account(self, coordinator, authenticator, bob):
        request = FakeRequest(params={"externalLoginKey": "EL-alice"})
        request.session.set_attribute(USER_LOGIN_ATTR, bob)

        result = await coordinator.hand_off(request)

        assert result.outcome is HandOffOutcome.SWITCHED
        assert authenticator.events == [("logout", "bob"), ("login", "alice")]

    @pytest.mark.asyncio
    async def test_switch_continues_when_logout_fails(self, registry, bob):
        authenticator = FakeAuthenticator(logout_result=False)
        coordinator = LocalSSOCoordinator(registry, authenticator)
        request = FakeRequest(params={"externalLoginKey": "EL-alice"})
        request.session.set_attribute(USER_LOGIN_ATTR, bob)

        result = await coordinator.hand_off(request)

        assert result.outcome is HandOffOutcome.SWITCHED
        assert authenticator.events == [("logout", "bob"), ("login", "alice")]

    @pytest.mark.asyncio
    async def test_unknown_key_is_registry_miss(self, coordinator, authenticator):
        request = FakeRequest(params={"externalLoginKey": "EL-unknown"})

        result = await coordinator.hand_off(request)

        assert result.failure is FailureKind.REGISTRY_MISS
        assert result.outcome is HandOffOutcome.NO_ACTION
        assert await coordinator.check(request) == CHAIN_CONTINUE
        assert authenticator.events == []

    @pytest.mark.asyncio
    async def test_switches_tenant_before_login(self, registry, coordinator, authenticator):
        registry.put("EL-carol", Account(account_id="carol", tenant_id="tenant-2"))
        request = FakeRequest(params={"externalLoginKey": "EL-carol"}, tenant_id="tenant-1")

        result = await coordinator.hand_off(request)

        assert result.outcome is HandOffOutcome.LOGGED_IN
        assert authenticator.events == [("switch_tenant", "tenant-2"), ("login", "carol")]
        assert request.tenant_id == "tenant-2"

    @pytest.mark.asyncio
    async def test_check_records_outcome_metric(self, registry, authenticator):
        metrics = MetricsCollector("sso")
        coordinator = LocalSSOCoordinator(registry, authenticator, metrics=metrics)

        await coordinator.check(FakeRequest(params={"externalLoginKey": "EL-alice"}))
        await coordinator.check(FakeRequest(params={"externalLoginKey": "EL-nope"}))

        sample = metrics.registry.get_sample_value
        assert sample("sso_handoffs_total", {"path": "local", "outcome": "logged_in"}) == 1
        assert sample("sso_handoffs_total", {"path": "local", "outcome": "registry_miss"}) == 1
