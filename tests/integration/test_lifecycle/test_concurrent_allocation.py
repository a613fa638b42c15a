"""Concurrency tests: interleaved callers against one shared inventory."""

import asyncio

import pytest

from src.models.allocation import AcquisitionOutcome, AssignmentOutcome
from src.models.phone_number import PhoneNumberStatus
from tests.utils.assertions import assert_inventory_consistent
from tests.utils.factories import create_phone_record


@pytest.mark.integration
@pytest.mark.asyncio
async def test_two_acquires_one_number(allocator, memory_store):
    """Two concurrent acquires for the last number: exactly one wins."""
    record = memory_store.add(create_phone_record(area_code="404"))

    first, second = await asyncio.gather(allocator.acquire("404"), allocator.acquire("404"))

    outcomes = sorted([first.outcome, second.outcome], key=lambda o: o.value)
    assert outcomes == [AcquisitionOutcome.ACQUIRED, AcquisitionOutcome.NO_AVAILABLE_NUMBER]
    winner = first if first.success else second
    assert winner.record.id == record.id


@pytest.mark.integration
@pytest.mark.asyncio
async def test_two_onboardings_one_number(lifecycle, memory_store):
    memory_store.add(create_phone_record(area_code="404"))

    results = await asyncio.gather(
        lifecycle.acquire_and_assign("30301", "tenant_a"),
        lifecycle.acquire_and_assign("30301", "tenant_b"),
    )

    assert sum(r.success for r in results) == 1
    assert_inventory_consistent(memory_store.records.values())


@pytest.mark.integration
@pytest.mark.asyncio
async def test_two_assigns_same_number(allocator, memory_store):
    record = memory_store.add(create_phone_record())

    results = await asyncio.gather(
        allocator.assign(record.id, "tenant_a"),
        allocator.assign(record.id, "tenant_b"),
    )

    outcomes = sorted(r.outcome.value for r in results)
    assert outcomes == [AssignmentOutcome.ALREADY_ASSIGNED.value, AssignmentOutcome.ASSIGNED.value]
    assert memory_store.records[record.id].status == PhoneNumberStatus.ASSIGNED


@pytest.mark.integration
@pytest.mark.asyncio
async def test_same_tenant_onboarding_twice_concurrently(lifecycle, memory_store):
    """One tenant never ends up with two numbers."""
    for _ in range(3):
        memory_store.add(create_phone_record(area_code="404"))

    results = await asyncio.gather(
        lifecycle.acquire_and_assign("30301", "tenant_a"),
        lifecycle.acquire_and_assign("30301", "tenant_a"),
    )

    assert all(r.success for r in results)
    assert results[0].phone_number == results[1].phone_number
    assert_inventory_consistent(memory_store.records.values())
    assigned = [r for r in memory_store.records.values() if r.status == PhoneNumberStatus.ASSIGNED]
    assert len(assigned) == 1
    # The loser handed its lease back
    assert all(r.claim_token is None for r in memory_store.records.values())


@pytest.mark.integration
@pytest.mark.asyncio
async def test_many_tenants_drain_pool_exactly(lifecycle, memory_store):
    pool_size = 5
    for _ in range(pool_size):
        memory_store.add(create_phone_record(area_code="404"))

    results = await asyncio.gather(*[
        lifecycle.acquire_and_assign("30301", f"tenant_{i}") for i in range(8)
    ])

    assert sum(r.success for r in results) == pool_size
    assert_inventory_consistent(memory_store.records.values())
    assert all(r.status == PhoneNumberStatus.ASSIGNED for r in memory_store.records.values())


@pytest.mark.integration
@pytest.mark.asyncio
async def test_release_racing_acquire_does_not_leak_quarantined_number(allocator, memory_store):
    record = memory_store.add(create_phone_record(
        status=PhoneNumberStatus.ASSIGNED,
        tenant_id="tenant_a",
        phone_number="+14045550195",
    ))

    release, acquisition = await asyncio.gather(
        allocator.release("+14045550195"),
        allocator.acquire("404"),
    )

    assert release.success
    assert not acquisition.success
    assert memory_store.records[record.id].status == PhoneNumberStatus.COOLDOWN
