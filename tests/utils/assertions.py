"""Custom assertion helpers."""

from typing import Iterable

from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus


def assert_record_coupling(record: PhoneNumberRecord) -> None:
    """Status and its dependent fields agree."""
    assert (record.status == PhoneNumberStatus.ASSIGNED) == (record.current_tenant_id is not None)
    assert (record.status == PhoneNumberStatus.COOLDOWN) == (record.cooldown_until is not None)


def assert_one_number_per_tenant(records: Iterable[PhoneNumberRecord]) -> None:
    """No tenant holds two ASSIGNED numbers."""
    holders = [r.current_tenant_id for r in records if r.status == PhoneNumberStatus.ASSIGNED]
    assert len(holders) == len(set(holders)), f"tenant holds more than one number: {holders}"


def assert_inventory_consistent(records: Iterable[PhoneNumberRecord]) -> None:
    records = list(records)
    for record in records:
        assert_record_coupling(record)
    assert_one_number_per_tenant(records)
    numbers = [r.phone_number for r in records]
    assert len(numbers) == len(set(numbers)), "duplicate phone numbers in inventory"
