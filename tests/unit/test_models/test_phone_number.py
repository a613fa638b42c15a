"""Tests for the inventory record model and conditional update preconditions."""

import pytest
from datetime import timedelta

from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus, UpdateCondition
from tests.utils.factories import BASE_TIME, create_phone_record


@pytest.mark.unit
def test_status_enum_values():
    """Statuses serialize as their upper-case names."""
    assert PhoneNumberStatus.AVAILABLE.value == "AVAILABLE"
    assert PhoneNumberStatus.ASSIGNED.value == "ASSIGNED"
    assert PhoneNumberStatus.COOLDOWN.value == "COOLDOWN"
    assert PhoneNumberStatus.RESERVED.value == "RESERVED"


@pytest.mark.unit
def test_available_record_defaults():
    record = PhoneNumberRecord(id="01J0", phone_number="+14045550100", area_code="404")

    assert record.status == PhoneNumberStatus.AVAILABLE
    assert record.current_tenant_id is None
    assert record.cooldown_until is None
    assert record.source == "manual"


@pytest.mark.unit
def test_assigned_requires_tenant():
    with pytest.raises(ValueError):
        PhoneNumberRecord(
            id="01J0",
            phone_number="+14045550100",
            area_code="404",
            status=PhoneNumberStatus.ASSIGNED,
        )


@pytest.mark.unit
def test_tenant_only_allowed_when_assigned():
    with pytest.raises(ValueError):
        PhoneNumberRecord(
            id="01J0",
            phone_number="+14045550100",
            area_code="404",
            status=PhoneNumberStatus.AVAILABLE,
            current_tenant_id="tenant_a",
        )


@pytest.mark.unit
def test_cooldown_requires_cooldown_until():
    with pytest.raises(ValueError):
        PhoneNumberRecord(
            id="01J0",
            phone_number="+14045550100",
            area_code="404",
            status=PhoneNumberStatus.COOLDOWN,
            previous_tenant_id="tenant_a",
        )


@pytest.mark.unit
def test_cooldown_until_only_allowed_in_cooldown():
    with pytest.raises(ValueError):
        PhoneNumberRecord(
            id="01J0",
            phone_number="+14045550100",
            area_code="404",
            status=PhoneNumberStatus.AVAILABLE,
            cooldown_until=BASE_TIME,
        )


@pytest.mark.unit
def test_area_code_must_be_three_characters():
    with pytest.raises(ValueError):
        PhoneNumberRecord(id="01J0", phone_number="+14045550100", area_code="4040")


@pytest.mark.unit
@pytest.mark.parametrize("area_code", ["abc", "4a4", " 40"])
def test_area_code_must_be_digits(area_code):
    with pytest.raises(ValueError):
        PhoneNumberRecord(id="01J0", phone_number="+14045550100", area_code=area_code)


@pytest.mark.unit
def test_negative_monthly_price_rejected():
    with pytest.raises(ValueError):
        PhoneNumberRecord(id="01J0", phone_number="+14045550100", area_code="404", monthly_price=-1)


@pytest.mark.unit
def test_is_claimed_only_while_lease_is_live():
    record = create_phone_record(claim_token="abc", claim_expires_at=BASE_TIME + timedelta(minutes=5))

    assert record.is_claimed(BASE_TIME)
    assert not record.is_claimed(BASE_TIME + timedelta(minutes=5))
    assert not create_phone_record().is_claimed(BASE_TIME)


@pytest.mark.unit
def test_condition_requires_matching_status():
    record = create_phone_record(status=PhoneNumberStatus.RESERVED)

    assert not UpdateCondition(status=PhoneNumberStatus.AVAILABLE).matches(record)
    assert UpdateCondition(status=PhoneNumberStatus.RESERVED).matches(record)


@pytest.mark.unit
def test_condition_checks_current_tenant():
    record = create_phone_record(status=PhoneNumberStatus.ASSIGNED, tenant_id="tenant_a")

    assert UpdateCondition(status=PhoneNumberStatus.ASSIGNED, current_tenant_id="tenant_a").matches(record)
    assert not UpdateCondition(status=PhoneNumberStatus.ASSIGNED, current_tenant_id="tenant_b").matches(record)


@pytest.mark.unit
def test_condition_rejects_live_lease_held_by_someone_else():
    record = create_phone_record(claim_token="theirs", claim_expires_at=BASE_TIME + timedelta(minutes=5))

    free_now = UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=BASE_TIME)
    mine = UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=BASE_TIME, claim_token="mine")
    theirs = UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=BASE_TIME, claim_token="theirs")

    assert not free_now.matches(record)
    assert not mine.matches(record)
    assert theirs.matches(record)


@pytest.mark.unit
def test_condition_ignores_expired_lease():
    record = create_phone_record(claim_token="theirs", claim_expires_at=BASE_TIME - timedelta(seconds=1))

    assert UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=BASE_TIME).matches(record)


@pytest.mark.unit
def test_condition_checks_cooldown_elapsed():
    record = create_phone_record(status=PhoneNumberStatus.COOLDOWN, cooldown_until=BASE_TIME)

    assert UpdateCondition(status=PhoneNumberStatus.COOLDOWN, cooldown_elapsed_at=BASE_TIME).matches(record)
    assert not UpdateCondition(
        status=PhoneNumberStatus.COOLDOWN,
        cooldown_elapsed_at=BASE_TIME - timedelta(seconds=1),
    ).matches(record)
