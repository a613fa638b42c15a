"""Test data factories using Faker."""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Optional

from faker import Faker

from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus
from src.services.number_allocator import generate_record_id

fake = Faker()

BASE_TIME = datetime(2024, 12, 9, 12, 0, 0, tzinfo=timezone.utc)

_subscriber_numbers = itertools.count(2010000)


def fake_phone_number(area_code: str = "404") -> str:
    """Unique E.164 number, counting up from 201-0000 in the area code."""
    return f"+1{area_code}{next(_subscriber_numbers)}"


def create_phone_record(
    area_code: str = "404",
    status: PhoneNumberStatus = PhoneNumberStatus.AVAILABLE,
    phone_number: Optional[str] = None,
    tenant_id: Optional[str] = None,
    previous_tenant_id: Optional[str] = None,
    cooldown_until: Optional[datetime] = None,
    released_at: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    **overrides,
) -> PhoneNumberRecord:
    """Build a record that satisfies the status/field coupling for its status."""
    if status == PhoneNumberStatus.ASSIGNED and tenant_id is None:
        tenant_id = create_tenant_id()
    if status == PhoneNumberStatus.COOLDOWN and cooldown_until is None:
        cooldown_until = BASE_TIME + timedelta(days=30)

    fields = dict(
        id=generate_record_id(),
        phone_number=phone_number or fake_phone_number(area_code),
        area_code=area_code,
        status=status,
        current_tenant_id=tenant_id,
        previous_tenant_id=previous_tenant_id,
        carrier_number_id=f"PN{fake.random_int(min=100000, max=999999)}",
        cooldown_until=cooldown_until,
        assigned_at=BASE_TIME if status == PhoneNumberStatus.ASSIGNED else None,
        released_at=released_at,
        monthly_price=1.15,
        created_at=created_at or BASE_TIME,
        updated_at=created_at or BASE_TIME,
    )
    fields.update(overrides)
    return PhoneNumberRecord(**fields)


def create_tenant_id() -> str:
    return f"tenant_{fake.uuid4().replace('-', '')[:16]}"


def create_vendor_phone(area_code: str = "404", phone_type: str = "local") -> dict:
    """Vendor listing entry as the sync endpoint receives it."""
    digits = fake_phone_number(area_code)[2:]
    return {
        "number": f"({digits[:3]}) {digits[3:6]}-{digits[6:]}",
        "phoneId": f"ph_{fake.uuid4().replace('-', '')[:12]}",
        "type": phone_type,
    }
