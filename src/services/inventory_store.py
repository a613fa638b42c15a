"""Inventory store contract used by the lifecycle allocator.

The store is the only shared mutable resource. Status changes go through
``conditional_update`` which must apply the update and the precondition
check as a single atomic statement (``UPDATE ... WHERE id = ? AND status = ?``).
A ``None`` return means zero rows matched: the caller lost a race.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from datetime import datetime

from src.models.allocation import SearchCriteria, StatusCountSnapshot
from src.models.phone_number import PhoneNumberRecord, UpdateCondition

# Columns ingest and admin overrides may touch without a status precondition
METADATA_FIELDS = frozenset({"carrier_number_id", "monthly_price", "notes"})


class InventoryStore(ABC):
    """Persistence contract for phone number records."""

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[PhoneNumberRecord]:
        ...

    @abstractmethod
    async def get_by_phone_number(self, phone_number: str) -> Optional[PhoneNumberRecord]:
        ...

    @abstractmethod
    async def get_by_current_tenant(self, tenant_id: str) -> Optional[PhoneNumberRecord]:
        ...

    @abstractmethod
    async def find_available(self, area_code: str, now: datetime, limit: int) -> list[PhoneNumberRecord]:
        """AVAILABLE rows with no live lease, oldest released first (never released first of all)."""

    @abstractmethod
    async def find_cooldown_expired(self, area_code: str, now: datetime, limit: int) -> list[PhoneNumberRecord]:
        """COOLDOWN rows with cooldown_until <= now, earliest expiry first."""

    @abstractmethod
    async def conditional_update(
        self,
        record_id: str,
        condition: UpdateCondition,
        updates: dict[str, Any],
    ) -> Optional[PhoneNumberRecord]:
        """Apply updates only if condition holds at write time; return the new row or None."""

    @abstractmethod
    async def insert(self, record: PhoneNumberRecord) -> PhoneNumberRecord:
        """Insert a new row. Raises DuplicatePhoneNumberError if the number exists."""

    @abstractmethod
    async def update_metadata(self, record_id: str, updates: dict[str, Any]) -> Optional[PhoneNumberRecord]:
        """Update METADATA_FIELDS only; never status or tenant columns."""

    @abstractmethod
    async def status_counts(self) -> StatusCountSnapshot:
        ...

    @abstractmethod
    async def search(self, criteria: SearchCriteria) -> list[PhoneNumberRecord]:
        """Filtered rows, newest created first."""


def check_metadata_fields(updates: dict[str, Any]) -> None:
    illegal = set(updates) - METADATA_FIELDS
    if illegal:
        raise ValueError(f"Not metadata fields: {sorted(illegal)}")
