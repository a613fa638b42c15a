"""Supabase client factory and the PostgREST-backed inventory store."""

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from supabase import create_client, Client
from supabase.client import ClientOptions

from src.models.allocation import SearchCriteria, StatusCount, StatusCountSnapshot
from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus, UpdateCondition
from src.services.inventory_store import InventoryStore, check_metadata_fields
from src.utils.config import InventoryConfig
from src.utils.errors import (
    ConfigurationError,
    DuplicatePhoneNumberError,
    InventoryStoreError,
    TenantAlreadyAssignedError,
)
from src.utils.logging import get_structured_logger, mask_phone_number

logger = get_structured_logger(__name__)

# PostgREST caps unpaged selects; the stats fallback reads in pages of this size
PAGE_SIZE = 1000


def create_supabase_client(url: Optional[str] = None, key: Optional[str] = None) -> Client:
    """Build a Supabase client. Callers own it and pass it to the store."""
    url = url or InventoryConfig.SUPABASE_URL
    key = key or InventoryConfig.SUPABASE_SERVICE_ROLE_KEY

    if not url or not key:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

    options = ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )
    client = create_client(url, key, options)
    logger.info("Supabase client initialized", supabase_url=url)
    return client


def _timestamp(value: datetime) -> str:
    """UTC timestamp safe to embed in PostgREST filter strings (no '+')."""
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _to_row(updates: dict[str, Any]) -> dict[str, Any]:
    row = {}
    for key, value in updates.items():
        if isinstance(value, datetime):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        row[key] = value
    return row


def _is_unique_violation(error: Exception) -> bool:
    # 23505 is the Postgres unique_violation SQLSTATE
    message = str(error)
    return "duplicate key" in message.lower() or "23505" in message


def _lease_free_filter(now: datetime, claim_token: Optional[str] = None) -> str:
    clauses = ["claim_expires_at.is.null", f"claim_expires_at.lte.{_timestamp(now)}"]
    if claim_token:
        clauses.append(f"claim_token.eq.{claim_token}")
    return ",".join(clauses)


class SupabaseInventoryStore(InventoryStore):
    """Inventory store on a Supabase ``phone_number_inventory`` table."""

    def __init__(self, client: Client, table_name: Optional[str] = None, stats_function: Optional[str] = None):
        self.client = client
        self.table_name = table_name or InventoryConfig.INVENTORY_TABLE
        self.stats_function = stats_function or InventoryConfig.STATS_FUNCTION

    def _table(self):
        return self.client.table(self.table_name)

    @staticmethod
    def _first(result) -> Optional[PhoneNumberRecord]:
        if result.data and len(result.data) > 0:
            return PhoneNumberRecord.model_validate(result.data[0])
        return None

    @staticmethod
    def _all(result) -> list[PhoneNumberRecord]:
        return [PhoneNumberRecord.model_validate(row) for row in (result.data or [])]

    async def get_by_id(self, record_id: str) -> Optional[PhoneNumberRecord]:
        try:
            result = self._table().select("*").eq("id", record_id).limit(1).execute()
            return self._first(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to get phone number {record_id}: {e}")

    async def get_by_phone_number(self, phone_number: str) -> Optional[PhoneNumberRecord]:
        try:
            result = self._table().select("*").eq("phone_number", phone_number).limit(1).execute()
            return self._first(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to look up phone number: {e}")

    async def get_by_current_tenant(self, tenant_id: str) -> Optional[PhoneNumberRecord]:
        try:
            result = (
                self._table()
                .select("*")
                .eq("current_tenant_id", tenant_id)
                .eq("status", PhoneNumberStatus.ASSIGNED.value)
                .limit(1)
                .execute()
            )
            return self._first(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to get tenant phone number: {e}")

    async def find_available(self, area_code: str, now: datetime, limit: int) -> list[PhoneNumberRecord]:
        try:
            result = (
                self._table()
                .select("*")
                .eq("area_code", area_code)
                .eq("status", PhoneNumberStatus.AVAILABLE.value)
                .or_(_lease_free_filter(now))
                .order("released_at", desc=False, nullsfirst=True)
                .limit(limit)
                .execute()
            )
            return self._all(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to find available numbers in {area_code}: {e}")

    async def find_cooldown_expired(self, area_code: str, now: datetime, limit: int) -> list[PhoneNumberRecord]:
        try:
            result = (
                self._table()
                .select("*")
                .eq("area_code", area_code)
                .eq("status", PhoneNumberStatus.COOLDOWN.value)
                .lte("cooldown_until", _timestamp(now))
                .order("cooldown_until", desc=False)
                .limit(limit)
                .execute()
            )
            return self._all(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to find expired cooldowns in {area_code}: {e}")

    async def conditional_update(
        self,
        record_id: str,
        condition: UpdateCondition,
        updates: dict[str, Any],
    ) -> Optional[PhoneNumberRecord]:
        row = _to_row({**updates, "updated_at": datetime.now(timezone.utc)})
        try:
            query = (
                self._table()
                .update(row)
                .eq("id", record_id)
                .eq("status", condition.status.value)
            )
            if condition.current_tenant_id is not None:
                query = query.eq("current_tenant_id", condition.current_tenant_id)
            if condition.claim_free_at is not None:
                query = query.or_(_lease_free_filter(condition.claim_free_at, condition.claim_token))
            if condition.cooldown_elapsed_at is not None:
                query = query.lte("cooldown_until", _timestamp(condition.cooldown_elapsed_at))

            # Zero rows back means the WHERE clause no longer matched
            return self._first(query.execute())
        except Exception as e:
            if _is_unique_violation(e) and "current_tenant_id" in updates:
                raise TenantAlreadyAssignedError(f"Tenant already holds a phone number: {e}")
            raise InventoryStoreError(f"Failed to update phone number {record_id}: {e}")

    async def insert(self, record: PhoneNumberRecord) -> PhoneNumberRecord:
        row = record.model_dump(mode="json", exclude_none=True)
        try:
            result = self._table().insert(row).execute()
        except Exception as e:
            if _is_unique_violation(e):
                raise DuplicatePhoneNumberError(
                    f"Phone number already in inventory: {mask_phone_number(record.phone_number)}"
                )
            raise InventoryStoreError(f"Failed to insert phone number: {e}")

        created = self._first(result)
        if created is None:
            raise InventoryStoreError("Failed to insert phone number: no data returned")
        return created

    async def update_metadata(self, record_id: str, updates: dict[str, Any]) -> Optional[PhoneNumberRecord]:
        check_metadata_fields(updates)
        row = _to_row({**updates, "updated_at": datetime.now(timezone.utc)})
        try:
            result = self._table().update(row).eq("id", record_id).execute()
            return self._first(result)
        except Exception as e:
            raise InventoryStoreError(f"Failed to update phone number {record_id}: {e}")

    async def status_counts(self) -> StatusCountSnapshot:
        try:
            # Single-statement aggregate, consistent by construction
            result = self.client.rpc(self.stats_function, {}).execute()
            counts = [StatusCount.model_validate(row) for row in (result.data or [])]
            return StatusCountSnapshot(counts=counts, consistent=True)
        except Exception as e:
            logger.warning(
                "Stats function unavailable, falling back to paged select",
                stats_function=self.stats_function,
                error=str(e),
            )

        try:
            return self._paged_status_counts()
        except Exception as fallback_error:
            raise InventoryStoreError(f"Failed to compute inventory stats: {fallback_error}")

    def _paged_status_counts(self) -> StatusCountSnapshot:
        tally: Counter = Counter()
        start = 0
        while True:
            result = (
                self._table()
                .select("area_code,status")
                .order("id")
                .range(start, start + PAGE_SIZE - 1)
                .execute()
            )
            rows = result.data or []
            for row in rows:
                tally[(row["area_code"], row["status"])] += 1
            if len(rows) < PAGE_SIZE:
                break
            start += PAGE_SIZE

        counts = [
            StatusCount(area_code=area_code, status=status, count=count)
            for (area_code, status), count in sorted(tally.items())
        ]
        return StatusCountSnapshot(counts=counts, consistent=False)

    async def search(self, criteria: SearchCriteria) -> list[PhoneNumberRecord]:
        try:
            query = self._table().select("*")
            if criteria.area_code:
                query = query.eq("area_code", criteria.area_code)
            if criteria.status:
                query = query.eq("status", criteria.status.value)
            if criteria.previous_tenant_id:
                query = query.eq("previous_tenant_id", criteria.previous_tenant_id)
            if criteria.search:
                query = query.like("phone_number", f"*{criteria.search}*")
            query = query.order("created_at", desc=True)
            if criteria.limit:
                query = query.limit(criteria.limit)
            return self._all(query.execute())
        except Exception as e:
            raise InventoryStoreError(f"Failed to search inventory: {e}")
