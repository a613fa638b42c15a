"""Number allocator - phone number inventory lifecycle.

States cycle AVAILABLE -> ASSIGNED -> COOLDOWN -> AVAILABLE. RESERVED rows
are managed by operations staff and never touched here.

Every status change is a single conditional update against the store; there
is no read-then-write and no in-process lock, so several allocator processes
can share one inventory. Quarantine expiry is checked lazily in acquire().
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from ulid import ULID

from src.models.allocation import (
    AcquisitionOutcome,
    AcquisitionResult,
    AcquisitionSource,
    AreaCodeStats,
    AssignmentOutcome,
    AssignmentResult,
    IngestOutcome,
    IngestResult,
    InventorySnapshot,
    ReleaseOutcome,
    ReleaseResult,
    SearchCriteria,
)
from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus, UpdateCondition
from src.services.inventory_store import InventoryStore
from src.utils.config import InventoryConfig
from src.utils.errors import (
    ConfigurationError,
    DuplicatePhoneNumberError,
    InvalidPhoneNumberError,
    TenantAlreadyAssignedError,
)
from src.utils.logging import get_structured_logger, mask_phone_number, mask_tenant_id, timed
from src.utils.phone import area_code_for, canonical_phone_number

logger = get_structured_logger(__name__)

_CLEARED_LEASE = {"claim_token": None, "claim_expires_at": None}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_record_id() -> str:
    """Generate a text-based record ID (ULID format)."""
    return str(ULID())


def generate_claim_token() -> str:
    return uuid.uuid4().hex


class NumberAllocator:
    """Selects, assigns, releases, and requeues inventory numbers."""

    def __init__(
        self,
        store: InventoryStore,
        cooldown_period: Optional[timedelta] = None,
        claim_ttl: Optional[timedelta] = None,
        max_acquire_attempts: Optional[int] = None,
        candidate_batch_size: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.cooldown_period = cooldown_period if cooldown_period is not None else InventoryConfig.cooldown_period()
        self.claim_ttl = claim_ttl if claim_ttl is not None else InventoryConfig.claim_ttl()
        self.max_acquire_attempts = max_acquire_attempts or InventoryConfig.MAX_ACQUIRE_ATTEMPTS
        self.candidate_batch_size = candidate_batch_size or InventoryConfig.CANDIDATE_BATCH_SIZE
        self.clock = clock

        # Quarantine may be tuned but never switched off
        if self.cooldown_period <= timedelta(0):
            raise ConfigurationError("Cooldown period must be positive")
        if self.claim_ttl <= timedelta(0):
            raise ConfigurationError("Claim TTL must be positive")

    @timed("allocator.acquire")
    async def acquire(self, area_code: str) -> AcquisitionResult:
        """
        Claim a number in an area code.

        1. AVAILABLE stock, oldest released first.
        2. COOLDOWN rows whose quarantine has ended, earliest expiry first;
           requeued to AVAILABLE in the same conditional update that claims them.
        3. NO_AVAILABLE_NUMBER, a signal to procure more numbers.

        Losing every candidate to a concurrent caller restarts from step 1.
        """
        attempt = 0
        while attempt < self.max_acquire_attempts:
            attempt += 1
            now = self.clock()
            claim_token = generate_claim_token()
            lease = {"claim_token": claim_token, "claim_expires_at": now + self.claim_ttl}

            candidates = await self.store.find_available(area_code, now, self.candidate_batch_size)
            if candidates:
                for candidate in candidates:
                    claimed = await self.store.conditional_update(
                        candidate.id,
                        UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=now),
                        lease,
                    )
                    if claimed:
                        return self._acquired(area_code, claimed, AcquisitionSource.INVENTORY, claim_token, attempt)
                logger.info("Lost race for available numbers, retrying", area_code=area_code, attempt=attempt)
                continue

            expired = await self.store.find_cooldown_expired(area_code, now, self.candidate_batch_size)
            if expired:
                for candidate in expired:
                    claimed = await self.store.conditional_update(
                        candidate.id,
                        UpdateCondition(status=PhoneNumberStatus.COOLDOWN, cooldown_elapsed_at=now),
                        {"status": PhoneNumberStatus.AVAILABLE, "cooldown_until": None, **lease},
                    )
                    if claimed:
                        return self._acquired(
                            area_code, claimed, AcquisitionSource.COOLDOWN_EXPIRED, claim_token, attempt
                        )
                logger.info("Lost race for expired cooldowns, retrying", area_code=area_code, attempt=attempt)
                continue

            break

        logger.warning(
            "No available number in area code, purchase needed",
            area_code=area_code,
            attempts=attempt,
        )
        return AcquisitionResult(
            outcome=AcquisitionOutcome.NO_AVAILABLE_NUMBER,
            area_code=area_code,
            attempts=max(attempt, 1),
        )

    def _acquired(
        self,
        area_code: str,
        record: PhoneNumberRecord,
        source: AcquisitionSource,
        claim_token: str,
        attempt: int,
    ) -> AcquisitionResult:
        logger.info(
            "Acquired phone number",
            area_code=area_code,
            phone_number=mask_phone_number(record.phone_number),
            acquisition_source=source.value,
            attempts=attempt,
        )
        return AcquisitionResult(
            outcome=AcquisitionOutcome.ACQUIRED,
            area_code=area_code,
            record=record,
            source=source,
            claim_token=claim_token,
            attempts=attempt,
        )

    async def assign(
        self,
        phone_number_id: str,
        tenant_id: str,
        claim_token: Optional[str] = None,
    ) -> AssignmentResult:
        """
        Bind an AVAILABLE number to a tenant.

        The write is conditional on status AVAILABLE and on the acquisition
        lease being ours (or free). ALREADY_ASSIGNED means re-acquire; retrying
        assign on the same id will not help.
        """
        held = await self.store.get_by_current_tenant(tenant_id)
        if held is not None:
            if held.id == phone_number_id:
                return AssignmentResult(
                    outcome=AssignmentOutcome.ASSIGNED,
                    phone_number_id=phone_number_id,
                    tenant_id=tenant_id,
                    record=held,
                )
            return self._tenant_has_number(phone_number_id, tenant_id, held)

        now = self.clock()
        condition = UpdateCondition(
            status=PhoneNumberStatus.AVAILABLE,
            claim_free_at=now,
            claim_token=claim_token,
        )
        updates = {
            "status": PhoneNumberStatus.ASSIGNED,
            "current_tenant_id": tenant_id,
            "previous_tenant_id": None,
            "assigned_at": now,
            "cooldown_until": None,
            **_CLEARED_LEASE,
        }
        try:
            assigned = await self.store.conditional_update(phone_number_id, condition, updates)
        except TenantAlreadyAssignedError:
            held = await self.store.get_by_current_tenant(tenant_id)
            return self._tenant_has_number(phone_number_id, tenant_id, held)

        if assigned:
            logger.info(
                "Assigned phone number to tenant",
                phone_number=mask_phone_number(assigned.phone_number),
                tenant_id=mask_tenant_id(tenant_id),
            )
            return AssignmentResult(
                outcome=AssignmentOutcome.ASSIGNED,
                phone_number_id=phone_number_id,
                tenant_id=tenant_id,
                record=assigned,
            )

        current = await self.store.get_by_id(phone_number_id)
        if current is None:
            logger.warning("Assign target not found", phone_number_id=phone_number_id)
            return AssignmentResult(
                outcome=AssignmentOutcome.NOT_FOUND,
                phone_number_id=phone_number_id,
                tenant_id=tenant_id,
            )

        logger.info(
            "Assign lost race, caller must re-acquire",
            phone_number_id=phone_number_id,
            current_status=current.status.value,
            tenant_id=mask_tenant_id(tenant_id),
        )
        return AssignmentResult(
            outcome=AssignmentOutcome.ALREADY_ASSIGNED,
            phone_number_id=phone_number_id,
            tenant_id=tenant_id,
            record=current,
        )

    async def release_claim(self, phone_number_id: str, claim_token: str) -> bool:
        """Give back an unused acquisition lease before it expires."""
        cleared = await self.store.conditional_update(
            phone_number_id,
            UpdateCondition(status=PhoneNumberStatus.AVAILABLE, claim_free_at=self.clock(), claim_token=claim_token),
            dict(_CLEARED_LEASE),
        )
        return cleared is not None

    def _tenant_has_number(
        self,
        phone_number_id: str,
        tenant_id: str,
        held: Optional[PhoneNumberRecord],
    ) -> AssignmentResult:
        logger.warning(
            "Tenant already holds a phone number",
            tenant_id=mask_tenant_id(tenant_id),
            held_phone_number=mask_phone_number(held.phone_number) if held else None,
        )
        return AssignmentResult(
            outcome=AssignmentOutcome.TENANT_HAS_NUMBER,
            phone_number_id=phone_number_id,
            tenant_id=tenant_id,
            record=held,
        )

    @timed("allocator.release")
    async def release(self, phone_number: str) -> ReleaseResult:
        """
        Put an ASSIGNED number into quarantine.

        Keyed by number string because cancellation only has that on hand.
        Missing or unassigned numbers come back as typed results so the
        caller's cancellation can carry on.
        """
        try:
            canonical = canonical_phone_number(phone_number)
        except InvalidPhoneNumberError:
            logger.warning("Release called with malformed number", phone_number=mask_phone_number(phone_number))
            return ReleaseResult(outcome=ReleaseOutcome.NOT_FOUND, phone_number=phone_number)

        record = await self.store.get_by_phone_number(canonical)

        for _ in range(self.max_acquire_attempts):
            if record is None:
                logger.warning("Release target not in inventory", phone_number=mask_phone_number(canonical))
                return ReleaseResult(outcome=ReleaseOutcome.NOT_FOUND, phone_number=canonical)

            if record.status != PhoneNumberStatus.ASSIGNED:
                logger.warning(
                    "Release target is not assigned",
                    phone_number=mask_phone_number(canonical),
                    current_status=record.status.value,
                )
                return ReleaseResult(outcome=ReleaseOutcome.NOT_ASSIGNED, phone_number=canonical, record=record)

            now = self.clock()
            released = await self.store.conditional_update(
                record.id,
                UpdateCondition(status=PhoneNumberStatus.ASSIGNED, current_tenant_id=record.current_tenant_id),
                {
                    "status": PhoneNumberStatus.COOLDOWN,
                    "previous_tenant_id": record.current_tenant_id,
                    "current_tenant_id": None,
                    "released_at": now,
                    "cooldown_until": now + self.cooldown_period,
                    **_CLEARED_LEASE,
                },
            )
            if released:
                logger.info(
                    "Released phone number into cooldown",
                    phone_number=mask_phone_number(canonical),
                    previous_tenant_id=mask_tenant_id(released.previous_tenant_id),
                    cooldown_until=released.cooldown_until.isoformat(),
                )
                return ReleaseResult(outcome=ReleaseOutcome.RELEASED, phone_number=canonical, record=released)

            # Someone changed the row under us; look again
            record = await self.store.get_by_id(record.id)

        return ReleaseResult(outcome=ReleaseOutcome.NOT_ASSIGNED, phone_number=canonical, record=record)

    async def ingest(
        self,
        phone_number: str,
        carrier_number_id: Optional[str],
        area_code: Optional[str] = None,
        monthly_price: Optional[float] = None,
        source: str = "manual",
        notes: Optional[str] = None,
    ) -> IngestResult:
        """
        Add a number to inventory, or refresh metadata of a known one.

        Upsert keyed on the canonical number. Status and tenant fields of an
        existing row are never touched. A supplied area_code must match the
        number's own prefix.
        """
        canonical = canonical_phone_number(phone_number)
        derived_area_code = area_code_for(canonical)
        if area_code and area_code != derived_area_code:
            raise InvalidPhoneNumberError(
                f"Area code {area_code} does not match {canonical} (area code {derived_area_code})"
            )

        existing = await self.store.get_by_phone_number(canonical)
        if existing is not None:
            return await self._refresh_metadata(existing, carrier_number_id, monthly_price, notes)

        now = self.clock()
        record = PhoneNumberRecord(
            id=generate_record_id(),
            phone_number=canonical,
            area_code=derived_area_code,
            status=PhoneNumberStatus.AVAILABLE,
            carrier_number_id=carrier_number_id,
            monthly_price=monthly_price,
            source=source,
            notes=notes,
            purchased_at=now,
            created_at=now,
            updated_at=now,
        )
        try:
            created = await self.store.insert(record)
        except DuplicatePhoneNumberError:
            # Concurrent ingest of the same number won the insert
            existing = await self.store.get_by_phone_number(canonical)
            if existing is None:
                raise
            return await self._refresh_metadata(existing, carrier_number_id, monthly_price, notes)

        logger.info(
            "Added phone number to inventory",
            phone_number=mask_phone_number(canonical),
            area_code=created.area_code,
            inventory_source=source,
        )
        return IngestResult(outcome=IngestOutcome.CREATED, record=created)

    async def _refresh_metadata(
        self,
        existing: PhoneNumberRecord,
        carrier_number_id: Optional[str],
        monthly_price: Optional[float],
        notes: Optional[str],
    ) -> IngestResult:
        updates = {}
        if carrier_number_id is not None and carrier_number_id != existing.carrier_number_id:
            updates["carrier_number_id"] = carrier_number_id
        if monthly_price is not None and monthly_price != existing.monthly_price:
            updates["monthly_price"] = monthly_price
        if notes is not None and notes != existing.notes:
            updates["notes"] = notes

        if not updates:
            return IngestResult(outcome=IngestOutcome.UPDATED, record=existing)

        # Same field rules as a fresh insert; raises ValidationError
        PhoneNumberRecord.model_validate({**existing.model_dump(), **updates})

        updated = await self.store.update_metadata(existing.id, updates)
        logger.info(
            "Refreshed inventory metadata",
            phone_number=mask_phone_number(existing.phone_number),
            fields=sorted(updates),
        )
        return IngestResult(outcome=IngestOutcome.UPDATED, record=updated or existing)

    async def set_carrier_number_id(
        self,
        phone_number: str,
        carrier_number_id: Optional[str],
    ) -> Optional[PhoneNumberRecord]:
        """Admin override of the carrier ID; status is left alone. None if not found."""
        canonical = canonical_phone_number(phone_number)
        record = await self.store.get_by_phone_number(canonical)
        if record is None:
            return None

        updated = await self.store.update_metadata(record.id, {"carrier_number_id": carrier_number_id})
        logger.info(
            "Carrier number ID overridden",
            phone_number=mask_phone_number(canonical),
            cleared=carrier_number_id is None,
        )
        return updated

    async def get_tenant_number(self, tenant_id: str) -> Optional[PhoneNumberRecord]:
        return await self.store.get_by_current_tenant(tenant_id)

    @timed("allocator.stats")
    async def stats(self) -> InventorySnapshot:
        """Pool counts by status and per area code, from one store read."""
        snapshot = await self.store.status_counts()
        stats = InventorySnapshot(consistent=snapshot.consistent, generated_at=self.clock())

        status_fields = {
            PhoneNumberStatus.AVAILABLE: "available",
            PhoneNumberStatus.ASSIGNED: "assigned",
            PhoneNumberStatus.COOLDOWN: "cooldown",
            PhoneNumberStatus.RESERVED: "reserved",
        }
        for row in snapshot.counts:
            stats.total += row.count
            field = status_fields[row.status]
            setattr(stats, field, getattr(stats, field) + row.count)

            area = stats.by_area_code.setdefault(row.area_code, AreaCodeStats())
            area.total += row.count
            if row.status == PhoneNumberStatus.AVAILABLE:
                area.available += row.count
            elif row.status == PhoneNumberStatus.ASSIGNED:
                area.assigned += row.count

        return stats

    async def search(self, criteria: Optional[SearchCriteria] = None) -> list[PhoneNumberRecord]:
        return await self.store.search(criteria or SearchCriteria())
