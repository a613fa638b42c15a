"""Phone number inventory record and its lifecycle status."""

from enum import Enum
from typing import Any, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class PhoneNumberStatus(str, Enum):
    """Inventory lifecycle states."""
    AVAILABLE = "AVAILABLE"
    ASSIGNED = "ASSIGNED"
    COOLDOWN = "COOLDOWN"
    # Set by operations staff only; the allocator never touches these rows
    RESERVED = "RESERVED"


class PhoneNumberRecord(BaseModel):
    """A number held in inventory. Rows are recycled, never deleted."""
    id: str = Field(..., description="Record ID (ULID text)")
    phone_number: str = Field(..., description="Canonical E.164 number, unique")
    area_code: str = Field(..., pattern=r"^\d{3}$", description="3-digit area code, derived from phone_number")
    status: PhoneNumberStatus = Field(default=PhoneNumberStatus.AVAILABLE)
    current_tenant_id: Optional[str] = Field(None, description="Tenant holding the number (ASSIGNED only)")
    previous_tenant_id: Optional[str] = Field(None, description="Last holder, kept through quarantine")
    carrier_number_id: Optional[str] = Field(None, description="Carrier-side number ID")
    cooldown_until: Optional[datetime] = Field(None, description="Quarantine end (COOLDOWN only)")
    assigned_at: Optional[datetime] = None
    released_at: Optional[datetime] = None
    purchased_at: Optional[datetime] = None
    monthly_price: Optional[float] = Field(None, ge=0, description="Monthly cost, informational")
    source: str = Field(default="manual", description="Provenance: manual, vendor_sync, ...")
    notes: Optional[str] = None
    claim_token: Optional[str] = Field(None, description="Acquisition lease token")
    claim_expires_at: Optional[datetime] = Field(None, description="Acquisition lease expiry")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def model_post_init(self, __context: Any) -> None:
        """Enforce the status/field coupling invariants."""
        assigned = self.status == PhoneNumberStatus.ASSIGNED
        if assigned != (self.current_tenant_id is not None):
            raise ValueError("current_tenant_id must be set if and only if status is ASSIGNED")

        cooling = self.status == PhoneNumberStatus.COOLDOWN
        if cooling != (self.cooldown_until is not None):
            raise ValueError("cooldown_until must be set if and only if status is COOLDOWN")

    def is_claimed(self, now: datetime) -> bool:
        """True while another caller holds a live acquisition lease."""
        return (
            self.claim_token is not None
            and self.claim_expires_at is not None
            and self.claim_expires_at > now
        )


class UpdateCondition(BaseModel):
    """
    Preconditions for a conditional (compare-and-swap) update.

    The store applies the update only if every populated field matches the
    row at write time; zero rows affected means the caller lost a race.
    """
    status: PhoneNumberStatus
    current_tenant_id: Optional[str] = None
    # Lease must be free at this instant, or held by claim_token
    claim_free_at: Optional[datetime] = None
    claim_token: Optional[str] = None
    # cooldown_until must be <= this instant
    cooldown_elapsed_at: Optional[datetime] = None

    def matches(self, record: PhoneNumberRecord) -> bool:
        if record.status != self.status:
            return False
        if self.current_tenant_id is not None and record.current_tenant_id != self.current_tenant_id:
            return False
        if self.claim_free_at is not None and record.is_claimed(self.claim_free_at):
            if self.claim_token is None or record.claim_token != self.claim_token:
                return False
        if self.cooldown_elapsed_at is not None:
            if record.cooldown_until is None or record.cooldown_until > self.cooldown_elapsed_at:
                return False
        return True
