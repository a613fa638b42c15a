"""Allocator result, query, and statistics models."""

from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from src.models.phone_number import PhoneNumberRecord, PhoneNumberStatus


class AcquisitionSource(str, Enum):
    """Where an acquired number came from."""
    INVENTORY = "inventory"
    COOLDOWN_EXPIRED = "cooldown_expired"


class AcquisitionOutcome(str, Enum):
    ACQUIRED = "ACQUIRED"
    NO_AVAILABLE_NUMBER = "NO_AVAILABLE_NUMBER"


class AcquisitionResult(BaseModel):
    """Result of acquire(area_code)."""
    outcome: AcquisitionOutcome
    area_code: str
    record: Optional[PhoneNumberRecord] = None
    source: Optional[AcquisitionSource] = None
    claim_token: Optional[str] = Field(None, description="Lease token to present to assign()")
    attempts: int = Field(default=1, ge=1)

    @property
    def success(self) -> bool:
        return self.outcome == AcquisitionOutcome.ACQUIRED


class AssignmentOutcome(str, Enum):
    ASSIGNED = "ASSIGNED"
    # Lost the race or the number is no longer AVAILABLE; re-acquire
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
    TENANT_HAS_NUMBER = "TENANT_HAS_NUMBER"
    NOT_FOUND = "NOT_FOUND"


class AssignmentResult(BaseModel):
    """Result of assign(phone_number_id, tenant_id)."""
    outcome: AssignmentOutcome
    phone_number_id: str
    tenant_id: str
    record: Optional[PhoneNumberRecord] = None

    @property
    def success(self) -> bool:
        return self.outcome == AssignmentOutcome.ASSIGNED


class ReleaseOutcome(str, Enum):
    RELEASED = "RELEASED"
    NOT_FOUND = "NOT_FOUND"
    NOT_ASSIGNED = "NOT_ASSIGNED"


class ReleaseResult(BaseModel):
    """Result of release(phone_number)."""
    outcome: ReleaseOutcome
    phone_number: str
    record: Optional[PhoneNumberRecord] = None

    @property
    def success(self) -> bool:
        return self.outcome == ReleaseOutcome.RELEASED


class IngestOutcome(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"


class IngestResult(BaseModel):
    """Result of ingest(...)."""
    outcome: IngestOutcome
    record: PhoneNumberRecord

    @property
    def created(self) -> bool:
        return self.outcome == IngestOutcome.CREATED


class SearchCriteria(BaseModel):
    """Inventory search filters; all optional and combined with AND."""
    area_code: Optional[str] = None
    status: Optional[PhoneNumberStatus] = None
    previous_tenant_id: Optional[str] = None
    search: Optional[str] = Field(None, description="Substring of the phone number")
    limit: Optional[int] = Field(None, ge=1, le=1000)


class StatusCount(BaseModel):
    """One aggregate row: how many numbers in an area code have a status."""
    area_code: str
    status: PhoneNumberStatus
    count: int = Field(..., ge=0)


class StatusCountSnapshot(BaseModel):
    """Aggregate rows as returned by the store."""
    counts: list[StatusCount] = Field(default_factory=list)
    consistent: bool = Field(True, description="False when built from several independent reads")


class AreaCodeStats(BaseModel):
    total: int = 0
    available: int = 0
    assigned: int = 0


class InventorySnapshot(BaseModel):
    """Pool statistics for the operations dashboard."""
    total: int = 0
    available: int = 0
    assigned: int = 0
    cooldown: int = 0
    reserved: int = 0
    by_area_code: dict[str, AreaCodeStats] = Field(default_factory=dict)
    consistent: bool = True
    generated_at: Optional[datetime] = None
