"""Tenant onboarding, cancellation, and vendor sync models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from src.models.location import Location


class RejectionReason(str, Enum):
    INVALID_ZIP = "INVALID_ZIP"
    UNSUPPORTED_ZIP = "UNSUPPORTED_ZIP"
    NO_AVAILABLE_NUMBER = "NO_AVAILABLE_NUMBER"


class OnboardingResult(BaseModel):
    """Outcome of acquire_and_assign(zip_code, tenant_id)."""
    tenant_id: str
    phone_number: Optional[str] = None
    area_code: Optional[str] = None
    location: Optional[Location] = None
    rejection: Optional[RejectionReason] = None
    message: Optional[str] = None
    existing: bool = Field(False, description="Tenant already held this number")

    @property
    def success(self) -> bool:
        return self.rejection is None


class CancellationResult(BaseModel):
    """Outcome of cancel_subscription(...)."""
    phone_number: Optional[str] = None
    released: bool = False
    deactivated: bool = False
    reconciliation_required: bool = False
    error: Optional[str] = None


class VendorPhoneEntry(BaseModel):
    """One number as listed by the messaging vendor."""
    number: str = Field(..., description="Raw number as the vendor formats it")
    phone_id: str = Field(..., description="Vendor/carrier phone ID")
    type: Optional[str] = Field(None, description="Vendor number type, e.g. local or toll-free")
    monthly_price: Optional[float] = Field(None, ge=0)


class SyncEntryResult(BaseModel):
    phone_number: str
    phone_id: str
    success: bool
    created: bool = False
    error: Optional[str] = None


class SyncReport(BaseModel):
    """Summary of a vendor sync run."""
    created: int = 0
    updated: int = 0
    failed: int = 0
    entries: list[SyncEntryResult] = Field(default_factory=list)

    @property
    def message(self) -> str:
        synced = self.created + self.updated
        suffix = f", {self.failed} failed" if self.failed else ""
        return f"Synced {synced} phone numbers{suffix}"
