"""Tenant lifecycle bridge - onboarding and cancellation entry points into the allocator."""

import re
from typing import Awaitable, Callable, Optional, Union

from src.models.allocation import AssignmentOutcome
from src.models.lifecycle import CancellationResult, OnboardingResult, RejectionReason
from src.models.location import Location, NotSupported
from src.services import area_resolver
from src.services.number_allocator import NumberAllocator
from src.utils.errors import NumberAllocatorError
from src.utils.logging import get_structured_logger, mask_phone_number, mask_tenant_id

logger = get_structured_logger(__name__)

ZIP_CODE_PATTERN = re.compile(r"^\d{5}$")

Resolver = Callable[[str], Union[Location, NotSupported]]


class TenantLifecycle:
    """Composes the area resolver and allocator for onboarding and cancellation flows."""

    def __init__(
        self,
        allocator: NumberAllocator,
        resolve: Resolver = area_resolver.resolve,
        max_assign_attempts: int = 3,
    ):
        self.allocator = allocator
        self.resolve = resolve
        self.max_assign_attempts = max_assign_attempts

    async def acquire_and_assign(self, zip_code: str, tenant_id: str) -> OnboardingResult:
        """
        Give a tenant a local number for their ZIP code.

        Returns the tenant's current number if they already hold one.
        A lost assign race triggers a fresh acquire, never a repeat assign.
        """
        zip_code = (zip_code or "").strip()
        if not ZIP_CODE_PATTERN.match(zip_code):
            return OnboardingResult(
                tenant_id=tenant_id,
                rejection=RejectionReason.INVALID_ZIP,
                message="Please enter a valid 5-digit zip code",
            )

        location = self.resolve(zip_code)

        held = await self.allocator.get_tenant_number(tenant_id)
        if held is not None:
            return self._success(tenant_id, held.phone_number, held.area_code, location, existing=True)

        if isinstance(location, NotSupported):
            logger.info("Onboarding rejected, zip code not covered", zip_code=zip_code)
            return OnboardingResult(
                tenant_id=tenant_id,
                rejection=RejectionReason.UNSUPPORTED_ZIP,
                message=location.message,
            )

        for attempt in range(1, self.max_assign_attempts + 1):
            acquisition = await self.allocator.acquire(location.area_code)
            if not acquisition.success:
                return OnboardingResult(
                    tenant_id=tenant_id,
                    area_code=location.area_code,
                    location=location,
                    rejection=RejectionReason.NO_AVAILABLE_NUMBER,
                    message="No phone numbers available. Please contact support.",
                )

            record = acquisition.record
            assignment = await self.allocator.assign(record.id, tenant_id, acquisition.claim_token)
            if assignment.success:
                return self._success(tenant_id, record.phone_number, record.area_code, location)

            # Our lease on the unassigned number is not needed on any path from here
            await self.allocator.release_claim(record.id, acquisition.claim_token)

            if assignment.outcome == AssignmentOutcome.TENANT_HAS_NUMBER and assignment.record:
                # Concurrent onboarding for the same tenant got there first
                held = assignment.record
                return self._success(tenant_id, held.phone_number, held.area_code, location, existing=True)

            logger.info(
                "Assignment lost race, re-acquiring",
                tenant_id=mask_tenant_id(tenant_id),
                area_code=location.area_code,
                attempt=attempt,
                assignment_outcome=assignment.outcome.value,
            )

        return OnboardingResult(
            tenant_id=tenant_id,
            area_code=location.area_code,
            location=location,
            rejection=RejectionReason.NO_AVAILABLE_NUMBER,
            message="No phone numbers available. Please contact support.",
        )

    def _success(
        self,
        tenant_id: str,
        phone_number: str,
        area_code: str,
        location: Union[Location, NotSupported],
        existing: bool = False,
    ) -> OnboardingResult:
        resolved = location if isinstance(location, Location) else None
        where = f" for {resolved.city}, {resolved.state}" if resolved else ""
        logger.info(
            "Tenant onboarded with phone number",
            tenant_id=mask_tenant_id(tenant_id),
            phone_number=mask_phone_number(phone_number),
            existing=existing,
        )
        return OnboardingResult(
            tenant_id=tenant_id,
            phone_number=phone_number,
            area_code=area_code,
            location=resolved,
            existing=existing,
            message=f"Success! Your local SMS number {phone_number} has been assigned{where}",
        )

    async def release_for_tenant(self, phone_number: str) -> None:
        """Quarantine a cancelled tenant's number. Unknown numbers are logged, not raised."""
        result = await self.allocator.release(phone_number)
        if not result.success:
            logger.warning(
                "Phone number not recycled on cancellation",
                phone_number=mask_phone_number(phone_number),
                release_outcome=result.outcome.value,
            )

    async def cancel_subscription(
        self,
        tenant_id: str,
        phone_number: Optional[str],
        deactivate_tenant: Callable[[], Awaitable[None]],
    ) -> CancellationResult:
        """
        Release the tenant's number, then deactivate the tenant.

        The two writes do not share a transaction. Deactivation always runs;
        a failed release is flagged for manual reconciliation.
        """
        result = CancellationResult(phone_number=phone_number)

        if phone_number:
            try:
                release = await self.allocator.release(phone_number)
                result.released = release.success
                if not release.success:
                    logger.warning(
                        "Phone number not recycled on cancellation",
                        tenant_id=mask_tenant_id(tenant_id),
                        phone_number=mask_phone_number(phone_number),
                        release_outcome=release.outcome.value,
                    )
            except NumberAllocatorError as e:
                result.reconciliation_required = True
                result.error = str(e)
                logger.error(
                    "Failed to recycle phone number, deactivating tenant anyway",
                    tenant_id=mask_tenant_id(tenant_id),
                    phone_number=mask_phone_number(phone_number),
                    reconciliation_required=True,
                    error=str(e),
                )

        try:
            await deactivate_tenant()
        except Exception as e:
            logger.error(
                "Tenant deactivation failed after phone release",
                tenant_id=mask_tenant_id(tenant_id),
                released=result.released,
                reconciliation_required=True,
                error=str(e),
            )
            raise

        result.deactivated = True
        return result
