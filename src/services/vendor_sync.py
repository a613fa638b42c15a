"""Vendor sync - upsert the messaging vendor's number listing into inventory.

Numbers enter inventory here or through manual ingest; nothing is purchased.
Sync only refreshes metadata on known numbers, it never changes status.
"""

from typing import Iterable

from src.models.lifecycle import SyncEntryResult, SyncReport, VendorPhoneEntry
from src.services.number_allocator import NumberAllocator
from src.utils.errors import NumberAllocatorError
from src.utils.logging import get_structured_logger, log_timing, mask_phone_number

logger = get_structured_logger(__name__)

VENDOR_SYNC_SOURCE = "vendor_sync"


async def sync_vendor_numbers(allocator: NumberAllocator, entries: Iterable[VendorPhoneEntry]) -> SyncReport:
    """Ingest each vendor entry; one bad entry does not stop the run."""
    report = SyncReport()

    with log_timing("vendor_sync", logger=logger):
        for entry in entries:
            try:
                result = await allocator.ingest(
                    entry.number,
                    entry.phone_id,
                    monthly_price=entry.monthly_price,
                    source=VENDOR_SYNC_SOURCE,
                    notes=f"Type: {entry.type}" if entry.type else None,
                )
            except NumberAllocatorError as e:
                report.failed += 1
                report.entries.append(
                    SyncEntryResult(phone_number=entry.number, phone_id=entry.phone_id, success=False, error=str(e))
                )
                logger.warning(
                    "Vendor number failed to sync",
                    phone_number=mask_phone_number(entry.number),
                    phone_id=entry.phone_id,
                    error=str(e),
                )
                continue

            if result.created:
                report.created += 1
            else:
                report.updated += 1
            report.entries.append(
                SyncEntryResult(
                    phone_number=result.record.phone_number,
                    phone_id=entry.phone_id,
                    success=True,
                    created=result.created,
                )
            )

    logger.info(
        "Vendor sync finished",
        created_count=report.created,
        updated_count=report.updated,
        failed_count=report.failed,
    )
    return report
