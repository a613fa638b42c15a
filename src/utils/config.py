"""Inventory configuration read from environment variables."""

import os
from datetime import timedelta


class InventoryConfig:
    """Centralized allocator configuration."""

    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")

    INVENTORY_TABLE = os.environ.get("PHONE_INVENTORY_TABLE", "phone_number_inventory")
    STATS_FUNCTION = os.environ.get("PHONE_STATS_FUNCTION", "phone_inventory_status_counts")

    # Quarantine window after release (policy constant)
    COOLDOWN_DAYS = int(os.environ.get("PHONE_COOLDOWN_DAYS", "30"))
    CLAIM_TTL_SECONDS = int(os.environ.get("PHONE_CLAIM_TTL_SECONDS", "300"))
    MAX_ACQUIRE_ATTEMPTS = int(os.environ.get("PHONE_MAX_ACQUIRE_ATTEMPTS", "5"))
    CANDIDATE_BATCH_SIZE = int(os.environ.get("PHONE_CANDIDATE_BATCH_SIZE", "5"))
    DEFAULT_REGION = os.environ.get("PHONE_DEFAULT_REGION", "US").upper()

    ADMIN_API_TOKEN = os.environ.get("ADMIN_API_TOKEN", "")

    @classmethod
    def cooldown_period(cls) -> timedelta:
        return timedelta(days=cls.COOLDOWN_DAYS)

    @classmethod
    def claim_ttl(cls) -> timedelta:
        return timedelta(seconds=cls.CLAIM_TTL_SECONDS)
