"""Wiring for request handlers: build the allocator and bridge around a fresh client."""

from typing import Optional

from supabase import Client

from src.services.number_allocator import NumberAllocator
from src.services.supabase_client import SupabaseInventoryStore, create_supabase_client
from src.services.tenant_lifecycle import TenantLifecycle


def create_allocator(client: Optional[Client] = None) -> NumberAllocator:
    store = SupabaseInventoryStore(client or create_supabase_client())
    return NumberAllocator(store)


def create_tenant_lifecycle(allocator: Optional[NumberAllocator] = None) -> TenantLifecycle:
    return TenantLifecycle(allocator or create_allocator())
