"""Error handling utilities."""


class NumberAllocatorError(Exception):
    """Base exception for the number allocator backend."""
    pass


class InventoryStoreError(NumberAllocatorError):
    """Inventory store operation error."""
    pass


class DuplicatePhoneNumberError(InventoryStoreError):
    """Insert collided with an existing phone number."""
    pass


class InvalidPhoneNumberError(NumberAllocatorError, ValueError):
    """Input could not be parsed as a phone number."""
    pass


class ConfigurationError(NumberAllocatorError):
    """Missing or invalid configuration."""
    pass


class AdminAuthError(NumberAllocatorError):
    """Admin token verification failed."""
    pass


class TenantAlreadyAssignedError(InventoryStoreError):
    """Update collided with another number already held by the tenant."""
    pass
