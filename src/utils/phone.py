"""Phone number canonicalisation for inventory keys."""

from typing import Optional

import phonenumbers

from src.utils.config import InventoryConfig
from src.utils.errors import InvalidPhoneNumberError

# Inventory is partitioned by 3-digit NANP area codes
NANP_COUNTRY_CODE = 1


def parse_nanp_number(candidate: str, region: Optional[str] = None) -> phonenumbers.PhoneNumber:
    """Parse a raw number, accepting only NANP (+1) numbers of plausible length."""
    if not candidate or not candidate.strip():
        raise InvalidPhoneNumberError("Phone number is empty")

    try:
        parsed = phonenumbers.parse(candidate, region or InventoryConfig.DEFAULT_REGION)
    except phonenumbers.NumberParseException as e:
        raise InvalidPhoneNumberError(f"Not a phone number: {candidate!r} ({e})") from e

    if parsed.country_code != NANP_COUNTRY_CODE:
        raise InvalidPhoneNumberError(f"Only +1 numbers are supported: {candidate!r}")
    if not phonenumbers.is_possible_number(parsed) or len(str(parsed.national_number)) != 10:
        raise InvalidPhoneNumberError(f"Not a 10-digit NANP number: {candidate!r}")
    return parsed


def canonical_phone_number(candidate: str, region: Optional[str] = None) -> str:
    """Return the E.164 form of a raw number, e.g. (404) 555-0100 -> +14045550100."""
    parsed = parse_nanp_number(candidate, region)
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def area_code_for(phone_number: str) -> str:
    """Derive the 3-digit area code from a phone number."""
    parsed = parse_nanp_number(phone_number)
    return str(parsed.national_number)[:3]
