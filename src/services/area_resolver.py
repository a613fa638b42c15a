"""Area resolver - map a US postal code to an area code and city/state.

Lookup is by the first three digits of the ZIP code against a static
coverage table shipped in ``src/data``. The table is loaded once and never
mutated, so every function here is safe to call from any thread.

Callers validate the ZIP format first; the resolver only does table lookup.
"""

import csv
from functools import lru_cache
from pathlib import Path
from typing import NamedTuple, Union

from src.models.location import Location, NotSupported

COVERAGE_TABLE_PATH = Path(__file__).resolve().parent.parent / "data" / "zip_prefix_area_codes.csv"

ZIP_PREFIX_LENGTH = 3


class _CoverageEntry(NamedTuple):
    area_code: str
    state: str
    city: str


@lru_cache(maxsize=1)
def _coverage_table() -> dict[str, _CoverageEntry]:
    with COVERAGE_TABLE_PATH.open(newline="", encoding="utf-8") as fh:
        return {
            row["zip_prefix"]: _CoverageEntry(row["area_code"], row["state"], row["city"])
            for row in csv.DictReader(fh)
        }


def _lookup(zip_code: str):
    return _coverage_table().get(zip_code[:ZIP_PREFIX_LENGTH])


def resolve(zip_code: str) -> Union[Location, NotSupported]:
    """Resolve a ZIP code to its Location, or NotSupported outside coverage."""
    entry = _lookup(zip_code)
    if entry is None:
        return NotSupported(zip_code=zip_code)
    return Location(
        zip_code=zip_code,
        area_code=entry.area_code,
        city=entry.city,
        state=entry.state,
    )


def is_supported(zip_code: str) -> bool:
    return _lookup(zip_code) is not None


def area_codes_for_city(city: str) -> set[str]:
    """All area codes whose coverage rows name this city (case-insensitive)."""
    wanted = city.strip().casefold()
    return {e.area_code for e in _coverage_table().values() if e.city.casefold() == wanted}


def area_codes_for_state(state: str) -> set[str]:
    wanted = state.strip().upper()
    return {e.area_code for e in _coverage_table().values() if e.state == wanted}


def supported_zip_prefixes() -> list[str]:
    return sorted(_coverage_table())
