"""Area resolver result models."""

from typing import Literal
from pydantic import BaseModel, Field


class Location(BaseModel):
    """Postal code resolved to an area code and city/state."""
    zip_code: str = Field(..., description="Postal code as supplied")
    area_code: str = Field(..., description="3-digit area code")
    city: str = Field(..., description="City or region name")
    state: str = Field(..., description="2-letter state code")


class NotSupported(BaseModel):
    """Postal code falls outside the coverage table."""
    kind: Literal["not_supported"] = "not_supported"
    zip_code: str

    @property
    def message(self) -> str:
        return f"Zip code {self.zip_code} is not currently supported."
