"""
Recommendation models - places, lodging and transport suggested by the completion service.
"""
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecommendedPlace(BaseModel):
    """A shop, site or business recommended for the trip."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1, description="The name of the recommended place")
    location: str = Field(
        ...,
        min_length=1,
        description="The city or neighborhood where the place is located"
    )
    type: str = Field(
        ...,
        min_length=1,
        description="The type of place (e.g., shop, site, restaurant)"
    )
    description: Optional[str] = Field(None, description="A brief description of the place")

    @property
    def identity_key(self) -> tuple[str, str, str]:
        # Exact strings: differently-worded duplicates are not recognised.
        return (self.name, self.location, self.type)


def merge_places(
    existing: Iterable[RecommendedPlace],
    incoming: Iterable[RecommendedPlace]
) -> list[RecommendedPlace]:
    """
    Merge newly recommended places into a running selection.

    Order is preserved: existing entries first, then unseen incoming ones.
    When an identity key repeats, the first occurrence wins.
    """
    merged: list[RecommendedPlace] = []
    seen: set[tuple[str, str, str]] = set()
    for place in [*existing, *incoming]:
        if place.identity_key in seen:
            continue
        seen.add(place.identity_key)
        merged.append(place)
    return merged


class Accommodation(BaseModel):
    """A lodging option."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    price: float = Field(..., ge=0, description="Nightly price")
    rating: float = Field(..., ge=0, le=5)
    url: str = Field("", description="Booking URL")
    image_url: Optional[str] = Field(None, alias="imageUrl")

    @property
    def identity_key(self) -> tuple[str, str]:
        return (self.name, self.location)


class TransportationOption(BaseModel):
    """A bookable connection between two places."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    type: str = Field(..., min_length=1)
    departure_location: str = Field(..., min_length=1, alias="departureLocation")
    arrival_location: str = Field(..., min_length=1, alias="arrivalLocation")
    departure_time: str = Field("", alias="departureTime")
    arrival_time: str = Field("", alias="arrivalTime")
    price: float = Field(..., ge=0)
    url: str = Field("", description="Booking URL")

    @property
    def identity_key(self) -> tuple[str, str, str, str, str]:
        return (
            self.type,
            self.departure_location,
            self.arrival_location,
            self.departure_time,
            self.arrival_time,
        )


class AccommodationTransportRecommendation(BaseModel):
    """Recommended lodging and transport for an itinerary."""
    model_config = ConfigDict(populate_by_name=True)

    accommodations: list[Accommodation] = Field(
        default_factory=list,
        description="Recommended accommodations"
    )
    transportation_options: list[TransportationOption] = Field(
        default_factory=list,
        alias="transportationOptions",
        description="Recommended transportation options"
    )
    grounded: bool = Field(
        False,
        description="True when every entry was picked from a supplied candidate list"
    )
