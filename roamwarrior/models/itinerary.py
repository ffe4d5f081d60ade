"""
Itinerary models - Structured output for travel plans.
"""
from collections import Counter
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PointOfInterest(BaseModel):
    """A place worth visiting on a given day."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(
        ...,
        min_length=1,
        description="The name of the point of interest"
    )
    location: str = Field(
        ...,
        min_length=1,
        description="The location of the point of interest"
    )
    description: Optional[str] = Field(
        None,
        description="A short description of the point of interest"
    )


class TransportationLeg(BaseModel):
    """How the traveller gets from one place to the next on a given day."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    type: str = Field(
        ...,
        min_length=1,
        description="The type of transportation, e.g. 'train' or 'flight'"
    )
    departure_location: str = Field(
        ...,
        min_length=1,
        alias="departureLocation",
        description="General departure location"
    )
    arrival_location: str = Field(
        ...,
        min_length=1,
        alias="arrivalLocation",
        description="General arrival location"
    )
    departure_station: Optional[str] = Field(
        None,
        alias="departureStation",
        description="Specific station or terminal of departure"
    )
    arrival_station: Optional[str] = Field(
        None,
        alias="arrivalStation",
        description="Specific station or terminal of arrival"
    )
    departure_time: str = Field(
        "",
        alias="departureTime",
        description="Departure time, a clock time or a vague phrase like 'morning'"
    )
    arrival_time: str = Field(
        "",
        alias="arrivalTime",
        description="Arrival time, a clock time or a vague phrase"
    )
    price: Optional[float] = Field(
        None,
        ge=0,
        description="The price"
    )
    url: Optional[str] = Field(
        None,
        description="The URL for booking"
    )


class PlanDay(BaseModel):
    """Plan for a single day."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    day: str = Field(
        ...,
        min_length=1,
        description="Unique label of the day, e.g. 'Day 1'. Not necessarily a date"
    )
    headline: str = Field(
        ...,
        min_length=1,
        description="A short headline describing the day"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="The description of the day's activities"
    )
    points_of_interest: Optional[list[PointOfInterest]] = Field(
        None,
        alias="pointsOfInterest",
        description="A list of points of interest for the day"
    )
    transportation: Optional[TransportationLeg] = Field(
        None,
        description="Transportation details for the day"
    )


class ItineraryPlan(BaseModel):
    """Complete day-by-day travel plan."""
    model_config = ConfigDict(populate_by_name=True)

    days: list[PlanDay] = Field(
        ...,
        min_length=1,
        alias="plan",
        description="A personalized travel plan, one entry per day"
    )

    def day_labels(self) -> list[str]:
        return [day.day for day in self.days]

    def duplicate_day_labels(self) -> list[str]:
        """Day labels that occur more than once, in first-seen order."""
        counts = Counter(self.day_labels())
        return [label for label in counts if counts[label] > 1]

    def moved(self, from_index: int, to_index: int) -> "ItineraryPlan":
        """Return a copy with one whole day moved to a new position."""
        size = len(self.days)
        if not (0 <= from_index < size and 0 <= to_index < size):
            raise IndexError(
                f"Cannot move day {from_index} to {to_index} in a {size}-day plan"
            )
        days = list(self.days)
        day = days.pop(from_index)
        days.insert(to_index, day)
        return ItineraryPlan(days=days)

    def to_json(self) -> str:
        """Serialize using the wire (camelCase) field names."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_display_dict(self) -> dict:
        """Convert to display-friendly dictionary."""
        return {
            "total_days": len(self.days),
            "days": [
                {
                    "day": day.day,
                    "headline": day.headline,
                    "description": day.description,
                    "points_of_interest": [
                        {
                            "name": poi.name,
                            "location": poi.location,
                            "description": poi.description
                        }
                        for poi in day.points_of_interest or []
                    ],
                    "transportation": (
                        day.transportation.model_dump(exclude_none=True)
                        if day.transportation else None
                    )
                }
                for day in self.days
            ]
        }
