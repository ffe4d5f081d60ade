"""
Travel request - the trip parameters sent to the generation adapter.
"""
import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


_DURATION_PATTERN = re.compile(r"(\d+)\s*(day|night|week)s?", re.IGNORECASE)
_ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


class TravelRequest(BaseModel):
    """User-declared trip parameters."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    destination: str = Field(
        ...,
        min_length=1,
        description="The desired travel destination"
    )
    arrival_city: str = Field(
        ...,
        min_length=1,
        alias="arrivalCity",
        description="The city where the traveller arrives"
    )
    departure_city: str = Field(
        ...,
        min_length=1,
        alias="departureCity",
        description="The city the traveller leaves from at the end of the trip"
    )
    dates: str = Field(
        ...,
        min_length=1,
        description="The travel dates or date range, free-form"
    )
    number_of_days: Optional[int] = Field(
        None,
        gt=0,
        alias="numberOfDays",
        description="Explicit trip length in days"
    )
    specific_locations: list[str] = Field(
        default_factory=list,
        alias="specificLocations",
        description="Specific cities or regions within the destination"
    )
    desired_activities: str = Field(
        ...,
        min_length=1,
        alias="desiredActivities",
        description="Desired activities at the location(s)"
    )
    feedback: Optional[str] = Field(
        None,
        description="User feedback on previous plans"
    )

    @model_validator(mode="before")
    @classmethod
    def derive_dates_from_day_count(cls, data):
        if not isinstance(data, dict):
            return data
        dates = data.get("dates")
        if dates is not None and not (isinstance(dates, str) and not dates.strip()):
            return data
        days = data.get("numberOfDays", data.get("number_of_days"))
        if isinstance(days, bool):
            return data
        try:
            count = int(days)
        except (TypeError, ValueError):
            return data
        if count > 0:
            data = dict(data)
            data["dates"] = f"{count} days"
        return data

    @field_validator("specific_locations", mode="before")
    @classmethod
    def split_locations(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if not isinstance(v, list):
            return v
        return [loc.strip() for loc in v if isinstance(loc, str) and loc.strip()]

    def duration_days(self) -> Optional[int]:
        """Best-effort trip length from the day count or the date descriptor."""
        if self.number_of_days:
            return self.number_of_days
        match = _DURATION_PATTERN.search(self.dates)
        if match:
            count = int(match.group(1))
            return count * 7 if match.group(2).lower() == "week" else count
        iso_dates = _ISO_DATE_PATTERN.findall(self.dates)
        if len(iso_dates) >= 2:
            try:
                start, end = date.fromisoformat(iso_dates[0]), date.fromisoformat(iso_dates[1])
            except ValueError:
                return None
            if end >= start:
                return (end - start).days + 1
        return None

    def to_prompt_fields(self) -> dict:
        """Field values as they are substituted into prompt templates."""
        return {
            "destination": self.destination,
            "arrival_city": self.arrival_city,
            "departure_city": self.departure_city,
            "dates": self.dates,
            "number_of_days": self.duration_days() or "Not specified",
            "specific_locations": ", ".join(self.specific_locations) or "None",
            "desired_activities": self.desired_activities,
            "feedback": self.feedback or "None",
        }
