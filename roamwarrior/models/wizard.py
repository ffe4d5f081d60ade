"""
Wizard step data - what each page of the planning wizard hands to the next one.

LocationDateData -> ActivityPreferencesData -> FinalPlanInput -> TravelRequest
"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .recommendation import RecommendedPlace, merge_places
from ..errors import FieldViolation, ValidationError


class LocationDateData(BaseModel):
    """Places and dates confirmed on the first wizard step."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    destination: str = ""
    arrival_city: str = Field("", alias="arrivalCity")
    departure_city: str = Field("", alias="departureCity")
    arrival_date: Optional[date] = Field(None, alias="arrivalDate")
    return_date: Optional[date] = Field(None, alias="returnDate")
    number_of_days: Optional[int] = Field(None, alias="numberOfDays")
    specific_locations: list[str] = Field(default_factory=list, alias="specificLocations")
    other_location_input: str = Field("", alias="otherLocationInput")

    @field_validator("arrival_date", "return_date", mode="before")
    @classmethod
    def date_part_only(cls, v):
        # The browser sends full ISO timestamps; only the calendar day matters
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        if v == "":
            return None
        return v

    @field_validator("number_of_days", mode="before")
    @classmethod
    def blank_day_count(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def check(self) -> list[FieldViolation]:
        """Return every problem that blocks moving on to the activities step."""
        violations = []
        if not self.destination:
            violations.append(FieldViolation("destination", "Please enter a destination."))
        if not self.arrival_city:
            violations.append(FieldViolation("arrivalCity", "Please enter the arrival city."))
        if not self.departure_city:
            violations.append(FieldViolation("departureCity", "Please enter the departure city."))

        valid_days = self.number_of_days is not None and self.number_of_days > 0
        if self.number_of_days is not None and not valid_days:
            violations.append(FieldViolation(
                "numberOfDays", "Number of days must be a positive whole number."
            ))
        elif not self.arrival_date and not valid_days:
            violations.append(FieldViolation(
                "arrivalDate",
                "Please select an arrival date OR enter a valid number of days "
                "(positive whole number)."
            ))

        if self.arrival_date and self.return_date and self.return_date < self.arrival_date:
            violations.append(FieldViolation(
                "returnDate", "Return date cannot be before the arrival date."
            ))
        return violations

    def confirmed(self) -> "LocationDateData":
        """
        Validate and normalise the step data.

        Free-text locations are split on commas and merged with the picked ones,
        keeping first-seen order without duplicates.

        Raises:
            ValidationError: if any check fails.
        """
        violations = self.check()
        if violations:
            raise ValidationError(violations)

        typed = [loc.strip() for loc in self.other_location_input.split(",")]
        locations = list(dict.fromkeys(
            loc for loc in [*self.specific_locations, *typed] if loc
        ))
        return self.model_copy(update={"specific_locations": locations})

    def describe_dates(self) -> str:
        """Free-form date descriptor for the travel request."""
        if self.arrival_date and self.return_date:
            return f"{self.arrival_date.isoformat()} to {self.return_date.isoformat()}"
        if self.arrival_date and self.number_of_days:
            return f"{self.number_of_days} days starting {self.arrival_date.isoformat()}"
        if self.arrival_date:
            return f"Arriving {self.arrival_date.isoformat()}"
        return f"{self.number_of_days} days"


class ActivityPreferencesData(LocationDateData):
    """Step one data plus the activities picked on the second step."""

    desired_activity_categories: list[str] = Field(
        default_factory=list,
        alias="desiredActivityCategories"
    )
    desired_activities: list[str] = Field(default_factory=list, alias="desiredActivities")

    @field_validator("desired_activities", mode="after")
    @classmethod
    def drop_blank_activities(cls, v: list[str]) -> list[str]:
        return [a.strip() for a in v if a and a.strip()]


class ActivitySelection(BaseModel):
    """What the suggested-activities step shows and what the traveller has ticked."""
    model_config = ConfigDict(populate_by_name=True)

    displayed_activities: list[str] = Field(default_factory=list, alias="displayedActivities")
    selected_activities: list[str] = Field(default_factory=list, alias="selectedActivities")
    suggested_places: list[RecommendedPlace] = Field(default_factory=list, alias="suggestedPlaces")
    selected_places: list[RecommendedPlace] = Field(default_factory=list, alias="selectedPlaces")

    @classmethod
    def from_preferences(cls, prefs: ActivityPreferencesData) -> "ActivitySelection":
        # Activities the traveller already asked for start out ticked
        return cls(
            displayed_activities=list(prefs.desired_activities),
            selected_activities=list(prefs.desired_activities),
        )

    def add_suggestions(self, places: list[RecommendedPlace]) -> int:
        """Merge freshly recommended places; return how many were new."""
        before = len(self.suggested_places)
        self.suggested_places = merge_places(self.suggested_places, places)
        return len(self.suggested_places) - before

    def toggle_activity(self, activity: str, selected: bool):
        activity = activity.strip()
        if not activity:
            return
        if selected:
            if activity not in self.displayed_activities:
                self.displayed_activities.append(activity)
            if activity not in self.selected_activities:
                self.selected_activities.append(activity)
        else:
            self.selected_activities = [a for a in self.selected_activities if a != activity]

    def toggle_place(self, place: RecommendedPlace, selected: bool):
        key = place.identity_key
        if selected:
            self.suggested_places = merge_places(self.suggested_places, [place])
            self.selected_places = merge_places(self.selected_places, [place])
        else:
            self.selected_places = [p for p in self.selected_places if p.identity_key != key]

    def has_selection(self) -> bool:
        return bool(self.selected_activities or self.selected_places)


class FinalPlanInput(ActivityPreferencesData):
    """Everything needed to ask for an itinerary."""

    selected_final_activities: list[str] = Field(
        default_factory=list,
        alias="selectedFinalActivities"
    )
    selected_places: list[RecommendedPlace] = Field(
        default_factory=list,
        alias="selectedPlaces"
    )

    def to_request_data(self, feedback: Optional[str] = None) -> dict:
        """Raw travel request fields, to be checked by validate_travel_request."""
        activities = ", ".join(self.selected_final_activities)
        if self.selected_places:
            places = "; ".join(
                f"{p.name} ({p.type}, {p.location})" for p in self.selected_places
            )
            places = f"Places to include: {places}"
            activities = f"{activities}. {places}" if activities else places
        return {
            "destination": self.destination,
            "arrivalCity": self.arrival_city,
            "departureCity": self.departure_city,
            "dates": self.describe_dates(),
            "numberOfDays": self.number_of_days,
            "specificLocations": self.specific_locations,
            "desiredActivities": activities,
            "feedback": feedback,
        }
