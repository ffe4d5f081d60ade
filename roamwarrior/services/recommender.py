"""
Recommenders - places of interest, and lodging/transport for an itinerary.

Both follow the planner's pattern: one prompt, one completion call, a
validated answer. Results are never retried or partially applied.
"""
import json
import logging
from typing import Any, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .llm_client import CompletionService, get_llm_client
from ..errors import FieldViolation, GenerationError, MalformedResponseError, ValidationError
from ..models.contract import violations_from_pydantic
from ..models.recommendation import (
    Accommodation,
    AccommodationTransportRecommendation,
    RecommendedPlace,
    TransportationOption,
)

logger = logging.getLogger(__name__)


PLACES_PROMPT = """You are a travel expert recommending specific places to visit based on the user's destination and activity preferences.

Destination: {destination}
Arrival City: {arrival_city}
Departure City: {departure_city}
Activity Preferences: {activity_preferences}

Based on these preferences, recommend specific shops, sites, or businesses that the user might enjoy. Group them by location and give a brief description of each.
Return an object with a "places" array; each entry has the keys name, location, type, description."""


ACCOMMODATION_TRANSPORT_PROMPT = """Based on the following itinerary, user preferences, available accommodations, and transportation options, recommend the most suitable accommodations and transportation options for the user.
{candidate_rule}

Destination: {destination}
Departure Location: {departure_location}
Departure Time: {departure_time}
Itinerary: {itinerary}
User Preferences: {preferences}
Available Accommodations: {accommodations}
Available Transportation Options: {transportation_options}"""

_CHOOSE_FROM_CANDIDATES = (
    "Where available options are listed below, only choose from them and copy them exactly. "
    "Where they are not provided, suggest realistic options yourself."
)
_NO_CANDIDATES = "No options are listed; suggest realistic options yourself."

_places_adapter = TypeAdapter(list[RecommendedPlace])


def _require(**fields: str) -> None:
    violations = [
        FieldViolation(name, "must not be empty")
        for name, value in fields.items()
        if not value or not str(value).strip()
    ]
    if violations:
        raise ValidationError(violations)


class PlaceRecommender:
    """Recommends places for a destination and a set of activity preferences."""

    def __init__(self, llm: Optional[CompletionService] = None):
        self.llm = llm or get_llm_client()
        self.output_schema = {
            "title": "RecommendedPlaces",
            "type": "object",
            "properties": {
                "places": {
                    "type": "array",
                    "items": RecommendedPlace.model_json_schema(by_alias=True),
                },
            },
            "required": ["places"],
        }

    async def recommend(
        self,
        destination: str,
        arrival_city: str,
        departure_city: str,
        activity_preferences: str
    ) -> list[RecommendedPlace]:
        """
        Ask for recommended places. The list is unordered and may repeat
        places from earlier calls; merge with merge_places.
        """
        _require(
            destination=destination,
            arrivalCity=arrival_city,
            departureCity=departure_city,
            activityPreferences=activity_preferences
        )
        prompt = PLACES_PROMPT.format(
            destination=destination.strip(),
            arrival_city=arrival_city.strip(),
            departure_city=departure_city.strip(),
            activity_preferences=activity_preferences.strip()
        )
        logger.info(f"Recommending places for {destination}")
        result = await self.llm.complete(prompt, self.output_schema)
        return self._parse_places(result)

    def _parse_places(self, data: Any) -> list[RecommendedPlace]:
        if data is None:
            raise GenerationError("The completion service returned no recommendations")
        if isinstance(data, dict):
            data = data.get("places", data.get("recommendations"))
        if not isinstance(data, list):
            raise MalformedResponseError("Expected a list of recommended places")
        try:
            return _places_adapter.validate_python(data)
        except PydanticValidationError as e:
            violations = violations_from_pydantic(e)
            logger.warning(f"Completion returned invalid places: {violations}")
            raise MalformedResponseError(
                "The recommended places are not usable: "
                + "; ".join(str(v) for v in violations),
                cause=e,
                violations=violations
            ) from e


class AccommodationTransportRecommender:
    """Recommends lodging and transport that fit an itinerary."""

    def __init__(self, llm: Optional[CompletionService] = None):
        self.llm = llm or get_llm_client()
        self.output_schema = AccommodationTransportRecommendation.model_json_schema(by_alias=True)

    async def recommend(
        self,
        destination: str,
        departure_location: str,
        departure_time: str,
        itinerary: str,
        preferences: str,
        accommodations: Optional[list[Accommodation]] = None,
        transportation_options: Optional[list[TransportationOption]] = None
    ) -> AccommodationTransportRecommendation:
        """
        Ask for a recommendation.

        Each category with a candidate list is narrowed to entries from that
        list; a category without one keeps whatever the service suggests. The
        result is grounded only when every returned entry came from a list.
        """
        _require(destination=destination, itinerary=itinerary)
        has_candidates = accommodations is not None or transportation_options is not None

        prompt = ACCOMMODATION_TRANSPORT_PROMPT.format(
            candidate_rule=_CHOOSE_FROM_CANDIDATES if has_candidates else _NO_CANDIDATES,
            destination=destination.strip(),
            departure_location=(departure_location or "").strip() or "Not specified",
            departure_time=(departure_time or "").strip() or "Not specified",
            itinerary=" ".join(itinerary.split()),
            preferences=(preferences or "").strip() or "None",
            accommodations=self._dump(accommodations),
            transportation_options=self._dump(transportation_options)
        )
        logger.info(f"Recommending accommodation and transport for {destination}")
        result = await self.llm.complete(prompt, self.output_schema)
        recommendation = self._parse(result)

        return self._restrict(recommendation, accommodations, transportation_options)

    def _dump(self, candidates: Optional[list]) -> str:
        if candidates is None:
            return "Not provided"
        return json.dumps([c.model_dump(by_alias=True, exclude_none=True) for c in candidates])

    def _parse(self, data: Any) -> AccommodationTransportRecommendation:
        if data is None:
            raise GenerationError("The completion service returned no recommendation")
        if not isinstance(data, dict):
            raise MalformedResponseError("Expected an object with accommodations and transportationOptions")
        data = {k: v for k, v in data.items() if k != "grounded"}
        try:
            return AccommodationTransportRecommendation.model_validate(data)
        except PydanticValidationError as e:
            violations = violations_from_pydantic(e)
            logger.warning(f"Completion returned an invalid recommendation: {violations}")
            raise MalformedResponseError(
                "The recommendation is not usable: " + "; ".join(str(v) for v in violations),
                cause=e,
                violations=violations
            ) from e

    def _restrict(
        self,
        recommendation: AccommodationTransportRecommendation,
        accommodations: Optional[list[Accommodation]],
        transportation_options: Optional[list[TransportationOption]]
    ) -> AccommodationTransportRecommendation:
        """Keep only the entries that match a supplied candidate, per category."""
        stays = recommendation.accommodations
        if accommodations is not None:
            known_stays = {a.identity_key: a for a in accommodations}
            stays = [known_stays[a.identity_key] for a in stays if a.identity_key in known_stays]

        legs = recommendation.transportation_options
        if transportation_options is not None:
            known_legs = {t.identity_key: t for t in transportation_options}
            legs = [known_legs[t.identity_key] for t in legs if t.identity_key in known_legs]

        dropped = (
            len(recommendation.accommodations) - len(stays)
            + len(recommendation.transportation_options) - len(legs)
        )
        if dropped:
            logger.warning(f"Dropped {dropped} recommended option(s) not among the candidates")

        # An unlisted category may only be empty for the result to count as grounded
        grounded = (
            (accommodations is not None or transportation_options is not None)
            and (accommodations is not None or not stays)
            and (transportation_options is not None or not legs)
        )
        return AccommodationTransportRecommendation(
            accommodations=stays,
            transportation_options=legs,
            grounded=grounded
        )


# Global recommender instances
place_recommender: Optional[PlaceRecommender] = None
accommodation_transport_recommender: Optional[AccommodationTransportRecommender] = None


def get_place_recommender() -> PlaceRecommender:
    """Get or create the global place recommender."""
    global place_recommender
    if place_recommender is None:
        place_recommender = PlaceRecommender()
    return place_recommender


def get_accommodation_transport_recommender() -> AccommodationTransportRecommender:
    """Get or create the global accommodation/transport recommender."""
    global accommodation_transport_recommender
    if accommodation_transport_recommender is None:
        accommodation_transport_recommender = AccommodationTransportRecommender()
    return accommodation_transport_recommender
