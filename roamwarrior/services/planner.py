"""
Itinerary Planner - generation and refinement round trips.

Both operations send one prompt to the completion service and validate the
answer as a full ItineraryPlan. Nothing is retried and nothing is merged:
refinement returns a replacement plan.
"""
import json
import logging
from typing import Any, Optional, Union

from .llm_client import CompletionService, get_llm_client, parse_json_response
from ..errors import FieldViolation, GenerationError, MalformedResponseError, ValidationError
from ..models.contract import validate_itinerary_plan, validate_travel_request
from ..models.itinerary import ItineraryPlan
from ..models.travel_request import TravelRequest

logger = logging.getLogger(__name__)


GENERATE_PROMPT = """You are an expert travel planner. Based on the user's preferences, generate a personalized travel plan in JSON format.

STRUCTURE RULES:
- Return an object with a "plan" array holding one entry per day, in travel order
- Day 1 must take place in the arrival city ({arrival_city})
- The final day must take place in the departure city ({departure_city})
- Every day needs a unique "day" label, e.g. "Day 1"
- Every day needs a short "headline" and a "description" of the day's activities
- Optionally add "pointsOfInterest" (name and location) and one "transportation" leg per day

User Preferences:
Destination: {destination}
Arrival City: {arrival_city}
Departure City: {departure_city}
Dates: {dates}
Number of Days: {number_of_days}
Specific Locations: {specific_locations}
Desired Activities: {desired_activities}
Feedback: {feedback}

Plan (JSON format):"""


REFINE_PROMPT = """You are a travel expert refining a travel itinerary based on user feedback.
Return the COMPLETE refined itinerary as an object with a "plan" array, using the same structure as the current one.

Current Itinerary: {itinerary}
User Feedback: {feedback}
User Preferences: {preferences}

Refined Itinerary (JSON format):"""


class ItineraryPlanner:
    """Generates and refines travel itineraries through the completion service."""

    def __init__(self, llm: Optional[CompletionService] = None):
        self.llm = llm or get_llm_client()
        self.output_schema = ItineraryPlan.model_json_schema(by_alias=True)

    async def generate(self, request: Union[TravelRequest, dict]) -> ItineraryPlan:
        """
        Generate a new itinerary for a travel request.

        Args:
            request: A validated TravelRequest (raw dicts are validated first)

        Returns:
            An ItineraryPlan with at least one day

        Raises:
            ValidationError: if a raw request fails validation (no call is made)
            GenerationError: if the completion call fails or returns nothing
            MalformedResponseError: if the answer is not a valid plan
        """
        if not isinstance(request, TravelRequest):
            request = validate_travel_request(request)

        prompt = GENERATE_PROMPT.format(**request.to_prompt_fields())
        logger.info(
            f"Generating itinerary for {request.destination} "
            f"({request.arrival_city} -> {request.departure_city})"
        )
        result = await self.llm.complete(prompt, self.output_schema)
        return self._parse_itinerary(result)

    async def refine(
        self,
        itinerary: Union[ItineraryPlan, str],
        feedback: str,
        preferences: Optional[str] = None
    ) -> ItineraryPlan:
        """
        Produce a replacement itinerary that takes the feedback into account.

        Args:
            itinerary: The current plan, as a model or serialized text
            feedback: What the traveller wants changed (must not be blank)
            preferences: Any other preferences to consider

        Returns:
            A new ItineraryPlan; the caller decides whether to store it

        Raises:
            ValidationError: if the feedback is blank (no call is made)
            GenerationError: if the completion call fails or returns nothing
            MalformedResponseError: if the answer is not a valid plan
        """
        if not feedback or not feedback.strip():
            raise ValidationError([FieldViolation("feedback", "must not be empty")])

        prompt = REFINE_PROMPT.format(
            itinerary=self._serialize(itinerary),
            feedback=feedback.strip(),
            preferences=(preferences or "").strip() or "None"
        )
        logger.info("Refining itinerary")
        result = await self.llm.complete(prompt, self.output_schema)
        return self._parse_itinerary(result)

    def _serialize(self, itinerary: Union[ItineraryPlan, str]) -> str:
        """One-line JSON text of the current plan."""
        if isinstance(itinerary, ItineraryPlan):
            return itinerary.to_json()
        try:
            return json.dumps(json.loads(itinerary))
        except (TypeError, json.JSONDecodeError):
            return " ".join(str(itinerary).split())

    def _parse_itinerary(self, data: Any) -> ItineraryPlan:
        """Validate a completion answer as an ItineraryPlan."""
        if data is None:
            raise GenerationError("The completion service returned no itinerary")

        # Some prompts answer with the plan as text under "refinedItinerary"
        if isinstance(data, dict) and isinstance(data.get("refinedItinerary"), str):
            text = data["refinedItinerary"]
            if not text.strip():
                logger.warning("Completion returned an empty refinedItinerary")
                raise MalformedResponseError("The refined itinerary text is empty")
            data = parse_json_response(text)

        try:
            plan = validate_itinerary_plan(data)
        except ValidationError as e:
            logger.warning(f"Completion returned an invalid itinerary: {e.message}")
            raise MalformedResponseError(
                f"The generated itinerary is not usable: {e.message}",
                cause=e,
                violations=e.violations
            ) from e

        duplicates = plan.duplicate_day_labels()
        if duplicates:
            logger.warning(f"Itinerary repeats day labels: {', '.join(duplicates)}")
        return plan


# Global planner instance
planner: Optional[ItineraryPlanner] = None


def get_planner() -> ItineraryPlanner:
    """Get or create the global planner."""
    global planner
    if planner is None:
        planner = ItineraryPlanner()
    return planner
