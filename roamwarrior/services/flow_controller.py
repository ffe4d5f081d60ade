"""
Flow Controller - Backend wizard flow management.
Moves a session through the wizard steps and owns every write to its itinerary.
"""
import logging
from enum import Enum
from typing import Optional, Tuple

from .formatter import render_itinerary, render_places, render_recommendation
from .planner import ItineraryPlanner, get_planner
from .recommender import (
    AccommodationTransportRecommender,
    PlaceRecommender,
    get_accommodation_transport_recommender,
    get_place_recommender,
)
from ..errors import FieldViolation, ValidationError, WizardStepError
from ..models.contract import validate_model, validate_travel_request
from ..models.itinerary import ItineraryPlan
from ..models.recommendation import Accommodation, RecommendedPlace, TransportationOption
from ..models.session import SessionKey, WizardSession, session_store
from ..models.wizard import (
    ActivityPreferencesData,
    ActivitySelection,
    FinalPlanInput,
    LocationDateData,
)

logger = logging.getLogger(__name__)


class ResponseType(str, Enum):
    """Type of response from flow controller."""
    STEP_CONFIRMED = "step_confirmed"  # Wizard step data stored
    SUGGESTIONS = "suggestions"  # Recommended places merged into the selection
    ITINERARY = "itinerary"  # New itinerary generated
    REFINEMENT = "refinement"  # Itinerary replaced after feedback
    REORDERED = "reordered"  # Days moved by the traveller
    RECOMMENDATION = "recommendation"  # Lodging and transport suggested
    SUPERSEDED = "superseded"  # A newer request finished first; result discarded


def notification(title: str, description: str, variant: str = "default") -> dict:
    """A non-blocking message for the client to show."""
    return {"title": title, "description": description, "variant": variant}


StepResponse = Tuple[ResponseType, dict, Optional[dict]]


class FlowController:
    """
    Controls the wizard flow.

    locations & dates -> activities -> suggested activities -> planner

    Every operation either completes and stores its result, or raises and
    leaves the session exactly as it was.
    """

    def __init__(
        self,
        planner: Optional[ItineraryPlanner] = None,
        place_recommender: Optional[PlaceRecommender] = None,
        stay_recommender: Optional[AccommodationTransportRecommender] = None
    ):
        self.planner = planner or get_planner()
        self.place_recommender = place_recommender or get_place_recommender()
        self.stay_recommender = stay_recommender or get_accommodation_transport_recommender()

    # Step 1

    def submit_locations_and_dates(self, session: WizardSession, data: dict) -> StepResponse:
        """Validate and store the places and dates."""
        step = validate_model(LocationDateData, data).confirmed()
        session.put(SessionKey.LOCATION_DATES, step)
        logger.info(f"Session {session.session_id}: trip to {step.destination} confirmed")
        session_store.update(session)

        return (
            ResponseType.STEP_CONFIRMED,
            notification("Places and Dates Confirmed", "Now, let's select your activity preferences."),
            step.model_dump(mode="json", by_alias=True)
        )

    # Step 2

    def submit_activities(
        self,
        session: WizardSession,
        desired_activities: list[str],
        categories: Optional[list[str]] = None
    ) -> StepResponse:
        """Store the activity preferences on top of the places and dates."""
        locations = self._require(
            session, SessionKey.LOCATION_DATES, LocationDateData,
            "No location/date data found. Please start from the previous step."
        )
        prefs = validate_model(ActivityPreferencesData, {
            **locations.model_dump(by_alias=True),
            "desiredActivityCategories": categories or [],
            "desiredActivities": desired_activities,
        })
        if not prefs.desired_activities:
            raise ValidationError([FieldViolation(
                "desiredActivities", "Please select at least one desired activity or interest."
            )])

        session.put(SessionKey.ACTIVITY_PREFERENCES, prefs)
        session.put(SessionKey.ACTIVITY_SELECTION, ActivitySelection.from_preferences(prefs))
        session_store.update(session)

        return (
            ResponseType.STEP_CONFIRMED,
            notification("Activity Preferences Confirmed", "Next, review suggested activities."),
            prefs.model_dump(mode="json", by_alias=True)
        )

    # Step 3

    async def suggest_places(self, session: WizardSession) -> StepResponse:
        """Ask for more places and merge them into the running selection."""
        prefs, selection = self._preferences_and_selection(session)

        places = await self.place_recommender.recommend(
            destination=prefs.destination,
            arrival_city=prefs.arrival_city,
            departure_city=prefs.departure_city,
            activity_preferences=", ".join(prefs.desired_activities)
        )
        added = selection.add_suggestions(places)
        session.put(SessionKey.ACTIVITY_SELECTION, selection)
        session_store.update(session)

        description = (
            f"{added} new suggestion(s) added. Review the updated list."
            if added else "No new suggestions this time. Try again for more."
        )
        data = selection.model_dump(mode="json", by_alias=True)
        data["rendered"] = render_places(selection.suggested_places)
        return ResponseType.SUGGESTIONS, notification("More Suggestions Added", description), data

    def toggle_activity(self, session: WizardSession, activity: str, selected: bool) -> ActivitySelection:
        _, selection = self._preferences_and_selection(session)
        selection.toggle_activity(activity, selected)
        session.put(SessionKey.ACTIVITY_SELECTION, selection)
        session_store.update(session)
        return selection

    def toggle_place(self, session: WizardSession, place: RecommendedPlace, selected: bool) -> ActivitySelection:
        _, selection = self._preferences_and_selection(session)
        selection.toggle_place(place, selected)
        session.put(SessionKey.ACTIVITY_SELECTION, selection)
        session_store.update(session)
        return selection

    # Step 4

    async def create_itinerary(self, session: WizardSession) -> StepResponse:
        """Build the travel request from the wizard data and generate a plan."""
        prefs, selection = self._preferences_and_selection(session)
        if not selection.has_selection():
            raise ValidationError([FieldViolation(
                "selectedActivities",
                "Please select at least one activity to include in the itinerary."
            )])

        final_input = validate_model(FinalPlanInput, {
            **prefs.model_dump(by_alias=True),
            "selectedFinalActivities": selection.selected_activities,
            "selectedPlaces": [p.model_dump(by_alias=True) for p in selection.selected_places],
        })
        request = validate_travel_request(final_input.to_request_data())
        session.put(SessionKey.FINAL_PLAN_INPUT, final_input)
        session_store.update(session)

        ticket = session.begin_request()
        plan = await self.planner.generate(request)
        return self._commit(
            session, plan, ticket,
            ResponseType.ITINERARY,
            notification("Itinerary Ready!", f"Your {len(plan.days)}-day plan is ready.")
        )

    async def regenerate_itinerary(self, session: WizardSession, feedback: str) -> StepResponse:
        """Generate a fresh plan from the stored request, biased by feedback."""
        final_input = self._require(
            session, SessionKey.FINAL_PLAN_INPUT, FinalPlanInput,
            "No itinerary request found. Please finish the activity selection first."
        )
        request = validate_travel_request(final_input.to_request_data(feedback=feedback))

        ticket = session.begin_request()
        plan = await self.planner.generate(request)
        return self._commit(
            session, plan, ticket,
            ResponseType.ITINERARY,
            notification("Itinerary Regenerated", "A new plan was created from your feedback.")
        )

    async def refine_itinerary(
        self,
        session: WizardSession,
        feedback: str,
        preferences: Optional[str] = None
    ) -> StepResponse:
        """Replace the current plan with one refined by feedback."""
        current = session.current_plan()
        if current is None:
            raise WizardStepError("No itinerary generated yet. Please create one first.")

        ticket = session.begin_request()
        plan = await self.planner.refine(current, feedback, preferences)
        return self._commit(
            session, plan, ticket,
            ResponseType.REFINEMENT,
            notification("Itinerary Updated", "Your plan was refined with your feedback.")
        )

    def reorder_day(self, session: WizardSession, from_index: int, to_index: int) -> StepResponse:
        """Apply a drag-and-drop move of one day."""
        if session.current_plan() is None:
            raise WizardStepError("No itinerary generated yet. Please create one first.")
        try:
            plan = session.reorder_days(from_index, to_index)
        except IndexError as e:
            raise ValidationError([FieldViolation("toIndex", str(e))]) from e
        session_store.update(session)
        return (
            ResponseType.REORDERED,
            notification("Itinerary Reordered", f"Moved day {from_index + 1} to position {to_index + 1}."),
            self._plan_data(plan)
        )

    async def recommend_accommodation_transport(
        self,
        session: WizardSession,
        preferences: str = "",
        departure_time: str = "",
        accommodations: Optional[list[Accommodation]] = None,
        transportation_options: Optional[list[TransportationOption]] = None
    ) -> StepResponse:
        """Suggest lodging and transport for the current plan."""
        plan = session.current_plan()
        if plan is None:
            raise WizardStepError("No itinerary generated yet. Please create one first.")
        final_input = session.load(SessionKey.FINAL_PLAN_INPUT, FinalPlanInput)
        if final_input is None:
            raise WizardStepError("No itinerary request found. Please start over.")

        recommendation = await self.stay_recommender.recommend(
            destination=final_input.destination,
            departure_location=final_input.departure_city,
            departure_time=departure_time,
            itinerary=plan.to_json(),
            preferences=preferences,
            accommodations=accommodations,
            transportation_options=transportation_options
        )
        data = recommendation.model_dump(mode="json", by_alias=True)
        data["rendered"] = render_recommendation(recommendation)
        return (
            ResponseType.RECOMMENDATION,
            notification("Recommendations Ready", "Review the suggested stays and connections."),
            data
        )

    # Helpers

    def _require(self, session: WizardSession, key: SessionKey, model, message: str):
        value = session.load(key, model)
        if value is None:
            raise WizardStepError(message)
        return value

    def _preferences_and_selection(
        self,
        session: WizardSession
    ) -> Tuple[ActivityPreferencesData, ActivitySelection]:
        prefs = self._require(
            session, SessionKey.ACTIVITY_PREFERENCES, ActivityPreferencesData,
            "No activity preference data found. Please start from the beginning."
        )
        selection = session.load(SessionKey.ACTIVITY_SELECTION, ActivitySelection)
        if selection is None:
            selection = ActivitySelection.from_preferences(prefs)
        return prefs, selection

    def _commit(
        self,
        session: WizardSession,
        plan: ItineraryPlan,
        ticket: int,
        response_type: ResponseType,
        message: dict
    ) -> StepResponse:
        if not session.commit_plan(plan, ticket):
            return (
                ResponseType.SUPERSEDED,
                notification("Request Superseded", "A newer request replaced this one."),
                None
            )
        session_store.update(session)
        return response_type, message, self._plan_data(plan)

    def _plan_data(self, plan: ItineraryPlan) -> dict:
        return {
            "itinerary": plan.model_dump(mode="json", by_alias=True, exclude_none=True),
            "rendered": render_itinerary(plan),
        }


# Global flow controller
flow_controller: Optional[FlowController] = None


def get_flow_controller() -> FlowController:
    """Get or create the global flow controller."""
    global flow_controller
    if flow_controller is None:
        flow_controller = FlowController()
    return flow_controller
