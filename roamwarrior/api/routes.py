"""
API Routes for RoamWarrior.
"""
from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from ..models.itinerary import ItineraryPlan
from ..models.recommendation import Accommodation, RecommendedPlace, TransportationOption
from ..models.session import WizardSession, session_store
from ..services.flow_controller import get_flow_controller
from ..services.formatter import render_itinerary, render_places, render_recommendation
from ..services.planner import get_planner
from ..services.recommender import get_accommodation_transport_recommender, get_place_recommender


router = APIRouter(prefix="/api", tags=["roamwarrior"])


# Request/Response Models
class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateSessionResponse(BaseModel):
    session_id: str
    message: str


class StepResponse(BaseModel):
    response_type: str
    notification: dict
    data: Optional[dict] = None


class ActivitiesRequest(CamelModel):
    desired_activities: list[str] = Field(default_factory=list, alias="desiredActivities")
    desired_activity_categories: list[str] = Field(default_factory=list, alias="desiredActivityCategories")


class ToggleActivityRequest(BaseModel):
    activity: str
    selected: bool


class TogglePlaceRequest(BaseModel):
    place: RecommendedPlace
    selected: bool


class RefineRequest(BaseModel):
    feedback: str
    preferences: Optional[str] = None


class RegenerateRequest(BaseModel):
    feedback: str


class ReorderRequest(CamelModel):
    from_index: int = Field(..., alias="fromIndex")
    to_index: int = Field(..., alias="toIndex")


class StayRequest(CamelModel):
    preferences: str = ""
    departure_time: str = Field(default="", alias="departureTime")
    accommodations: Optional[list[Accommodation]] = None
    transportation_options: Optional[list[TransportationOption]] = Field(
        default=None, alias="transportationOptions"
    )


class PlacesRequest(CamelModel):
    destination: str = ""
    arrival_city: str = Field(default="", alias="arrivalCity")
    departure_city: str = Field(default="", alias="departureCity")
    activity_preferences: str = Field(default="", alias="activityPreferences")


class StandaloneStayRequest(StayRequest):
    destination: str = ""
    departure_location: str = Field(default="", alias="departureLocation")
    itinerary: ItineraryPlan


def _session(session_id: str) -> WizardSession:
    return session_store.require(session_id)


def _step(result) -> StepResponse:
    response_type, notification, data = result
    return StepResponse(response_type=response_type.value, notification=notification, data=data)


# Sessions

@router.post("/session", response_model=CreateSessionResponse)
async def create_session():
    """Start a new wizard session."""
    session = session_store.create()
    return CreateSessionResponse(
        session_id=session.session_id,
        message="Where are you headed? Tell us your destination, cities and dates."
    )


@router.get("/session/{session_id}")
async def get_session(session_id: str):
    """Which wizard steps have been completed."""
    session = _session(session_id)
    return {
        "session_id": session.session_id,
        "progress": session.get_progress(),
        "updated_at": session.updated_at.isoformat()
    }


@router.delete("/session/{session_id}")
async def end_session(session_id: str):
    """End a session and drop its itinerary."""
    _session(session_id)
    session_store.delete(session_id)
    return {"success": True}


# Wizard steps

@router.post("/wizard/{session_id}/locations-and-dates", response_model=StepResponse)
async def submit_locations_and_dates(session_id: str, form_data: dict):
    session = _session(session_id)
    return _step(get_flow_controller().submit_locations_and_dates(session, form_data))


@router.post("/wizard/{session_id}/activities", response_model=StepResponse)
async def submit_activities(session_id: str, request: ActivitiesRequest):
    session = _session(session_id)
    return _step(get_flow_controller().submit_activities(
        session,
        request.desired_activities,
        request.desired_activity_categories
    ))


@router.post("/wizard/{session_id}/suggested-places", response_model=StepResponse)
async def suggest_places(session_id: str):
    """Fetch more place suggestions and merge them into the selection."""
    session = _session(session_id)
    return _step(await get_flow_controller().suggest_places(session))


@router.post("/wizard/{session_id}/activities/toggle")
async def toggle_activity(session_id: str, request: ToggleActivityRequest):
    session = _session(session_id)
    selection = get_flow_controller().toggle_activity(session, request.activity, request.selected)
    return selection.model_dump(mode="json", by_alias=True)


@router.post("/wizard/{session_id}/places/toggle")
async def toggle_place(session_id: str, request: TogglePlaceRequest):
    session = _session(session_id)
    selection = get_flow_controller().toggle_place(session, request.place, request.selected)
    return selection.model_dump(mode="json", by_alias=True)


@router.post("/wizard/{session_id}/itinerary", response_model=StepResponse)
async def create_itinerary(session_id: str):
    """Generate the itinerary from everything the wizard collected."""
    session = _session(session_id)
    return _step(await get_flow_controller().create_itinerary(session))


# Itinerary

@router.get("/itinerary/{session_id}")
async def get_itinerary(session_id: str):
    """Get the current itinerary."""
    session = _session(session_id)
    current = session.current_plan()
    if not current:
        return {"itinerary": None, "message": render_itinerary(None)}

    return {
        "itinerary": current.to_display_dict(),
        "rendered": render_itinerary(current)
    }


@router.post("/itinerary/{session_id}/refine", response_model=StepResponse)
async def refine_itinerary(session_id: str, request: RefineRequest):
    session = _session(session_id)
    return _step(await get_flow_controller().refine_itinerary(
        session, request.feedback, request.preferences
    ))


@router.post("/itinerary/{session_id}/regenerate", response_model=StepResponse)
async def regenerate_itinerary(session_id: str, request: RegenerateRequest):
    session = _session(session_id)
    return _step(await get_flow_controller().regenerate_itinerary(session, request.feedback))


@router.post("/itinerary/{session_id}/reorder", response_model=StepResponse)
async def reorder_itinerary(session_id: str, request: ReorderRequest):
    session = _session(session_id)
    return _step(get_flow_controller().reorder_day(session, request.from_index, request.to_index))


@router.post("/itinerary/{session_id}/accommodation-transport", response_model=StepResponse)
async def recommend_for_itinerary(session_id: str, request: StayRequest):
    session = _session(session_id)
    return _step(await get_flow_controller().recommend_accommodation_transport(
        session,
        preferences=request.preferences,
        departure_time=request.departure_time,
        accommodations=request.accommodations,
        transportation_options=request.transportation_options
    ))


# Session-free recommendations

@router.post("/recommendations/places")
async def recommend_places(request: PlacesRequest):
    places = await get_place_recommender().recommend(
        destination=request.destination,
        arrival_city=request.arrival_city,
        departure_city=request.departure_city,
        activity_preferences=request.activity_preferences
    )
    return {
        "places": [p.model_dump(mode="json", by_alias=True, exclude_none=True) for p in places],
        "rendered": render_places(places)
    }


@router.post("/recommendations/accommodation-transport")
async def recommend_accommodation_transport(request: StandaloneStayRequest):
    recommendation = await get_accommodation_transport_recommender().recommend(
        destination=request.destination,
        departure_location=request.departure_location,
        departure_time=request.departure_time,
        itinerary=request.itinerary.to_json(),
        preferences=request.preferences,
        accommodations=request.accommodations,
        transportation_options=request.transportation_options
    )
    data = recommendation.model_dump(mode="json", by_alias=True)
    data["rendered"] = render_recommendation(recommendation)
    return data


@router.post("/itinerary/generate")
async def generate_itinerary(request: dict):
    """Generate an itinerary directly from a travel request."""
    plan = await get_planner().generate(request)
    return {
        "itinerary": plan.model_dump(mode="json", by_alias=True, exclude_none=True),
        "rendered": render_itinerary(plan)
    }
